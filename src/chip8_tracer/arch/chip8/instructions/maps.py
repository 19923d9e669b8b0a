# src/chip8_tracer/arch/chip8/instructions/maps.py
"""
オペコードと命令実装のマッピング定義。

デコードは上位ニブルで命令族を選び、族によっては下位ニブル／下位バイトで命令を確定します。
実行はデコード結果のpattern（例: "8XY4"）をキーに実行関数を引きます。
"""
from typing import Optional

from chip8_tracer.core.snapshot import Operation
from . import load
from . import alu
from . import control
from . import io

# @intent:map 0x00NN 命令（完全一致）。それ以外の0NNNはSYSとして扱います。
SYSTEM_DECODERS = {
    0x00E0: io.decode_cls,
    0x00EE: control.decode_ret,
}

# @intent:map EXNN 命令の下位バイト。
KEY_DECODERS = {
    0x9E: io.decode_skp,
    0xA1: io.decode_sknp,
}

# @intent:map FXNN 命令の下位バイト。
MISC_DECODERS = {
    0x07: load.decode_ld_vx_dt,
    0x0A: io.decode_wait_key,
    0x15: load.decode_ld_dt,
    0x18: load.decode_ld_st,
    0x1E: load.decode_add_i,
    0x29: load.decode_ld_font,
    0x33: load.decode_ld_bcd,
    0x55: load.decode_store,
    0x65: load.decode_load,
}

def _decode_system(opcode: int) -> Optional[Operation]:
    decoder = SYSTEM_DECODERS.get(opcode)
    if decoder:
        return decoder(opcode)
    return control.decode_sys(opcode)

def _decode_se_reg(opcode: int) -> Optional[Operation]:
    if opcode & 0xF == 0:
        return control.decode_se_reg(opcode)
    return None

def _decode_sne_reg(opcode: int) -> Optional[Operation]:
    if opcode & 0xF == 0:
        return control.decode_sne_reg(opcode)
    return None

def _decode_register(opcode: int) -> Optional[Operation]:
    sub = opcode & 0xF
    if sub == 0x0:
        return load.decode_ld_reg(opcode)
    if sub in alu.REGISTER_OPS:
        pattern, mnemonic = alu.REGISTER_OPS[sub]
        return alu.decode_register_op(opcode, pattern, mnemonic)
    return None

def _decode_key(opcode: int) -> Optional[Operation]:
    decoder = KEY_DECODERS.get(opcode & 0xFF)
    return decoder(opcode) if decoder else None

def _decode_misc(opcode: int) -> Optional[Operation]:
    decoder = MISC_DECODERS.get(opcode & 0xFF)
    return decoder(opcode) if decoder else None

# @intent:map 上位ニブルから命令族のデコード関数へのマッピングテーブル。
#            デコード関数は該当命令がなければNoneを返します。
DECODE_MAP = {
    0x0: _decode_system,
    0x1: control.decode_jp,
    0x2: control.decode_call,
    0x3: control.decode_se_byte,
    0x4: control.decode_sne_byte,
    0x5: _decode_se_reg,
    0x6: load.decode_ld_byte,
    0x7: alu.decode_add_byte,
    0x8: _decode_register,
    0x9: _decode_sne_reg,
    0xA: load.decode_ld_i,
    0xB: control.decode_jp_v0,
    0xC: alu.decode_rnd,
    0xD: io.decode_drw,
    0xE: _decode_key,
    0xF: _decode_misc,
}

# @intent:map 命令パターンから実行関数へのマッピングテーブル。
EXECUTE_MAP = {
    # Control
    "0NNN": control.execute_sys,
    "00EE": control.execute_ret,
    "1NNN": control.execute_jp,
    "2NNN": control.execute_call,
    "3XNN": control.execute_se_byte,
    "4XNN": control.execute_sne_byte,
    "5XY0": control.execute_se_reg,
    "9XY0": control.execute_sne_reg,
    "BNNN": control.execute_jp_v0,

    # Load/Store
    "6XNN": load.execute_ld_byte,
    "8XY0": load.execute_ld_reg,
    "ANNN": load.execute_ld_i,
    "FX07": load.execute_ld_vx_dt,
    "FX15": load.execute_ld_dt,
    "FX18": load.execute_ld_st,
    "FX1E": load.execute_add_i,
    "FX29": load.execute_ld_font,
    "FX33": load.execute_ld_bcd,
    "FX55": load.execute_store,
    "FX65": load.execute_load,

    # ALU
    "7XNN": alu.execute_add_byte,
    "8XY1": alu.execute_or,
    "8XY2": alu.execute_and,
    "8XY3": alu.execute_xor,
    "8XY4": alu.execute_add_reg,
    "8XY5": alu.execute_sub,
    "8XY6": alu.execute_shr,
    "8XY7": alu.execute_subn,
    "8XYE": alu.execute_shl,
    "CXNN": alu.execute_rnd,

    # Display/Input
    "00E0": io.execute_cls,
    "DXYN": io.execute_drw,
    "EX9E": io.execute_skp,
    "EXA1": io.execute_sknp,
    "FX0A": io.execute_wait_key,
}
