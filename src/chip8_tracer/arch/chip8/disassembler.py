# src/chip8_tracer/arch/chip8/disassembler.py
"""
CHIP-8 Disassembler

メモリ上のバイナリデータを解析し、CHIP-8のニーモニックに変換します。
Instruction Layerのデコードロジックを再利用しますが、バスアクセスログを汚さないように
peekのみで読み出します。
"""
from typing import List, Tuple

from chip8_tracer.transport.bus import Bus
from chip8_tracer.common.errors import UnknownOpcode
from chip8_tracer.arch.chip8.instructions import decode_opcode

# @intent:responsibility 指定されたメモリ範囲を逆アセンブルし、表示用データを生成します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    指定された範囲のメモリを2バイト単位で逆アセンブルします。
    命令として解釈できない語は "DW #XXXX"、末尾の端数バイトは "DB #XX" として表示します。

    Returns:
        List of (address, hex_bytes, mnemonic) tuples.
    """
    result = []
    memory_end = bus.get_address_space_size()
    end_addr = min(start_addr + length, memory_end)
    current_addr = start_addr

    while current_addr < end_addr:
        hi = bus.peek(current_addr)
        if current_addr + 1 >= memory_end:
            result.append((current_addr, f"{hi:02X}", f"DB #{hi:02X}"))
            break

        lo = bus.peek(current_addr + 1)
        opcode = (hi << 8) | lo
        try:
            mnemonic_str = decode_opcode(opcode).to_text()
        except UnknownOpcode:
            mnemonic_str = f"DW #{opcode:04X}"

        result.append((current_addr, f"{hi:02X} {lo:02X}", mnemonic_str))
        current_addr += 2

    return result
