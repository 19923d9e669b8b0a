# src/chip8_tracer/arch/chip8/instructions/load.py
"""
転送命令（レジスタ、I、タイマ、メモリブロック）の実装。
"""
from chip8_tracer.core.snapshot import Operation
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.arch.chip8.font import FONT_START, GLYPH_SIZE
from .base import ExecutionContext, make_operation, reg, byte, addr, check_range

# --- LD Vx, byte ---
def decode_ld_byte(opcode: int) -> Operation:
    return make_operation(opcode, "6XNN", "LD", [reg((opcode >> 8) & 0xF), byte(opcode & 0xFF)])

def execute_ld_byte(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = op.nn

# --- LD Vx, Vy ---
def decode_ld_reg(opcode: int) -> Operation:
    return make_operation(opcode, "8XY0", "LD", [reg((opcode >> 8) & 0xF), reg((opcode >> 4) & 0xF)])

def execute_ld_reg(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.v[op.y]

# --- LD I, addr ---
def decode_ld_i(opcode: int) -> Operation:
    return make_operation(opcode, "ANNN", "LD", ["I", addr(opcode & 0xFFF)])

def execute_ld_i(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.i = op.nnn

# --- タイマ ---
def decode_ld_vx_dt(opcode: int) -> Operation:
    return make_operation(opcode, "FX07", "LD", [reg((opcode >> 8) & 0xF), "DT"])

def execute_ld_vx_dt(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.delay_timer

def decode_ld_dt(opcode: int) -> Operation:
    return make_operation(opcode, "FX15", "LD", ["DT", reg((opcode >> 8) & 0xF)])

def execute_ld_dt(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.delay_timer = state.v[op.x]

def decode_ld_st(opcode: int) -> Operation:
    return make_operation(opcode, "FX18", "LD", ["ST", reg((opcode >> 8) & 0xF)])

def execute_ld_st(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.sound_timer = state.v[op.x]

# --- ADD I, Vx ---
def decode_add_i(opcode: int) -> Operation:
    return make_operation(opcode, "FX1E", "ADD", ["I", reg((opcode >> 8) & 0xF)])

# @intent:responsibility I += VX。Iは16bitレジスタとして折り返します。VFは変化しません。
def execute_add_i(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.i = (state.i + state.v[op.x]) & 0xFFFF

# --- LD F, Vx ---
def decode_ld_font(opcode: int) -> Operation:
    return make_operation(opcode, "FX29", "LD", ["F", reg((opcode >> 8) & 0xF)])

# @intent:responsibility VXの文字グリフの先頭アドレスをIに設定します。
def execute_ld_font(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.i = FONT_START + state.v[op.x] * GLYPH_SIZE

# --- LD B, Vx ---
def decode_ld_bcd(opcode: int) -> Operation:
    return make_operation(opcode, "FX33", "LD", ["B", reg((opcode >> 8) & 0xF)])

# @intent:responsibility VXの10進3桁を I, I+1, I+2 に格納します。
def execute_ld_bcd(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    value = state.v[op.x]
    check_range(bus, state.i, 3)
    bus.write(state.i, value // 100)
    bus.write(state.i + 1, (value // 10) % 10)
    bus.write(state.i + 2, value % 10)

# --- LD [I], Vx ---
def decode_store(opcode: int) -> Operation:
    return make_operation(opcode, "FX55", "LD", ["[I]", reg((opcode >> 8) & 0xF)])

# @intent:responsibility V0..VX（VXを含む）をIから始まるメモリに格納します。
def execute_store(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    count = op.x + 1
    check_range(bus, state.i, count)
    for offset in range(count):
        bus.write(state.i + offset, state.v[offset])
    if ctx.quirks.load_store_increment_i:
        state.i = (state.i + count) & 0xFFFF

# --- LD Vx, [I] ---
def decode_load(opcode: int) -> Operation:
    return make_operation(opcode, "FX65", "LD", [reg((opcode >> 8) & 0xF), "[I]"])

# @intent:responsibility Iから始まるメモリをV0..VX（VXを含む）に読み込みます。
def execute_load(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    count = op.x + 1
    check_range(bus, state.i, count)
    for offset in range(count):
        state.v[offset] = bus.read(state.i + offset)
    if ctx.quirks.load_store_increment_i:
        state.i = (state.i + count) & 0xFFFF
