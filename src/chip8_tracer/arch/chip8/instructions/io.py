# src/chip8_tracer/arch/chip8/instructions/io.py
"""
画面とキー入力に関わる命令の実装。
"""
from chip8_tracer.core.snapshot import Operation
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.arch.chip8.keypad import KEY_COUNT
from .base import ExecutionContext, make_operation, reg, check_range, skip_if

# --- CLS ---
def decode_cls(opcode: int) -> Operation:
    return make_operation(opcode, "00E0", "CLS")

def execute_cls(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.framebuffer.clear()

# --- DRW ---
def decode_drw(opcode: int) -> Operation:
    return make_operation(opcode, "DXYN", "DRW", [reg((opcode >> 8) & 0xF), reg((opcode >> 4) & 0xF), f"#{opcode & 0xF:X}"])

# @intent:responsibility memory[I..I+N) のスプライトを (VX, VY) にXOR描画し、衝突をVFに設定します。
def execute_drw(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    check_range(bus, state.i, op.n)
    sprite = [bus.read(state.i + row) for row in range(op.n)]
    collision = state.framebuffer.draw_sprite(state.v[op.x], state.v[op.y], sprite, ctx.quirks.sprite_edge)
    state.vf = 1 if collision else 0

# --- SKP / SKNP ---
# @intent:utility_function VXが指すキーが押されているか。0x0-0xF以外の値は「押されていない」とみなします。
def _key_pressed(state: Chip8CpuState, key: int) -> bool:
    return key < KEY_COUNT and state.keys[key]

def decode_skp(opcode: int) -> Operation:
    return make_operation(opcode, "EX9E", "SKP", [reg((opcode >> 8) & 0xF)])

def execute_skp(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    skip_if(state, _key_pressed(state, state.v[op.x]))

def decode_sknp(opcode: int) -> Operation:
    return make_operation(opcode, "EXA1", "SKNP", [reg((opcode >> 8) & 0xF)])

def execute_sknp(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    skip_if(state, not _key_pressed(state, state.v[op.x]))

# --- LD Vx, K ---
def decode_wait_key(opcode: int) -> Operation:
    return make_operation(opcode, "FX0A", "LD", [reg((opcode >> 8) & 0xF), "K"])

# @intent:responsibility 新たなキー押下（未押下→押下）を待ち、そのキー番号をVXに格納します。
# @intent:rationale 待機が中断された場合はPCを命令の先頭に戻し、次のstepで待機をやり直します。
def execute_wait_key(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.key_wait_register = op.x
    try:
        key = ctx.wait_for_key()
    finally:
        state.key_wait_register = None
    if key is None:
        state.pc = (state.pc - op.length) & 0xFFFF
        return
    state.v[op.x] = key
