# src/chip8_tracer/arch/chip8/instructions/alu.py
"""
算術論理演算命令の実装。

VFをフラグとして使う命令は、結果をVXに書いた後にVFを書き込みます。
そのためVFをオペランドにした場合でも、最終的なVFはフラグ値になります。
"""
from chip8_tracer.core.snapshot import Operation
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import ExecutionContext, make_operation, reg, byte

# --- ADD Vx, byte ---
def decode_add_byte(opcode: int) -> Operation:
    return make_operation(opcode, "7XNN", "ADD", [reg((opcode >> 8) & 0xF), byte(opcode & 0xFF)])

# @intent:responsibility VXにNNを加算します（mod 256）。キャリーはVFに影響しません。
def execute_add_byte(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = (state.v[op.x] + op.nn) & 0xFF

# --- 8XY_ ---
# @intent:map 8XYN命令の下位ニブルからパターンとニーモニックへのテーブル。
REGISTER_OPS = {
    0x1: ("8XY1", "OR"),
    0x2: ("8XY2", "AND"),
    0x3: ("8XY3", "XOR"),
    0x4: ("8XY4", "ADD"),
    0x5: ("8XY5", "SUB"),
    0x6: ("8XY6", "SHR"),
    0x7: ("8XY7", "SUBN"),
    0xE: ("8XYE", "SHL"),
}

def decode_register_op(opcode: int, pattern: str, mnemonic: str) -> Operation:
    return make_operation(opcode, pattern, mnemonic, [reg((opcode >> 8) & 0xF), reg((opcode >> 4) & 0xF)])

def execute_or(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.v[op.x] | state.v[op.y]

def execute_and(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.v[op.x] & state.v[op.y]

def execute_xor(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.v[op.x] ^ state.v[op.y]

# @intent:responsibility VX += VY。符号なし和が255を超えた場合VF=1。
def execute_add_reg(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    res = state.v[op.x] + state.v[op.y]
    state.v[op.x] = res & 0xFF
    state.vf = 1 if res > 0xFF else 0

# @intent:responsibility VX -= VY。ボローはint上で minuend < subtrahend として判定し、ボローなしでVF=1。
def execute_sub(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    v1, v2 = state.v[op.x], state.v[op.y]
    state.v[op.x] = (v1 - v2) & 0xFF
    state.vf = 0 if v1 < v2 else 1

# @intent:responsibility VX = VY - VX。ボローなしでVF=1。
def execute_subn(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    v1, v2 = state.v[op.x], state.v[op.y]
    state.v[op.x] = (v2 - v1) & 0xFF
    state.vf = 0 if v2 < v1 else 1

# @intent:responsibility 右シフト。押し出された最下位ビットをVFに格納します。
def execute_shr(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    src = state.v[op.y] if ctx.quirks.shift_uses_vy else state.v[op.x]
    state.v[op.x] = src >> 1
    state.vf = src & 0x01

# @intent:responsibility 左シフト。押し出された最上位ビットをVFに格納します。
def execute_shl(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    src = state.v[op.y] if ctx.quirks.shift_uses_vy else state.v[op.x]
    state.v[op.x] = (src << 1) & 0xFF
    state.vf = (src >> 7) & 0x01

# --- RND ---
def decode_rnd(opcode: int) -> Operation:
    return make_operation(opcode, "CXNN", "RND", [reg((opcode >> 8) & 0xF), byte(opcode & 0xFF)])

# @intent:responsibility 注入された乱数源から1バイトを引き、NNでマスクしてVXに格納します。
def execute_rnd(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = ctx.rng.getrandbits(8) & op.nn
