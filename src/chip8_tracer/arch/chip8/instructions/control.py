# src/chip8_tracer/arch/chip8/instructions/control.py
"""
制御命令（ジャンプ、サブルーチン、条件スキップ）の実装。
"""
import logging

from chip8_tracer.core.snapshot import Operation
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import ExecutionContext, make_operation, reg, byte, addr, skip_if

logger = logging.getLogger(__name__)

# --- SYS ---
# @intent:responsibility 0NNN (機械語ルーチン呼び出し) をデコードします。
def decode_sys(opcode: int) -> Operation:
    return make_operation(opcode, "0NNN", "SYS", [addr(opcode & 0xFFF)])

# @intent:responsibility 0NNNを実行します。実機のCPUコードは存在しないため無視します。
def execute_sys(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    logger.debug("Ignoring SYS %s at PC 0x%03X", addr(op.nnn), (state.pc - op.length) & 0xFFFF)

# --- RET ---
def decode_ret(opcode: int) -> Operation:
    return make_operation(opcode, "00EE", "RET")

# @intent:responsibility スタックから戻りアドレスをポップしてPCに設定します。
# @intent:rationale CALL時に積むのはフェッチ後のPC（次の命令）なので、ポップした値に追加の加算はしません。
def execute_ret(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.pc = state.pop()

# --- JP ---
def decode_jp(opcode: int) -> Operation:
    return make_operation(opcode, "1NNN", "JP", [addr(opcode & 0xFFF)])

def execute_jp(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.pc = op.nnn

# --- CALL ---
def decode_call(opcode: int) -> Operation:
    return make_operation(opcode, "2NNN", "CALL", [addr(opcode & 0xFFF)])

# @intent:responsibility 次の命令のアドレスをスタックにプッシュしてからジャンプします。
def execute_call(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    # state.pc はCPU.stepで既に次の命令を指している
    state.push(state.pc)
    state.pc = op.nnn

# --- SE / SNE ---
def decode_se_byte(opcode: int) -> Operation:
    return make_operation(opcode, "3XNN", "SE", [reg((opcode >> 8) & 0xF), byte(opcode & 0xFF)])

def execute_se_byte(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    skip_if(state, state.v[op.x] == op.nn)

def decode_sne_byte(opcode: int) -> Operation:
    return make_operation(opcode, "4XNN", "SNE", [reg((opcode >> 8) & 0xF), byte(opcode & 0xFF)])

def execute_sne_byte(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    skip_if(state, state.v[op.x] != op.nn)

def decode_se_reg(opcode: int) -> Operation:
    return make_operation(opcode, "5XY0", "SE", [reg((opcode >> 8) & 0xF), reg((opcode >> 4) & 0xF)])

def execute_se_reg(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    skip_if(state, state.v[op.x] == state.v[op.y])

def decode_sne_reg(opcode: int) -> Operation:
    return make_operation(opcode, "9XY0", "SNE", [reg((opcode >> 8) & 0xF), reg((opcode >> 4) & 0xF)])

def execute_sne_reg(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    skip_if(state, state.v[op.x] != state.v[op.y])

# --- JP V0 ---
def decode_jp_v0(opcode: int) -> Operation:
    return make_operation(opcode, "BNNN", "JP", ["V0", addr(opcode & 0xFFF)])

# @intent:responsibility NNN + V0 へジャンプします。範囲外になった場合は次のフェッチでOutOfBoundsとなります。
def execute_jp_v0(state: Chip8CpuState, bus: Bus, op: Operation, ctx: ExecutionContext) -> None:
    state.pc = op.nnn + state.v[0]
