# src/chip8_tracer/arch/chip8/instructions/__init__.py
"""
CHIP-8命令セット実装パッケージ。
"""
from typing import Optional

from chip8_tracer.transport.bus import Bus
from chip8_tracer.core.snapshot import Operation
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.common.errors import UnknownOpcode
from .base import ExecutionContext
from .maps import DECODE_MAP, EXECUTE_MAP

# @intent:responsibility 16bitの命令語をデコードします。副作用を持たない純粋関数です。
# @intent:post-condition 該当する命令がない場合はUnknownOpcodeを送出します（黙って無視しない）。
def decode_opcode(opcode: int, pc: Optional[int] = None) -> Operation:
    """
    CHIP-8の命令語をデコードし、オペランドを切り出したOperationオブジェクトを返します。
    pcはエラー報告用のみに使用します。
    """
    operation = DECODE_MAP[(opcode >> 12) & 0xF](opcode)
    if operation is None:
        raise UnknownOpcode(opcode, pc)
    return operation

# @intent:responsibility デコードされたCHIP-8命令を実行します。
def execute_instruction(operation: Operation, state: Chip8CpuState, bus: Bus, ctx: ExecutionContext) -> None:
    executor = EXECUTE_MAP.get(operation.pattern)
    if executor is None:
        raise UnknownOpcode(operation.opcode)
    executor(state, bus, operation, ctx)
