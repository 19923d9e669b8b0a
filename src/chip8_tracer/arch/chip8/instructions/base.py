# src/chip8_tracer/arch/chip8/instructions/base.py
"""
CHIP-8命令実装用の共通ユーティリティ。
"""
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from chip8_tracer.core.snapshot import Operation
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.quirks import Quirks
from chip8_tracer.common.errors import OutOfBounds


# @intent:responsibility 命令実行時にCPUから渡される外部能力（乱数源、処理系設定、キー待ち）を保持します。
# @intent:rationale 乱数源を明示的に注入することで、CXNNをシード固定で再現可能にします。
@dataclass
class ExecutionContext:
    rng: random.Random = field(default_factory=random.Random)
    quirks: Quirks = field(default_factory=Quirks)
    # FX0A用。新たに押されたキー番号を返す。待機が中断された場合はNone。
    wait_for_key: Callable[[], Optional[int]] = lambda: None


# @intent:utility_function オペコードからオペランドフィールドを切り出してOperationを生成します。
def make_operation(opcode: int, pattern: str, mnemonic: str, operands: Optional[List[str]] = None) -> Operation:
    return Operation(
        opcode_hex=f"{opcode:04X}",
        mnemonic=mnemonic,
        operands=operands or [],
        pattern=pattern,
        x=(opcode >> 8) & 0xF,
        y=(opcode >> 4) & 0xF,
        n=opcode & 0xF,
        nn=opcode & 0xFF,
        nnn=opcode & 0xFFF,
    )


# @intent:utility_function オペランド表示用の書式。
def reg(index: int) -> str:
    return f"V{index:X}"

def byte(value: int) -> str:
    return f"#{value:02X}"

def addr(value: int) -> str:
    return f"#{value:03X}"


# @intent:utility_function I起点のブロック転送が全てアドレス空間内に収まるか、実行前に検査します。
# @intent:rationale 転送の途中で範囲外に達して状態が半端に書き換わるのを防ぎます。
def check_range(bus: Bus, start: int, length: int) -> None:
    if length <= 0:
        return
    size = bus.get_address_space_size()
    end = start + length - 1
    if start < 0 or end >= size:
        bad = start if start < 0 or start >= size else size
        raise OutOfBounds(bad, f"Block 0x{start:04X}-0x{end:04X} crosses the end of the 4096-byte address space")


# @intent:utility_function 条件が成立した場合、次の命令をスキップします（PCは既に+2済み）。
def skip_if(state, condition: bool) -> None:
    if condition:
        state.pc = (state.pc + 2) & 0xFFFF
