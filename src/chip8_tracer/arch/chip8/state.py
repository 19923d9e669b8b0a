# src/chip8_tracer/arch/chip8/state.py
"""
CHIP-8 CPU固有の状態定義。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from chip8_tracer.core.state import CpuState
from chip8_tracer.arch.chip8.display import Framebuffer
from chip8_tracer.arch.chip8.keypad import KEY_COUNT
from chip8_tracer.common.errors import StackOverflow, StackUnderflow

# @intent:constant CHIP-8のアドレス空間とスタックの寸法。
MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
STACK_DEPTH = 16
REGISTER_COUNT = 16

# @intent:responsibility CHIP-8 CPUの全てのレジスタ、スタック、タイマ、入力ラッチ、フレームバッファを保持します。
# @intent:rationale Vはbytearrayとし、8bit範囲外の値の代入を型レベルで拒否します。
@dataclass
class Chip8CpuState(CpuState):
    """
    CHIP-8 CPUの状態を保持するデータクラス。
    spは「次に書き込むスタックスロット」のインデックスです。
    """
    pc: int = PROGRAM_START
    v: bytearray = field(default_factory=lambda: bytearray(REGISTER_COUNT))  # V0-VF
    i: int = 0x000  # Address Register
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    delay_timer: int = 0
    sound_timer: int = 0
    keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    framebuffer: Framebuffer = field(default_factory=Framebuffer)
    # FX0Aでキー入力を待っている間、格納先レジスタ番号を保持する
    key_wait_register: Optional[int] = None

    @property
    def vf(self) -> int:
        return self.v[0xF]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[0xF] = value

    # @intent:responsibility 戻りアドレスをスタックに積みます。
    # @intent:pre-condition スタックに空きがない場合、状態を変更せずにStackOverflowを送出します。
    def push(self, address: int) -> None:
        if self.sp >= STACK_DEPTH:
            raise StackOverflow(self.sp + 1)
        self.stack[self.sp] = address
        self.sp += 1

    # @intent:responsibility スタックから戻りアドレスを取り出します。
    # @intent:pre-condition スタックが空の場合、状態を変更せずにStackUnderflowを送出します。
    def pop(self) -> int:
        if self.sp <= 0:
            raise StackUnderflow()
        self.sp -= 1
        return self.stack[self.sp]
