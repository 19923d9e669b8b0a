"""
致命的エラーの定義。

CHIP-8の実行は入力とプログラムが同じなら決定的であるため、ここに定義される
エラーは全て「不正なプログラム」か「実装のバグ」を意味し、再試行の対象になりません。
CPUはこれらを送出した時点で停止し、reset()されるまで同じエラーを送出し続けます。
"""
from typing import Optional


# @intent:responsibility CHIP-8インタプリタが送出する全ての致命的エラーの基底クラスです。
# @intent:rationale pcは命令を実行したCPUが後から設定するため、メッセージは__str__で都度組み立てます。
class Chip8Error(Exception):
    """CHIP-8インタプリタの致命的エラー。"""
    def __init__(self, pc: Optional[int] = None):
        super().__init__()
        self.pc = pc

    def _describe(self) -> str:
        return "CHIP-8 fault"

    def __str__(self) -> str:
        where = f" at PC 0x{self.pc:03X}" if self.pc is not None else ""
        return f"{self._describe()}{where}"


# @intent:responsibility 定義されていない命令語を検出したことを表します。
class UnknownOpcode(Chip8Error):
    def __init__(self, opcode: int, pc: Optional[int] = None):
        super().__init__(pc)
        self.opcode = opcode

    def _describe(self) -> str:
        return f"Unknown opcode 0x{self.opcode:04X}"


# @intent:responsibility 17段目のサブルーチン呼び出しを検出したことを表します。
class StackOverflow(Chip8Error):
    def __init__(self, depth: int, pc: Optional[int] = None):
        super().__init__(pc)
        self.depth = depth

    def _describe(self) -> str:
        return f"Stack overflow (call depth {self.depth})"


# @intent:responsibility 空のスタックからのリターンを検出したことを表します。
class StackUnderflow(Chip8Error):
    def _describe(self) -> str:
        return "Stack underflow: return with empty stack"


# @intent:responsibility 4096バイトのアドレス空間外へのアクセスを表します。
# @intent:rationale バスは従来から範囲外アクセスをIndexErrorで通知しているため、IndexErrorも継承します。
class OutOfBounds(Chip8Error, IndexError):
    def __init__(self, address: int, message: Optional[str] = None, pc: Optional[int] = None):
        super().__init__(pc)
        self.address = address
        self.message = message

    def _describe(self) -> str:
        return self.message or f"Address 0x{self.address:04X} is outside the 4096-byte address space"


# @intent:responsibility プログラムがロード領域 (0x200-0xFFF) に収まらないことを表します。
class LoadOverflow(Chip8Error, ValueError):
    def __init__(self, size: int, capacity: int):
        super().__init__()
        self.size = size
        self.capacity = capacity

    def _describe(self) -> str:
        return f"Program of {self.size} bytes exceeds the {self.capacity}-byte load region"
