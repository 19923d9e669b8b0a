# src/chip8_tracer/ui/stack_view.py
"""
CHIP-8の戻りアドレススタックを表示するウィジェット。
"""
from PySide6.QtWidgets import QWidget, QVBoxLayout, QPlainTextEdit
from PySide6.QtGui import QTextOption

from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.ui.fonts import get_monospace_font

# @intent:responsibility 16段のスタックスロットとスタックポインタの位置を可視化します。
class StackView(QWidget):
    """
    スロット0から順に表示し、SP未満の使用中スロットのみアドレスを表示します。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)
        self.editor = QPlainTextEdit(self)
        self.editor.setFont(get_monospace_font(10))
        self.editor.setReadOnly(True)
        self.editor.setWordWrapMode(QTextOption.NoWrap)
        self.editor.setStyleSheet("background-color: #101010; color: #BBBBBB;")
        self.layout.addWidget(self.editor)

    def update_stack(self, state: Chip8CpuState) -> None:
        lines = []
        for slot, address in enumerate(state.stack):
            value = f"{address:03X}" if slot < state.sp else "---"
            marker = "  <- SP" if slot == state.sp else ""
            lines.append(f"{slot:X}: {value}{marker}")
        if state.sp >= len(state.stack):
            lines.append("(full)  <- SP")
        self.editor.setPlainText("\n".join(lines))

    def text(self) -> str:
        return self.editor.toPlainText()
