"""
逆アセンブルコードを表示するウィジェット。
"""
from typing import List, Optional, Tuple

from PySide6.QtWidgets import QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem, QHeaderView
from PySide6.QtGui import QColor

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.ui.fonts import get_monospace_font

# 一度に逆アセンブルするバイト数（256命令分）
DISASSEMBLY_WINDOW = 0x200

COLOR_HIGHLIGHT = QColor("#404000")
COLOR_NORMAL = QColor("#101010")

# @intent:responsibility 逆アセンブルされたコードを表形式で表示し、現在のPCをハイライトします。
class CodeView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget()
        self.table.setColumnCount(3)
        self.table.setHorizontalHeaderLabels(["Address", "Bytes", "Mnemonic"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.Stretch)
        self.table.setFont(get_monospace_font(10))
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setShowGrid(False)
        self.table.setStyleSheet("background-color: #101010; color: #BBBBBB;")
        self.layout.addWidget(self.table)

        self._cpu: Optional[AbstractCpu] = None
        self.highlighted_row = -1
        # 現在表示している逆アセンブルデータ [(addr, hex, mnemonic), ...]
        self.disassembled_data: List[Tuple[int, str, str]] = []

    def set_cpu(self, cpu: AbstractCpu) -> None:
        self._cpu = cpu
        self.reset_cache()

    # @intent:responsibility PC周辺のメモリを逆アセンブルして表示を更新します。
    def update_code(self, pc: int) -> None:
        """
        PCが現在の表示範囲内の命令境界にあれば、再逆アセンブルせずにハイライト移動のみ行います。
        CHIP-8の命令は2バイト固定ですが、データ混在により境界がずれることがあるため、
        PCが一覧に見つからない場合はPCを先頭にして作り直します。
        """
        if self._cpu is None:
            return

        row_index = self._find_row(pc)
        if row_index < 0:
            self.disassembled_data = self._cpu.disassemble(pc, DISASSEMBLY_WINDOW)
            self._populate()
            row_index = self._find_row(pc)

        self._highlight(row_index)

    def _find_row(self, pc: int) -> int:
        for i, (addr, _, _) in enumerate(self.disassembled_data):
            if addr == pc:
                return i
        return -1

    def _populate(self) -> None:
        self.table.setRowCount(len(self.disassembled_data))
        for row, (addr, hex_dump, mnemonic) in enumerate(self.disassembled_data):
            self.table.setItem(row, 0, QTableWidgetItem(f"{addr:03X}"))
            self.table.setItem(row, 1, QTableWidgetItem(hex_dump))
            self.table.setItem(row, 2, QTableWidgetItem(mnemonic))
        self.highlighted_row = -1

    def _highlight(self, row_index: int) -> None:
        # 前回のハイライト行だけを戻す
        for row, color in ((self.highlighted_row, COLOR_NORMAL), (row_index, COLOR_HIGHLIGHT)):
            if 0 <= row < self.table.rowCount():
                for col in range(3):
                    self.table.item(row, col).setBackground(color)
        self.highlighted_row = row_index

        if row_index >= 0:
            # 数行先まで見えるようにスクロールする
            look_ahead = min(row_index + 5, self.table.rowCount() - 1)
            self.table.scrollToItem(self.table.item(row_index, 0), QTableWidget.EnsureVisible)
            self.table.scrollToItem(self.table.item(look_ahead, 0), QTableWidget.EnsureVisible)

    # @intent:responsibility キャッシュをクリアします。プログラムのロードなどでメモリが変わった時に呼び出します。
    def reset_cache(self) -> None:
        self.disassembled_data = []
        self.highlighted_row = -1
        self.table.setRowCount(0)
