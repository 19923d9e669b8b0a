# src/chip8_tracer/ui/register_view.py
"""
CPUのレジスタを表示するウィジェット。
AbstractCpuのレイアウト情報を利用して動的にUIを構築します。
"""
from typing import Dict, Optional
from PySide6.QtWidgets import QWidget, QVBoxLayout, QGridLayout, QLabel, QGroupBox
from PySide6.QtCore import Qt

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.ui.fonts import get_monospace_font_family

COLOR_VALUE = "#FFD700"    # 通常
COLOR_CHANGED = "#FF6060"  # 前回の更新から値が変化した

# @intent:responsibility CPUのレジスタ値を表示し、直前の更新から変化した値を強調します。
class RegisterView(QWidget):
    """
    CPUのレジスタ状態を表示するウィジェット。
    16本のVレジスタが縦に長くならないよう、各グループを4列のグリッドで配置します。
    """
    COLUMNS = 4

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: #121212; color: #BBBBBB;")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self._font_family = get_monospace_font_family()
        self._register_labels: Dict[str, QLabel] = {}
        self._register_widths: Dict[str, int] = {}
        self._last_values: Dict[str, int] = {}
        self._cpu: Optional[AbstractCpu] = None

    # @intent:responsibility 表示対象のCPUを設定し、UIレイアウトを構築します。
    def set_cpu(self, cpu: AbstractCpu) -> None:
        self._cpu = cpu
        self._setup_ui()
        self.update_registers()

    def _setup_ui(self):
        while self.layout.count():
            item = self.layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self._register_labels.clear()
        self._register_widths.clear()
        self._last_values.clear()

        for group in self._cpu.get_register_layout():
            group_box = QGroupBox(group.group_name)
            group_box.setStyleSheet("""
                QGroupBox { font-weight: bold; border: 1px solid #222; border-radius: 4px; margin-top: 20px; color: #EEE; }
                QGroupBox::title { subcontrol-origin: margin; left: 10px; padding: 0 5px; color: #00AAAA; }
            """)
            grid = QGridLayout(group_box)
            grid.setContentsMargins(10, 15, 10, 10)
            grid.setHorizontalSpacing(12)

            for index, reg in enumerate(group.registers):
                hex_width = (reg.width + 3) // 4  # 16bit -> 4桁, 8bit -> 2桁
                self._register_widths[reg.name] = hex_width

                label_name = QLabel(f"{reg.name}:")
                label_name.setStyleSheet("font-weight: bold; color: #BBBBBB;")
                label_value = QLabel("0" * hex_width)
                label_value.setAlignment(Qt.AlignRight)
                label_value.setStyleSheet(self._value_style(COLOR_VALUE))

                row, col = divmod(index, self.COLUMNS)
                grid.addWidget(label_name, row, col * 2)
                grid.addWidget(label_value, row, col * 2 + 1)
                self._register_labels[reg.name] = label_value

            self.layout.addWidget(group_box)

        self.layout.addStretch()

    def _value_style(self, color: str) -> str:
        return f"font-family: '{self._font_family}', monospace; color: {color};"

    # @intent:responsibility 現在のCPU状態を取得し、レジスタの表示値を更新します。
    def update_registers(self) -> None:
        if not self._cpu:
            return

        for name, value in self._cpu.get_register_map().items():
            label = self._register_labels.get(name)
            if label is None:
                continue
            label.setText(f"{value:0{self._register_widths[name]}X}")
            changed = name in self._last_values and self._last_values[name] != value
            label.setStyleSheet(self._value_style(COLOR_CHANGED if changed else COLOR_VALUE))
            self._last_values[name] = value

    def get_value_text(self, name: str) -> str:
        return self._register_labels[name].text()
