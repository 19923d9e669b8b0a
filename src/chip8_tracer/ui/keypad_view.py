# src/chip8_tracer/ui/keypad_view.py
"""
CHIP-8の16キーを表示・操作するウィジェット。

ホストのキーボード入力はキーマップを介してCHIP-8のキーに変換し、Keypadへ伝えます。
"""
import logging
from typing import Dict, Optional

from PySide6.QtWidgets import QWidget, QGridLayout, QPushButton
from PySide6.QtCore import Qt

from chip8_tracer.arch.chip8.keypad import Keypad
from chip8_tracer.config.models import DEFAULT_KEYMAP
from chip8_tracer.ui.fonts import get_monospace_font

logger = logging.getLogger(__name__)

# COSMAC VIPの16キーの物理配置
KEYPAD_LAYOUT = [
    [0x1, 0x2, 0x3, 0xC],
    [0x4, 0x5, 0x6, 0xD],
    [0x7, 0x8, 0x9, 0xE],
    [0xA, 0x0, 0xB, 0xF],
]

STYLE_RELEASED = "QPushButton { background-color: #202020; color: #BBBBBB; border: 1px solid #333; }"
STYLE_PRESSED = "QPushButton { background-color: #2A82DA; color: #000000; border: 1px solid #2A82DA; }"

# @intent:responsibility キーパッドの状態表示と、ボタン・キーボードからの入力をKeypadへ中継します。
class KeypadView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self._keypad: Optional[Keypad] = None
        self._keymap: Dict[str, int] = dict(DEFAULT_KEYMAP)
        self._buttons: Dict[int, QPushButton] = {}

        grid = QGridLayout(self)
        grid.setSpacing(4)
        for row, keys in enumerate(KEYPAD_LAYOUT):
            for col, key in enumerate(keys):
                button = QPushButton(f"{key:X}")
                button.setFont(get_monospace_font(12, bold=True))
                button.setFixedSize(44, 44)
                button.setFocusPolicy(Qt.NoFocus)
                button.setStyleSheet(STYLE_RELEASED)
                button.pressed.connect(lambda k=key: self._set_key(k, True))
                button.released.connect(lambda k=key: self._set_key(k, False))
                grid.addWidget(button, row, col)
                self._buttons[key] = button

    def set_keypad(self, keypad: Optional[Keypad]) -> None:
        self._keypad = keypad
        self.update_keys()

    def set_keymap(self, keymap: Dict[str, int]) -> None:
        self._keymap = {name.upper(): key for name, key in keymap.items()}

    # @intent:responsibility ホストのキー名をCHIP-8のキーに変換して押下・解放を伝えます。
    # @intent:return キーマップに存在するキーであればTrue。
    def handle_key_event(self, key_name: str, pressed: bool) -> bool:
        key = self._keymap.get(key_name.upper())
        if key is None:
            return False
        self._set_key(key, pressed)
        return True

    def _set_key(self, key: int, pressed: bool) -> None:
        if self._keypad is None:
            return
        if pressed:
            self._keypad.press(key)
        else:
            self._keypad.release(key)
        logger.debug("Key 0x%X %s", key, "pressed" if pressed else "released")
        self.update_keys()

    # @intent:responsibility Keypadの現在の状態をボタン表示に反映します。
    def update_keys(self) -> None:
        state = self._keypad.snapshot() if self._keypad else [False] * 16
        for key, button in self._buttons.items():
            button.setStyleSheet(STYLE_PRESSED if state[key] else STYLE_RELEASED)
