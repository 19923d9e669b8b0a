# src/chip8_tracer/arch/chip8/keypad.py
"""
CHIP-8 16キー入力。

Keypadは外部（UIのキーイベントなど）から押下・解放を受け取り、CPUが1サイクルに1回
呼び出すキーソースとして最新の状態スナップショットを返します。
"""
import threading
from typing import List, Optional

from chip8_tracer.common.types import KeyState

KEY_COUNT = 16


# @intent:responsibility 直前のラッチと新しいスナップショットを比較し、新たに押されたキーを返します。
# @intent:rationale FX0Aは押されっぱなしのキーで即座に解決してはならないため、レベルではなくエッジを見ます。
def find_pressed_edge(previous: KeyState, current: KeyState) -> Optional[int]:
    for key in range(KEY_COUNT):
        if current[key] and not previous[key]:
            return key
    return None


# @intent:responsibility スレッド安全なキー状態の保持とスナップショット提供を行います。
class Keypad:
    """
    UIスレッドが press/release を呼び、CPUスレッドが snapshot（または呼び出し）で読み出します。
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._keys: List[bool] = [False] * KEY_COUNT

    def press(self, key: int) -> None:
        self._check_key(key)
        with self._lock:
            self._keys[key] = True

    def release(self, key: int) -> None:
        self._check_key(key)
        with self._lock:
            self._keys[key] = False

    def release_all(self) -> None:
        with self._lock:
            self._keys = [False] * KEY_COUNT

    def is_pressed(self, key: int) -> bool:
        self._check_key(key)
        with self._lock:
            return self._keys[key]

    def snapshot(self) -> List[bool]:
        with self._lock:
            return list(self._keys)

    # キーソースとしてCPUに渡せるようにする
    def __call__(self) -> List[bool]:
        return self.snapshot()

    @staticmethod
    def _check_key(key: int) -> None:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Key {key} is not a CHIP-8 key (0x0-0xF)")
