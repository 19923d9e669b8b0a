# tests/conftest.py
"""
テスト共通のフィクスチャ。
"""
import os
import random

# PySide6のウィジェットをディスプレイなしで生成するため、QApplication生成前に設定する
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from chip8_tracer.transport.bus import Bus, RAM, ROM
from chip8_tracer.loader.loader import ProgramLoader
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.state import PROGRAM_START


class ScriptedKeys:
    """
    呼び出しごとに用意したキー状態を順に返すキーソース。
    用意した状態を使い切った後は最後の状態を返し続けます。
    """
    def __init__(self, *frames):
        self.frames = [list(frame) for frame in frames]
        self.current = [False] * 16
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.frames:
            self.current = self.frames.pop(0)
        return list(self.current)


def keys_with(*pressed):
    """指定したキーだけが押されている16キーの状態を返します。"""
    return [key in pressed for key in range(16)]


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def bus():
    # インタプリタ領域はROM、プログラム領域はRAM
    bus = Bus()
    bus.register_device(0x000, 0x1FF, ROM(0x200))
    bus.register_device(0x200, 0xFFF, RAM(0xE00))
    return bus


@pytest.fixture
def cpu(bus):
    return Chip8Cpu(bus, rng=random.Random(1234))


@pytest.fixture
def load_words():
    """16bitの命令語列をビッグエンディアンでロードする関数を返します。"""
    def _load(bus, *words, start=PROGRAM_START):
        data = bytearray()
        for word in words:
            data += bytes([(word >> 8) & 0xFF, word & 0xFF])
        return ProgramLoader().load_bytes(bytes(data), bus, start)
    return _load


@pytest.fixture
def scripted_keys():
    return ScriptedKeys


@pytest.fixture
def pressed():
    return keys_with
