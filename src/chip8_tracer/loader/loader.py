# chip8_tracer/loader/loader.py
"""
プログラムローダーモジュール。
CHIP-8のROMイメージ（生バイナリ）をプログラム領域 (0x200-) にロードします。
"""
import logging
from typing import Union

from chip8_tracer.transport.bus import Bus
from chip8_tracer.common.errors import LoadOverflow
from chip8_tracer.arch.chip8.state import PROGRAM_START

logger = logging.getLogger(__name__)

class ProgramLoader:
    """
    生バイナリ形式のプログラムをバスにロードするローダー。
    """
    # @intent:responsibility バイト列を指定アドレスから書き込み、書き込んだバイト数を返します。
    # @intent:pre-condition データはロード領域の末尾 (0xFFF) を超えてはなりません。超える場合は1バイトも書き込みません。
    def load_bytes(self, data: Union[bytes, bytearray], bus: Bus, start: int = PROGRAM_START) -> int:
        capacity = bus.get_address_space_size() - start
        if len(data) > capacity:
            raise LoadOverflow(len(data), capacity)

        for offset, byte in enumerate(data):
            bus.load(start + offset, byte)

        logger.info("Loaded %d bytes at 0x%03X", len(data), start)
        return len(data)

    # @intent:responsibility ファイルを読み込み、プログラム領域にロードします。
    def load_file(self, file_path: str, bus: Bus, start: int = PROGRAM_START) -> int:
        with open(file_path, 'rb') as f:
            data = f.read()
        logger.info("Loading program from %s", file_path)
        return self.load_bytes(data, bus, start)
