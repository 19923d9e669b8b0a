# tests/loader/test_loader.py
"""
chip8_tracer.loader.loaderモジュールの単体テスト。
"""
import pytest

from chip8_tracer.loader.loader import ProgramLoader
from chip8_tracer.common.errors import LoadOverflow

# @intent:test_suite ROMイメージのロード範囲と失敗時の非破壊性を検証します。

class TestProgramLoader:
    def test_load_bytes(self, bus):
        count = ProgramLoader().load_bytes(b"\x60\x05\x12\x00", bus)
        assert count == 4
        assert [bus.peek(0x200 + k) for k in range(4)] == [0x60, 0x05, 0x12, 0x00]
        # ロードはバスアクセスとして記録しない
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_capacity 0xE00バイトちょうどは収まり、1バイトでも超えれば何も書き込まないことを検証します。
    def test_exact_capacity(self, bus):
        data = bytes([0xAB]) * 0xE00
        assert ProgramLoader().load_bytes(data, bus) == 0xE00
        assert bus.peek(0xFFF) == 0xAB

    def test_overflow_writes_nothing(self, bus):
        data = bytes([0xCD]) * 0xE01
        with pytest.raises(LoadOverflow) as excinfo:
            ProgramLoader().load_bytes(data, bus)
        assert excinfo.value.size == 0xE01
        assert excinfo.value.capacity == 0xE00
        assert bus.peek(0x200) == 0
        assert bus.peek(0xFFF) == 0

    def test_empty_program(self, bus):
        assert ProgramLoader().load_bytes(b"", bus) == 0

    def test_load_file(self, bus, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(bytes([0x00, 0xE0, 0xA2, 0x2A]))
        assert ProgramLoader().load_file(str(rom), bus) == 4
        assert bus.peek(0x202) == 0xA2

    def test_load_missing_file(self, bus, tmp_path):
        with pytest.raises(OSError):
            ProgramLoader().load_file(str(tmp_path / "missing.ch8"), bus)
