# tests/arch/chip8/test_memory_ops.py
"""
メモリ転送命令（FX1E, FX29, FX33, FX55, FX65）とフォント領域のテスト。
"""
import logging
import random

import pytest

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.font import FONT_SET, FONT_START, FONT_END
from chip8_tracer.arch.chip8.quirks import Quirks
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.arch.chip8.instructions import decode_opcode, execute_instruction, ExecutionContext
from chip8_tracer.common.errors import OutOfBounds

# @intent:test_suite Iを起点とするメモリ転送の結果とIの扱いを検証します。

class TestBcdAndIndex:
    def test_bcd(self, cpu, bus, load_words):
        load_words(bus, 0x609D, 0xA300, 0xF033)
        for _ in range(3):
            cpu.step()
        assert [bus.peek(0x300 + k) for k in range(3)] == [1, 5, 7]
        assert cpu.get_state().i == 0x300

    def test_bcd_of_zero_and_max(self, cpu, bus, load_words):
        load_words(bus, 0x60FF, 0xA300, 0xF033, 0x6100, 0xA310, 0xF133)
        for _ in range(6):
            cpu.step()
        assert [bus.peek(0x300 + k) for k in range(3)] == [2, 5, 5]
        assert [bus.peek(0x310 + k) for k in range(3)] == [0, 0, 0]

    # @intent:test_case_wrap FX1EはIを16bitで折り返し、VFを変更しないことを検証します。
    def test_add_to_index_wraps(self, bus):
        state = Chip8CpuState()
        state.i = 0xFFFF
        state.v[0] = 2
        state.vf = 9
        execute_instruction(decode_opcode(0xF01E), state, bus, ExecutionContext())
        assert state.i == 0x0001
        assert state.vf == 9

    def test_font_address(self, cpu, bus, load_words):
        load_words(bus, 0x600A, 0xF029)
        cpu.step()
        cpu.step()
        assert cpu.get_state().i == FONT_START + 0xA * 5

class TestBlockTransfer:
    def test_store_registers(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0x6102, 0x6203, 0x6309, 0xA300, 0xF255)
        for _ in range(6):
            cpu.step()
        # V0..V2のみを格納し、Iは変化しない
        assert [bus.peek(0x300 + k) for k in range(4)] == [1, 2, 3, 0]
        assert cpu.get_state().i == 0x300

    def test_load_registers(self, cpu, bus, load_words):
        for k, value in enumerate([0x11, 0x22, 0x33]):
            bus.load(0x300 + k, value)
        load_words(bus, 0x63AA, 0xA300, 0xF265)
        for _ in range(3):
            cpu.step()
        state = cpu.get_state()
        assert list(state.v[:4]) == [0x11, 0x22, 0x33, 0xAA]
        assert state.i == 0x300

    # @intent:test_case_quirk load_store_increment_i の場合、転送後に I += X + 1 となることを検証します。
    def test_increment_i_quirk(self, bus, load_words):
        cpu = Chip8Cpu(bus, rng=random.Random(0), quirks=Quirks(load_store_increment_i=True))
        load_words(bus, 0xA300, 0xF255, 0xF065)
        for _ in range(2):
            cpu.step()
        assert cpu.get_state().i == 0x303
        cpu.step()
        assert cpu.get_state().i == 0x304

    # @intent:test_case_atomic 転送範囲がアドレス空間末尾を越える場合、1バイトも書き込まずに停止することを検証します。
    def test_store_past_end_writes_nothing(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0x6102, 0x6203, 0xAFFE, 0xF255)
        for _ in range(4):
            cpu.step()
        with pytest.raises(OutOfBounds) as excinfo:
            cpu.step()
        assert excinfo.value.address == 0x1000
        assert bus.peek(0xFFE) == 0
        assert bus.peek(0xFFF) == 0
        assert cpu.get_state().pc == 0x208

    def test_load_past_end_faults(self, cpu, bus, load_words):
        load_words(bus, 0xAFFF, 0xF165)
        cpu.step()
        with pytest.raises(OutOfBounds):
            cpu.step()
        assert cpu.get_state().v[0] == 0

class TestFontRegion:
    # @intent:test_case_font_layout 起動直後、フォントが配置されインタプリタ領域の残りは0であることを検証します。
    def test_font_installed(self, cpu, bus):
        assert bytes(bus.peek(a) for a in range(FONT_START, FONT_END + 1)) == FONT_SET
        assert all(bus.peek(a) == 0 for a in range(FONT_END + 1, 0x200))

    # @intent:test_case_protect 実行中のプログラムからのフォント領域への書き込みは無視されることを検証します。
    def test_program_cannot_overwrite_font(self, cpu, bus, load_words, caplog):
        load_words(bus, 0xA000, 0x6055, 0xF055)
        with caplog.at_level(logging.WARNING, logger="chip8_tracer.transport.bus"):
            for _ in range(3):
                cpu.step()
        assert bus.peek(0x000) == FONT_SET[0]
        assert "read-only" in caplog.text
