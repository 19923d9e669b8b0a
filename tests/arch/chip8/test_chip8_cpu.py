# tests/arch/chip8/test_chip8_cpu.py
"""
Chip8Cpuの命令サイクル、致命的エラー時の停止、状態公開のテスト。
"""
import pytest

from chip8_tracer.arch.chip8.state import STACK_DEPTH
from chip8_tracer.common.errors import UnknownOpcode, OutOfBounds

# @intent:test_suite CPU全体としての振る舞いを検証します。

class TestChip8Cpu:
    def test_initial_state(self, cpu):
        state = cpu.get_state()
        assert state.pc == 0x200
        assert state.sp == 0
        assert state.i == 0
        assert list(state.v) == [0] * 16
        assert state.stack == [0] * STACK_DEPTH
        assert not cpu.halted

    # @intent:test_case_scenario 6005 6103 8014 の実行結果を検証します。
    def test_add_scenario(self, cpu, bus, load_words):
        load_words(bus, 0x6005, 0x6103, 0x8014)
        snapshots = [cpu.step() for _ in range(3)]
        state = cpu.get_state()
        assert state.v[0] == 8
        assert state.v[1] == 3
        assert state.vf == 0
        assert state.pc == 0x206
        assert snapshots[-1].operation.to_text() == "ADD V0, V1"
        assert snapshots[-1].metadata.cycle_count == 3
        assert cpu.get_cycle_count() == 3

    # @intent:test_case_fault 未定義命令では状態を一切変更せずに停止し、reset()まで同じエラーを送出することを検証します。
    def test_unknown_opcode_halts(self, cpu, bus, load_words):
        load_words(bus, 0xFFFF)
        before = cpu.get_state().copy()

        with pytest.raises(UnknownOpcode) as excinfo:
            cpu.step()
        assert excinfo.value.opcode == 0xFFFF
        assert excinfo.value.pc == 0x200
        assert cpu.get_state() == before
        assert cpu.halted
        assert cpu.get_fault() is excinfo.value

        with pytest.raises(UnknownOpcode) as again:
            cpu.step()
        assert again.value is excinfo.value

        cpu.reset()
        assert not cpu.halted

    # @intent:test_case_fetch_end 最終バイトからのフェッチは2バイト目で範囲外となることを検証します。
    def test_fetch_at_last_byte(self, cpu, bus, load_words):
        load_words(bus, 0x1FFF)
        cpu.step()
        with pytest.raises(OutOfBounds) as excinfo:
            cpu.step()
        assert excinfo.value.address == 0x1000
        assert excinfo.value.pc == 0xFFF
        assert "0xFFF" in str(excinfo.value)

    # @intent:test_case_snapshot Snapshotの状態は以降の実行で変化しないことを検証します。
    def test_snapshot_is_independent(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0x6002, 0xA000, 0xD015, 0x2300)
        first = cpu.step()
        for _ in range(4):
            cpu.step()
        assert first.state.v[0] == 1
        assert first.state.sp == 0
        assert first.state.framebuffer.lit_count() == 0
        assert cpu.get_state().v[0] == 2

    def test_snapshot_records_bus_activity(self, cpu, bus, load_words):
        load_words(bus, 0x6007, 0xA300, 0xF055)
        cpu.step()
        cpu.step()
        snapshot = cpu.step()
        writes = [a for a in snapshot.bus_activity if a.access_type.value == "WRITE"]
        assert len(writes) == 1
        assert writes[0].address == 0x300
        assert writes[0].data == 7
        assert writes[0].previous_data == 0
        # フェッチの2バイト読み出しも記録される
        reads = [a.address for a in snapshot.bus_activity if a.access_type.value == "READ"]
        assert reads == [0x204, 0x205]

    def test_reset_keeps_program(self, cpu, bus, load_words):
        load_words(bus, 0x6001)
        cpu.step()
        cpu.reset()
        assert cpu.get_state().pc == 0x200
        assert cpu.get_state().v[0] == 0
        assert bus.peek(0x200) == 0x60

    def test_reset_clear_memory(self, cpu, bus, load_words):
        load_words(bus, 0x6001)
        cpu.reset(clear_memory=True)
        assert bus.peek(0x200) == 0
        assert bus.peek(0x000) == 0xF0

    def test_register_map_and_layout(self, cpu, bus, load_words):
        load_words(bus, 0x6A42, 0xA123)
        cpu.step()
        cpu.step()
        regs = cpu.get_register_map()
        assert regs["VA"] == 0x42
        assert regs["I"] == 0x123
        assert regs["PC"] == 0x204
        assert set(regs) == {f"V{i:X}" for i in range(16)} | {"I", "PC", "SP", "DT", "ST"}

        layout = cpu.get_register_layout()
        assert [group.group_name for group in layout] == ["General", "Pointers", "Timers"]
        names = [reg.name for group in layout for reg in group.registers]
        assert sorted(names) == sorted(regs)

    def test_symbol_info(self, cpu, bus, load_words):
        load_words(bus, 0x1200)
        cpu.set_symbol_map({"main_loop": 0x200})
        snapshot = cpu.step()
        assert snapshot.metadata.symbol_info == "main_loop: JP #200"
