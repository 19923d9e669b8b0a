# tests/debugger/test_debugger.py
"""
chip8_tracer.debugger.debuggerモジュールの単体テスト。
Debuggerの実行制御、ブレークポイント管理、実行履歴の巻き戻しを検証します。
"""
import logging
import random
import threading
import time

import pytest
from unittest.mock import patch

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.common.errors import UnknownOpcode
from chip8_tracer.debugger.debugger import (
    Debugger, BreakpointCondition, BreakpointConditionType, read_register
)

# @intent:test_suite デバッガのブレークポイントと実行制御機能の検証。

class TestBreakpointManagement:
    # @intent:test_case_add_remove_breakpoint ブレークポイントの追加と削除が正しく行われることを検証します。
    def test_add_remove_breakpoint(self, cpu):
        debugger = Debugger(cpu)
        bp1 = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x300)
        bp2 = BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x400)

        debugger.add_breakpoint(bp1)
        debugger.add_breakpoint(bp2)
        debugger.add_breakpoint(bp1) # 重複追加は無視される
        assert debugger.get_breakpoints() == [bp1, bp2]

        debugger.remove_breakpoint(bp1)
        debugger.remove_breakpoint(bp1) # 存在しないブレークポイントの削除はエラーにならない
        assert debugger.get_breakpoints() == [bp2]

    def test_update_breakpoint(self, cpu):
        debugger = Debugger(cpu)
        bp = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x300)
        disabled = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x300, enabled=False)
        debugger.add_breakpoint(bp)
        debugger.update_breakpoint(bp, disabled)
        assert debugger.get_breakpoints() == [disabled]

    def test_invalid_history_limit(self, cpu):
        with pytest.raises(ValueError):
            Debugger(cpu, history_limit=0)

    def test_read_register(self):
        state = Chip8CpuState()
        state.v[0xA] = 0x42
        state.delay_timer = 7
        state.sound_timer = 3
        state.i = 0x123
        assert read_register(state, "VA") == 0x42
        assert read_register(state, "va") == 0x42
        assert read_register(state, "DT") == 7
        assert read_register(state, "ST") == 3
        assert read_register(state, "I") == 0x123
        assert read_register(state, "PC") == 0x200
        assert read_register(state, "VZ") is None
        assert read_register(state, "XX") is None

class TestRun:
    # @intent:test_case_pc_match_breakpoint PC_MATCHでは命令を実行する前に停止することを検証します。
    def test_pc_match_breakpoint(self, cpu, bus, load_words, caplog):
        load_words(bus, 0x6001, 0x6102, 0x6203, 0x6304)
        debugger = Debugger(cpu)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x206))

        with caplog.at_level(logging.INFO, logger="chip8_tracer.debugger.debugger"):
            debugger.run()

        state = cpu.get_state()
        assert state.pc == 0x206
        assert state.v[2] == 3
        assert state.v[3] == 0
        assert not debugger.is_running()
        assert "Breakpoint hit at PC: 0x206" in caplog.text

    # @intent:test_case_resume 現在のPCにあるブレークポイントは、再開時にまず1命令越えることを検証します。
    def test_run_resumes_past_current_breakpoint(self, cpu, bus, load_words):
        load_words(bus, 0x7001, 0x1200)
        debugger = Debugger(cpu)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x200))

        debugger.run()
        assert cpu.get_state().v[0] == 1
        assert cpu.get_state().pc == 0x200

    def test_disabled_breakpoint_is_ignored(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0x6102, 0x1204)
        debugger = Debugger(cpu)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x202, enabled=False))
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x204))
        debugger.run()
        assert cpu.get_state().v[1] == 2

    # @intent:test_case_memory_write_breakpoint MEMORY_WRITEは書き込みを行った命令の直後に停止することを検証します。
    def test_memory_write_breakpoint(self, cpu, bus, load_words):
        load_words(bus, 0x6007, 0xA300, 0xF055, 0x1206)
        debugger = Debugger(cpu)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x300))
        debugger.run()
        assert cpu.get_state().pc == 0x206
        assert bus.peek(0x300) == 7
        assert debugger.get_last_snapshot().operation.to_text() == "LD [I], V0"

    def test_memory_read_breakpoint(self, cpu, bus, load_words):
        load_words(bus, 0xA300, 0xF065, 0x1204)
        debugger = Debugger(cpu)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.MEMORY_READ, address=0x300))
        debugger.run()
        assert cpu.get_state().pc == 0x204

    def test_register_value_breakpoint(self, cpu, bus, load_words):
        load_words(bus, 0x7101, 0x1200)
        debugger = Debugger(cpu)
        debugger.add_breakpoint(
            BreakpointCondition(BreakpointConditionType.REGISTER_VALUE, register_name="V1", value=3))
        debugger.run()
        assert cpu.get_state().v[1] == 3
        assert cpu.get_state().pc == 0x202
        assert len(debugger.get_history()) == 5

    def test_register_change_breakpoint(self, cpu, bus, load_words):
        load_words(bus, 0x6000, 0x6000, 0xA300, 0x1206)
        debugger = Debugger(cpu)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="I"))
        debugger.run()
        assert cpu.get_state().pc == 0x206
        assert cpu.get_state().i == 0x300

    # @intent:test_case_fault 実行中の致命的エラーは伝播し、実行状態は解除されることを検証します。
    def test_fault_propagates(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0xFFFF)
        debugger = Debugger(cpu)
        with pytest.raises(UnknownOpcode):
            debugger.run()
        assert not debugger.is_running()
        assert cpu.halted
        assert len(debugger.get_history()) == 1

    # @intent:test_case_run_until_stop run()がstop()で停止することを検証します。
    def test_run_until_stop(self, cpu, bus, load_words):
        load_words(bus, 0x1200)
        debugger = Debugger(cpu)
        with patch.object(debugger, "_step", wraps=debugger._step) as mock_step:
            with patch.object(debugger, "_check_other_breakpoints", return_value=False):
                mock_step.side_effect = lambda: debugger.stop()
                debugger.run()
                assert mock_step.call_count == 1
        assert not debugger.is_running()

    # @intent:test_case_pacing cycles_per_secondを指定した場合、実行速度が制限されることを検証します。
    def test_paced_run(self, cpu, bus, load_words):
        load_words(bus, 0x7001, 0x1200)
        debugger = Debugger(cpu)
        debugger.add_breakpoint(
            BreakpointCondition(BreakpointConditionType.REGISTER_VALUE, register_name="V0", value=10))
        start = time.perf_counter()
        debugger.run(cycles_per_second=200)
        elapsed = time.perf_counter() - start
        # 19命令分 (約0.095秒) は待つ
        assert elapsed >= 0.08
        assert cpu.get_state().v[0] == 10

    # @intent:test_case_stop_key_wait キー入力待ちで止まっている実行もstop()で打ち切れることを検証します。
    def test_stop_interrupts_key_wait(self, bus, load_words):
        cpu = Chip8Cpu(bus, rng=random.Random(0), key_poll_interval=0.001)
        load_words(bus, 0xF00A)
        debugger = Debugger(cpu)
        worker = threading.Thread(target=debugger.run)
        worker.start()

        deadline = time.monotonic() + 5
        while not cpu.is_waiting_for_key() and time.monotonic() < deadline:
            time.sleep(0.001)
        assert cpu.is_waiting_for_key()

        debugger.stop()
        worker.join(timeout=5)
        assert not worker.is_alive()
        assert cpu.get_state().pc == 0x200
        assert not cpu.halted

    # @intent:test_case_stale_stop 待機していない時のstop()が、次のFX0Aの待機を打ち切らないことを検証します。
    def test_stop_before_key_wait_is_not_carried_over(self, bus, load_words):
        cpu = Chip8Cpu(bus, rng=random.Random(0), key_poll_interval=0.001)
        load_words(bus, 0x6000, 0xF30A)
        debugger = Debugger(cpu)
        debugger.step_instruction()
        debugger.stop()

        worker = threading.Thread(target=debugger.step_instruction)
        worker.start()
        worker.join(timeout=0.3)
        assert worker.is_alive()
        assert cpu.is_waiting_for_key()
        assert len(debugger.get_history()) == 1

        cpu.keypad.press(0x9)
        worker.join(timeout=5)
        assert not worker.is_alive()
        assert cpu.get_state().v[3] == 9
        assert cpu.get_state().pc == 0x204

class TestHistory:
    # @intent:test_case_step_back 1命令戻すと、メモリ書き込みとCPU状態が元に戻ることを検証します。
    def test_step_back_undoes_memory_and_state(self, cpu, bus, load_words):
        load_words(bus, 0x6007, 0xA300, 0xF055)
        debugger = Debugger(cpu)
        snapshots = [debugger.step_instruction() for _ in range(3)]
        assert bus.peek(0x300) == 7

        previous = debugger.step_back()
        assert previous is snapshots[1]
        assert bus.peek(0x300) == 0
        assert cpu.get_state().pc == 0x204
        assert cpu.get_state().i == 0x300

        debugger.step_back()
        assert debugger.step_back() is None
        state = cpu.get_state()
        assert state.pc == 0x200
        assert state.v[0] == 0
        assert state.i == 0
        assert debugger.get_last_snapshot() is None
        assert debugger.step_back() is None

    def test_step_back_restores_display(self, cpu, bus, load_words):
        load_words(bus, 0xA000, 0xD015)
        debugger = Debugger(cpu)
        debugger.step_instruction()
        debugger.step_instruction()
        assert cpu.get_framebuffer().lit_count() == 14
        debugger.step_back()
        assert cpu.get_framebuffer().lit_count() == 0

    # @intent:test_case_limit 履歴が上限を超えると古いものから破棄され、その状態が戻り先の基準になることを検証します。
    def test_history_limit_evicts_oldest(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0x6102, 0x6203)
        debugger = Debugger(cpu, history_limit=2)
        for _ in range(3):
            debugger.step_instruction()
        assert [s.state.pc for s in debugger.get_history()] == [0x204, 0x206]

        debugger.step_back()
        assert debugger.step_back() is None
        state = cpu.get_state()
        assert state.pc == 0x202
        assert state.v[0] == 1
        assert state.v[1] == 0

    def test_run_back_stops_at_breakpoint(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0x6102, 0x6203, 0x6304)
        debugger = Debugger(cpu)
        for _ in range(4):
            debugger.step_instruction()
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x202))

        debugger.run_back()
        state = cpu.get_state()
        assert state.pc == 0x202
        assert state.v[0] == 1
        assert state.v[1] == 0
        assert not debugger.is_running()

    def test_run_back_to_start(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0x6102)
        debugger = Debugger(cpu)
        debugger.step_instruction()
        debugger.step_instruction()
        debugger.run_back()
        assert cpu.get_state().pc == 0x200
        assert debugger.get_history() == []

    def test_reset_history(self, cpu, bus, load_words):
        load_words(bus, 0x6001, 0x6102)
        debugger = Debugger(cpu)
        debugger.step_instruction()
        debugger.reset_history()
        assert debugger.get_history() == []
        assert debugger.step_back() is None
        # 基準状態はreset_history時点の状態
        assert cpu.get_state().pc == 0x202
