# chip8_tracer/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント）で
実行を中断させる責務を負います。
"""
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.core.snapshot import Snapshot, BusAccessType
from chip8_tracer.core.state import CpuState

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10000

# レジスタ表示名 → 状態オブジェクトの属性名
REGISTER_ALIASES = {
    "DT": "delay_timer",
    "ST": "sound_timer",
}

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用 ("V0"-"VF", "I", "PC", "SP", "DT", "ST")
    enabled: bool = True                  # 有効/無効状態

# @intent:utility_function レジスタ名から値を取り出します。V0-VFはVレジスタ配列の要素として解決します。
def read_register(state: CpuState, register_name: str) -> Optional[int]:
    name = register_name.upper()
    if len(name) == 2 and name[0] == "V" and hasattr(state, "v"):
        try:
            return state.v[int(name[1], 16)]
        except ValueError:
            return None
    attr = REGISTER_ALIASES.get(name, register_name.lower())
    return getattr(state, attr, None)

# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントの管理を行うクラス。
    実行履歴は history_limit 件まで保持し、古いものから破棄します。
    """
    def __init__(self, cpu: AbstractCpu, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit <= 0:
            raise ValueError("history_limit must be a positive integer.")
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._running: bool = False
        self._previous_state: CpuState = self._cpu.get_state().copy()
        self._last_snapshot: Optional[Snapshot] = None
        # @intent:responsibility 実行履歴を保持し、タイムトラベルデバッグをサポートします。
        self._history: Deque[Snapshot] = deque(maxlen=history_limit)
        # @intent:responsibility 履歴が尽きた時に戻るための基準状態を保持します。
        self._initial_state: CpuState = self._cpu.get_state().copy()

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    # @intent:responsibility CPUのリセットやプログラムのロード後に、履歴を破棄して現在の状態を基準にします。
    def reset_history(self) -> None:
        self._history.clear()
        self._last_snapshot = None
        self._initial_state = self._cpu.get_state().copy()
        self._previous_state = self._cpu.get_state().copy()

    def is_running(self) -> bool:
        return self._running

    def _is_pc_breakpoint(self, pc: int) -> bool:
        return any(
            bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
            for bp in self._breakpoints
        )

    def _check_other_breakpoints(self, snapshot: Snapshot) -> bool:
        """
        Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current_state = snapshot.state

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_READ:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.READ and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.WRITE and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name:
                    value = read_register(current_state, bp.register_name)
                    if value is not None and value == bp.value:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                if bp.register_name and self._previous_state is not None:
                    current = read_register(current_state, bp.register_name)
                    previous = read_register(self._previous_state, bp.register_name)
                    if current is not None and current != previous:
                        return True
        return False

    def step_instruction(self) -> Snapshot:
        """
        CPUを1命令分実行し、その結果のSnapshotを返します。
        CPUが送出した致命的エラーはそのまま伝播します（履歴には追加されません）。
        """
        # 以前のstop()による打ち切り要求をこの命令に持ち越さない
        self._cpu.clear_wait_interrupt()
        return self._step()

    # @intent:responsibility 1命令実行し、履歴に記録します。run()のループからはstop()の要求を保持したまま呼び出します。
    def _step(self) -> Snapshot:
        self._previous_state = self._cpu.get_state().copy()
        snapshot = self._cpu.step()
        self._last_snapshot = snapshot

        # 上限に達している場合、破棄される最古の履歴の状態を新しい基準状態とする
        if len(self._history) == self._history.maxlen:
            self._initial_state = self._history[0].state
        self._history.append(snapshot)

        return snapshot

    def step_back(self) -> Optional[Snapshot]:
        """
        実行履歴を1つ戻り、CPUとメモリの状態を復元します。
        """
        if not self._history:
            return None

        snapshot_to_revert = self._history.pop()

        # メモリ書き込みの取り消し (Undo)。逆順に書き戻す
        bus = self._cpu.bus
        for access in reversed(snapshot_to_revert.bus_activity):
            if access.access_type == BusAccessType.WRITE and access.previous_data is not None:
                bus.load(access.address, access.previous_data)

        if self._history:
            previous_snapshot = self._history[-1]
            self._cpu.restore_state(previous_snapshot.state)
            self._last_snapshot = previous_snapshot
            return previous_snapshot

        # 履歴が尽きた場合は基準状態に復元
        self._cpu.restore_state(self._initial_state)
        self._last_snapshot = None
        return None

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def run(self, cycles_per_second: Optional[float] = None) -> None:
        """
        CPUの実行を継続します。ブレークポイントにヒットするか、stop()が呼ばれるまで戻りません。
        cycles_per_secondを指定した場合はその速度に合わせて実行をペーシングします。
        """
        self._cpu.clear_wait_interrupt()
        self._running = True
        interval = 1.0 / cycles_per_second if cycles_per_second else 0.0
        next_tick = time.perf_counter()

        try:
            # 現在のPCにブレークポイントがある場合は、まずそれを越える
            if self._is_pc_breakpoint(self._cpu.get_state().pc):
                self._step()

            while self._running:
                if interval:
                    next_tick += interval
                    delay = next_tick - time.perf_counter()
                    if delay > 0:
                        time.sleep(delay)
                    elif delay < -0.25:
                        # 大きく遅れた場合は追いつこうとせず基準を取り直す
                        next_tick = time.perf_counter()
                else:
                    time.sleep(0)

                current_pc = self._cpu.get_state().pc
                if self._is_pc_breakpoint(current_pc):
                    logger.info("Breakpoint hit at PC: 0x%03X", current_pc)
                    return

                snapshot = self._step()

                if self._check_other_breakpoints(snapshot):
                    logger.info("Breakpoint hit at PC: 0x%03X", snapshot.state.pc)
                    return
        finally:
            self._running = False

    def run_back(self) -> None:
        """
        CPUの実行を逆方向（過去）へ連続的に戻します。
        """
        self._running = True

        try:
            while self._running:
                time.sleep(0)

                snapshot = self.step_back()
                if snapshot is None:
                    logger.info("Reached start of history.")
                    return

                current_pc = snapshot.state.pc
                if self._is_pc_breakpoint(current_pc):
                    logger.info("Reverse breakpoint hit at PC: 0x%03X", current_pc)
                    return

                # 戻った時点のSnapshot（＝その命令実行直後の状態）で評価する
                if self._check_other_breakpoints(snapshot):
                    logger.info("Reverse breakpoint hit at PC: 0x%03X", snapshot.state.pc)
                    return
        finally:
            self._running = False

    # @intent:responsibility 実行を停止します。入力待ちで止まっている命令も打ち切ります。
    def stop(self) -> None:
        self._running = False
        self._cpu.interrupt_wait()
