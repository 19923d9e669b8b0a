# chip8_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Tuple

from chip8_tracer.transport.bus import Bus
from chip8_tracer.core.snapshot import Snapshot, Operation, Metadata
from chip8_tracer.core.state import CpuState
from chip8_tracer.common.errors import Chip8Error
from chip8_tracer.common.types import SymbolMap, RegisterLayoutInfo

logger = logging.getLogger(__name__)

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    CPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクルの抽象化、致命的エラー時の停止を提供します。
    """
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._fault: Optional[Chip8Error] = None
        self._reverse_symbol_map: Dict[int, str] = {}
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    @property
    def bus(self) -> Bus:
        return self._bus

    # @intent:responsibility シンボルマップを設定します。
    def set_symbol_map(self, symbol_map: SymbolMap) -> None:
        self._reverse_symbol_map = {addr: name for name, addr in symbol_map.items()}

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        """
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。停止中のエラーも解除します。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0
        self._fault = None

    def get_state(self) -> CpuState:
        return self._state

    # @intent:responsibility デバッガのstep_backなどから、保存済みの状態を復元します。
    def restore_state(self, state: CpuState) -> None:
        self._state = state.copy()
        self._fault = None

    def get_cycle_count(self) -> int:
        return self._cycle_count

    # @intent:responsibility 致命的エラーで停止しているかどうかを返します。
    @property
    def halted(self) -> bool:
        return self._fault is not None

    def get_fault(self) -> Optional[Chip8Error]:
        return self._fault

    # @intent:responsibility 命令実行中の待機（入力待ちなど）を他スレッドから打ち切ります。デフォルトは何もしません。
    def interrupt_wait(self) -> None:
        pass

    # @intent:responsibility 未消費の打ち切り要求を破棄します。新しい実行コマンドの開始時に呼び出します。
    def clear_wait_interrupt(self) -> None:
        pass

    # @intent:responsibility メモリから次の命令（オペコード）をフェッチします。
    @abstractmethod
    def _fetch(self) -> int:
        pass

    # @intent:responsibility フェッチしたオペコードを解析し、Operationオブジェクトに変換します。
    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        pass

    # @intent:responsibility デコードされた命令を実行し、CPUの状態を更新します。
    @abstractmethod
    def _execute(self, operation: Operation) -> None:
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー
    #                  （ログクリア→停止判定→フェッチ→デコード→PC更新→実行→サイクル終端処理→Snapshot生成）を定義します。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        致命的エラーが発生した場合、PCを命令の先頭に戻して停止し、エラーを送出します。
        """
        self._bus.get_and_clear_activity_log()

        # 停止中は同じエラーを送出し続ける
        self._handle_halt()

        initial_pc = self._state.pc
        try:
            opcode = self._fetch()
            operation = self._decode(opcode)
            self._update_pc(operation)
            self._execute(operation)
        except Chip8Error as e:
            self._state.pc = initial_pc
            e.pc = initial_pc
            self._fault = e
            logger.error("CPU halted: %s", e)
            raise

        sound_alert = self._end_cycle()
        return self._create_snapshot(initial_pc, operation, sound_alert)

    # @intent:responsibility 停止中であれば記録済みのエラーを再送出します。
    def _handle_halt(self) -> None:
        if self._fault is not None:
            raise self._fault

    # @intent:responsibility 命令実行前にPCを更新します。デフォルトは命令長分進めます。
    def _update_pc(self, operation: Operation) -> None:
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    # @intent:responsibility 命令実行後のサイクル終端処理（入力更新、タイマなど）。
    # @intent:return サウンドアラートが発生した場合True。
    def _end_cycle(self) -> bool:
        return False

    # @intent:responsibility 実行結果からSnapshotオブジェクトを生成する共通ロジック。
    def _create_snapshot(self, initial_pc: int, operation: Operation, sound_alert: bool = False) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        self._cycle_count += operation.cycle_count

        symbol_label = self._reverse_symbol_map.get(initial_pc, "")
        symbol_info = f"{symbol_label}: " if symbol_label else ""
        symbol_info += operation.to_text()

        return Snapshot(
            state=self._state.copy(),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=symbol_info, sound_alert=sound_alert),
            bus_activity=bus_activity
        )

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        UIがCPUの内部構造を知らなくても値を表示できるようにするために使用される。
        """
        pass

    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        """
        レジスタをUI上でどのように配置・グループ化すべきかの定義を返す。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass
