# chip8_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、CPUとバスの完全な状態を記録した不変のデータ構造を定義します。
UIへの情報提供と、デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from chip8_tracer.core.state import CpuState
from chip8_tracer.transport.bus import BusAccessType, BusAccess


# @intent:responsibility デコードされた命令の詳細を記録します。
# @intent:rationale patternが命令の種別タグ（例: "8XY4"）となり、実行テーブルのキーとして使われます。
#                  オペランドフィールドはデコード時に一度だけ切り出し、実行側はビット演算をしません。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    デコードされた命令の詳細（HEX、ニーモニック、オペランド、デコード済みフィールド）を記録するデータクラス。
    """
    opcode_hex: str # 例: "8014"
    mnemonic: str # 例: "ADD"
    operands: List[str] = field(default_factory=list) # 例: ["V0", "V1"]
    pattern: str = "" # 例: "8XY4"
    x: int = 0    # bits 11-8
    y: int = 0    # bits 7-4
    n: int = 0    # bits 3-0
    nn: int = 0   # bits 7-0
    nnn: int = 0  # bits 11-0
    cycle_count: int = 1
    length: int = 2 # 命令のバイト長

    @property
    def opcode(self) -> int:
        return int(self.opcode_hex, 16)

    # @intent:responsibility "LD V0, #05" 形式の表示文字列を返します。
    def to_text(self) -> str:
        if self.operands:
            return f"{self.mnemonic} {', '.join(self.operands)}"
        return self.mnemonic

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True) # 不変データ構造
class Metadata:
    """
    実行に関するメタデータ（累計サイクル数、シンボル情報、サウンドイベント）を記録するデータクラス。
    """
    cycle_count: int
    symbol_info: Optional[str] = None # 例: "main_loop: JP #200"
    sound_alert: bool = False # このサイクルでサウンドタイマが1→0に遷移した

# @intent:responsibility ある一時点におけるCPUとバスの完全な状態を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class Snapshot:
    """
    ある一時点における、CPUとバスの完全な状態を記録した不変のデータ構造。
    stateはCPUの内部状態のコピーであり、以降の実行で変化しません。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
