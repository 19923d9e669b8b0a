"""
共通の型定義を提供するモジュール。
プロジェクト全体で使用される汎用的な型エイリアスなどを定義します。
"""
from typing import Callable, Dict, List, NamedTuple, Sequence

# @intent:data_structure シンボル名とアドレスをマッピングする辞書の型エイリアス。
# Debugger, CPU, UIなど複数のレイヤーで共通して使用されます。
SymbolMap = Dict[str, int]

# @intent:data_structure 16キー分の押下状態（インデックス0x0〜0xFがキー番号）。
KeyState = Sequence[bool]

# @intent:data_structure 1サイクルごとに呼び出され、最新のキー状態を返す入力元。
KeySource = Callable[[], KeyState]

# @intent:data_structure 単一のレジスタの表示定義。UIが動的にフィールドを生成するために使用される。
class RegisterInfo(NamedTuple):
    name: str
    width: int  # ビット幅 (8 or 16)

# @intent:data_structure レジスタグループの表示定義。関連するレジスタ（例: "General", "Pointers"）をまとめる。
class RegisterLayoutInfo(NamedTuple):
    group_name: str
    registers: List[RegisterInfo]
