# src/chip8_tracer/arch/chip8/quirks.py
"""
CHIP-8 処理系間で挙動が分かれる命令の選択肢。
"""
from dataclasses import dataclass

from chip8_tracer.arch.chip8.display import SpriteEdge


# @intent:responsibility 処理系依存の命令挙動をまとめて保持します。デフォルトは現代的な解釈です。
@dataclass(frozen=True)
class Quirks:
    # DXYN: 画面端の扱い
    sprite_edge: SpriteEdge = SpriteEdge.WRAP
    # FX55/FX65: 転送後に I += X + 1 とする（COSMAC VIPの挙動）
    load_store_increment_i: bool = False
    # 8XY6/8XYE: VXではなくVYをシフトしてVXに格納する（COSMAC VIPの挙動）
    shift_uses_vy: bool = False
