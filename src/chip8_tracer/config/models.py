from dataclasses import dataclass, field
from typing import Dict, Optional

from chip8_tracer.arch.chip8.display import SpriteEdge

# COSMAC VIPの16キーをQWERTYキーボードの左側4x4に割り当てる一般的な配置
DEFAULT_KEYMAP = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}

@dataclass
class CpuConfig:
    cycles_per_second: int = 540
    key_poll_hz: int = 60
    seed: Optional[int] = None  # None = 非決定的

@dataclass
class QuirksConfig:
    sprite_edge: SpriteEdge = SpriteEdge.WRAP
    load_store_increment_i: bool = False
    shift_uses_vy: bool = False

@dataclass
class DebuggerConfig:
    history_limit: int = 10000

@dataclass
class SystemConfig:
    cpu: CpuConfig = field(default_factory=CpuConfig)
    quirks: QuirksConfig = field(default_factory=QuirksConfig)
    debugger: DebuggerConfig = field(default_factory=DebuggerConfig)
    keymap: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEYMAP))  # ホストのキー名 → CHIP-8キー
