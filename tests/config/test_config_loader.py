# tests/config/test_config_loader.py
"""
YAML構成の読み込みとシステム構築のテスト。
"""
from pathlib import Path

import pytest

from chip8_tracer.config.loader import ConfigLoader
from chip8_tracer.config.builder import SystemBuilder
from chip8_tracer.config.models import SystemConfig, DEFAULT_KEYMAP
from chip8_tracer.arch.chip8.display import SpriteEdge
from chip8_tracer.arch.chip8.font import FONT_SET
from chip8_tracer.transport.bus import RAM, ROM

DEFAULT_CONFIG_PATH = Path(__file__).parents[2] / "configs" / "default.yaml"

# @intent:test_suite 構成値の解釈と検証、構成に基づくCPU・バスの組み立てを検証します。

class TestConfigLoader:
    def test_empty_document_uses_defaults(self):
        config = ConfigLoader().load_from_string("")
        assert config == SystemConfig()
        assert config.cpu.cycles_per_second == 540
        assert config.quirks.sprite_edge is SpriteEdge.WRAP
        assert config.debugger.history_limit == 10000
        assert config.keymap == DEFAULT_KEYMAP

    def test_default_file_matches_defaults(self):
        config = ConfigLoader().load_from_file(str(DEFAULT_CONFIG_PATH))
        assert config == SystemConfig()

    def test_values_and_hex_strings(self):
        config = ConfigLoader().load_from_string("""
cpu:
  cycles_per_second: 1000
  seed: "0x10"
quirks:
  sprite_edge: CLIP
  load_store_increment_i: true
debugger:
  history_limit: 50
""")
        assert config.cpu.cycles_per_second == 1000
        assert config.cpu.seed == 16
        assert config.quirks.sprite_edge is SpriteEdge.CLIP
        assert config.quirks.load_store_increment_i is True
        assert config.quirks.shift_uses_vy is False
        assert config.debugger.history_limit == 50

    def test_invalid_sprite_edge(self):
        with pytest.raises(ValueError, match="Invalid sprite_edge"):
            ConfigLoader().load_from_string("quirks:\n  sprite_edge: bounce\n")

    @pytest.mark.parametrize("text", [
        "cpu:\n  cycles_per_second: 0\n",
        "cpu:\n  key_poll_hz: -1\n",
        "cpu:\n  cycles_per_second: fast\n",
        "cpu:\n  cycles_per_second: true\n",
    ])
    def test_invalid_cpu_values(self, text):
        with pytest.raises(ValueError):
            ConfigLoader().load_from_string(text)

    # @intent:test_case_keymap キーマップはキー名を大文字に正規化し、0x0-0xF以外の割り当てを拒否することを検証します。
    def test_keymap(self):
        config = ConfigLoader().load_from_string("keymap:\n  up: 0x5\n  k: 12\n")
        assert config.keymap == {"UP": 5, "K": 12}

        with pytest.raises(ValueError):
            ConfigLoader().load_from_string("keymap:\n  q: 16\n")

class TestSystemBuilder:
    def test_build_default_system(self):
        cpu, bus = SystemBuilder().build_system()
        assert bus.get_address_space_size() == 0x1000
        assert bus.peek(0x000) == FONT_SET[0]
        assert cpu.get_state().pc == 0x200
        assert cpu.keypad is not None
        assert cpu.quirks.sprite_edge is SpriteEdge.WRAP

        devices = [(start, end, type(device)) for start, end, device in bus._memory_map]
        assert devices == [(0x000, 0x1FF, ROM), (0x200, 0xFFF, RAM)]

    def test_quirks_from_config(self):
        config = ConfigLoader().load_from_string("quirks:\n  sprite_edge: clip\n  shift_uses_vy: true\n")
        cpu, _ = SystemBuilder().build_system(config)
        assert cpu.quirks.sprite_edge is SpriteEdge.CLIP
        assert cpu.quirks.shift_uses_vy is True

    # @intent:test_case_seed 同じシードで構築したシステムはCXNNの結果が一致することを検証します。
    def test_seed_makes_random_reproducible(self):
        config = ConfigLoader().load_from_string("cpu:\n  seed: 99\n")
        results = []
        for _ in range(2):
            cpu, bus = SystemBuilder().build_system(config)
            bus.load(0x200, 0xC0)
            bus.load(0x201, 0xFF)
            results.append(cpu.step().state.v[0])
        assert results[0] == results[1]

    def test_external_key_source(self):
        keys = lambda: [True] * 16
        cpu, _ = SystemBuilder().build_system(key_source=keys)
        assert cpu.keypad is None
        cpu.bus.load(0x200, 0x12)
        cpu.bus.load(0x201, 0x00)
        assert cpu.step().state.keys == [True] * 16
