import yaml
from typing import Dict, Any

from chip8_tracer.arch.chip8.display import SpriteEdge
from .models import SystemConfig, CpuConfig, QuirksConfig, DebuggerConfig, DEFAULT_KEYMAP

class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self._parse_config(data or {})

    def load_from_string(self, text: str) -> SystemConfig:
        return self._parse_config(yaml.safe_load(text) or {})

    def _parse_config(self, data: Dict[str, Any]) -> SystemConfig:
        # Parse CPU
        cpu_data = data.get("cpu") or {}
        seed = cpu_data.get("seed")
        cpu = CpuConfig(
            cycles_per_second=self._parse_int(cpu_data.get("cycles_per_second", 540)),
            key_poll_hz=self._parse_int(cpu_data.get("key_poll_hz", 60)),
            seed=self._parse_int(seed) if seed is not None else None
        )
        if cpu.cycles_per_second <= 0 or cpu.key_poll_hz <= 0:
            raise ValueError("cycles_per_second and key_poll_hz must be positive.")

        # Parse Quirks
        quirks_data = data.get("quirks") or {}
        edge_name = str(quirks_data.get("sprite_edge", "wrap")).lower()
        try:
            sprite_edge = SpriteEdge(edge_name)
        except ValueError:
            raise ValueError(f"Invalid sprite_edge: {edge_name} (expected 'wrap' or 'clip')")
        quirks = QuirksConfig(
            sprite_edge=sprite_edge,
            load_store_increment_i=bool(quirks_data.get("load_store_increment_i", False)),
            shift_uses_vy=bool(quirks_data.get("shift_uses_vy", False))
        )

        # Parse Debugger
        debugger_data = data.get("debugger") or {}
        debugger = DebuggerConfig(
            history_limit=self._parse_int(debugger_data.get("history_limit", 10000))
        )

        # Parse Keymap
        keymap_data = data.get("keymap")
        keymap = dict(DEFAULT_KEYMAP)
        if keymap_data:
            keymap = {}
            for host_key, chip8_key in keymap_data.items():
                value = self._parse_int(chip8_key)
                if not 0 <= value <= 0xF:
                    raise ValueError(f"Keymap entry {host_key!r} maps to invalid CHIP-8 key {value}")
                keymap[str(host_key).upper()] = value

        return SystemConfig(cpu=cpu, quirks=quirks, debugger=debugger, keymap=keymap)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            if value.lower().startswith("0x"):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
