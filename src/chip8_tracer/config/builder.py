import logging
import random
from typing import Optional, Tuple

from chip8_tracer.transport.bus import Bus, RAM, ROM
from chip8_tracer.common.types import KeySource
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.quirks import Quirks
from chip8_tracer.arch.chip8.state import MEMORY_SIZE, PROGRAM_START
from .models import SystemConfig

logger = logging.getLogger(__name__)

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続します。
class SystemBuilder:
    def build_system(self, config: Optional[SystemConfig] = None,
                     key_source: Optional[KeySource] = None) -> Tuple[Chip8Cpu, Bus]:
        """
        インタプリタ領域 (0x000-0x1FF) をROM、プログラム領域 (0x200-0xFFF) をRAMとしてバスを構築し、
        フォントを配置済みのChip8Cpuを返します。
        """
        if config is None:
            config = SystemConfig()

        bus = Bus()
        bus.register_device(0x000, PROGRAM_START - 1, ROM(PROGRAM_START))
        bus.register_device(PROGRAM_START, MEMORY_SIZE - 1, RAM(MEMORY_SIZE - PROGRAM_START))

        quirks = Quirks(
            sprite_edge=config.quirks.sprite_edge,
            load_store_increment_i=config.quirks.load_store_increment_i,
            shift_uses_vy=config.quirks.shift_uses_vy
        )
        cpu = Chip8Cpu(
            bus,
            key_source=key_source,
            rng=random.Random(config.cpu.seed),
            quirks=quirks,
            key_poll_interval=1 / config.cpu.key_poll_hz
        )
        logger.info("Built CHIP-8 system (%s)", quirks)
        return cpu, bus
