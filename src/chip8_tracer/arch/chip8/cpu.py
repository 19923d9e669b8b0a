# src/chip8_tracer/arch/chip8/cpu.py
"""
CHIP-8 CPUエミュレーションの中心モジュール。

1サイクル = フェッチ → デコード → 実行 → 入力ラッチ更新 → タイマ減算。
"""
import logging
import random
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.core.snapshot import Operation
from chip8_tracer.common.types import KeySource, RegisterInfo, RegisterLayoutInfo
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState, PROGRAM_START
from chip8_tracer.arch.chip8.display import Framebuffer
from chip8_tracer.arch.chip8.font import FONT_SET, FONT_START
from chip8_tracer.arch.chip8.keypad import Keypad, find_pressed_edge
from chip8_tracer.arch.chip8.quirks import Quirks
from chip8_tracer.arch.chip8.instructions import decode_opcode, execute_instruction, ExecutionContext
from chip8_tracer.arch.chip8.disassembler import disassemble

logger = logging.getLogger(__name__)

DEFAULT_KEY_POLL_INTERVAL = 1 / 60

# @intent:responsibility CHIP-8 CPUの具体的なエミュレーションロジック（フェッチ、デコード、実行、タイマ、入力）を提供します。
class Chip8Cpu(AbstractCpu):
    """
    CHIP-8インタプリタ。マシン状態を全て所有し、step()で1サイクルずつ進めます。

    key_source: 1サイクルに1回呼ばれ、16キーの状態を返す呼び出し可能オブジェクト。
                省略時は内部のKeypadを使用します（keypadプロパティで操作）。
    rng: CXNN用の乱数源。シードを固定すれば実行は再現可能になります。
    """
    # @intent:responsibility Chip8Cpuを初期化し、フォントをメモリに配置します。
    def __init__(self, bus: Bus, key_source: Optional[KeySource] = None, rng: Optional[random.Random] = None,
                 quirks: Optional[Quirks] = None, key_poll_interval: float = DEFAULT_KEY_POLL_INTERVAL,
                 sleep: Callable[[float], None] = time.sleep):
        self._keypad = key_source if key_source is not None else Keypad()
        self._key_poll_interval = key_poll_interval
        self._sleep = sleep
        self._key_wait_interrupt = threading.Event()
        self._sound_listeners: List[Callable[[], None]] = []
        self._context = ExecutionContext(
            rng=rng if rng is not None else random.Random(),
            quirks=quirks if quirks is not None else Quirks(),
            wait_for_key=self._wait_for_key,
        )
        super().__init__(bus)
        self._install_font()

    def _create_initial_state(self) -> Chip8CpuState:
        return Chip8CpuState()

    # @intent:responsibility CPUを初期状態に戻し、フォントを再配置します。
    # @intent:rationale プログラム領域はデフォルトで保持し、ロード済みプログラムを最初から再実行できるようにします。
    def reset(self, clear_memory: bool = False) -> None:
        super().reset()
        if clear_memory:
            for address in range(PROGRAM_START, self._bus.get_address_space_size()):
                self._bus.load(address, 0x00)
        self._install_font()
        logger.info("CHIP-8 CPU reset (PC=0x%03X)", self._state.pc)

    def _install_font(self) -> None:
        for offset, data in enumerate(FONT_SET):
            self._bus.load(FONT_START + offset, data)

    @property
    def quirks(self) -> Quirks:
        return self._context.quirks

    @property
    def keypad(self) -> Optional[Keypad]:
        """内部Keypadを使用している場合はそれを返します。"""
        return self._keypad if isinstance(self._keypad, Keypad) else None

    def get_framebuffer(self) -> Framebuffer:
        return self._state.framebuffer

    # @intent:responsibility サウンドタイマが1→0に遷移した時に呼ばれるコールバックを登録します。
    def add_sound_listener(self, callback: Callable[[], None]) -> None:
        self._sound_listeners.append(callback)

    # @intent:responsibility PCから2バイトをビッグエンディアンで読み出します。
    def _fetch(self) -> int:
        pc = self._state.pc
        return (self._bus.read(pc) << 8) | self._bus.read(pc + 1)

    def _decode(self, opcode: int) -> Operation:
        return decode_opcode(opcode, self._state.pc)

    def _execute(self, operation: Operation) -> None:
        execute_instruction(operation, self._state, self._bus, self._context)

    # @intent:responsibility 実行後に入力ラッチを更新し、タイマを1減らします。
    def _end_cycle(self) -> bool:
        self._state.keys = list(self._keypad())
        return self._tick_timers()

    # @intent:responsibility 非ゼロのタイマを1減らし、サウンドタイマの1→0遷移を通知します。
    def _tick_timers(self) -> bool:
        s = self._state
        if s.delay_timer > 0:
            s.delay_timer -= 1
        sound_alert = False
        if s.sound_timer > 0:
            sound_alert = s.sound_timer == 1
            s.sound_timer -= 1
        if sound_alert:
            for listener in self._sound_listeners:
                listener()
        return sound_alert

    # @intent:responsibility FX0Aの待機。一定間隔でキーソースをポーリングし、押下エッジを検出したらそのキーを返します。
    # @intent:rationale 真のブロッキングI/Oではなくポーリングとし、待機中も状態を観測可能に保ちます。タイムアウトはありません。
    def _wait_for_key(self) -> Optional[int]:
        while True:
            current = list(self._keypad())
            edge = find_pressed_edge(self._state.keys, current)
            self._state.keys = current
            if edge is not None:
                logger.debug("Key 0x%X pressed while waiting", edge)
                return edge
            if self._key_wait_interrupt.is_set():
                self._key_wait_interrupt.clear()
                logger.debug("Key wait interrupted")
                return None
            self._sleep(self._key_poll_interval)

    # @intent:responsibility 他スレッドから進行中のFX0A待機を打ち切ります。命令は完了せず、次のstepで待機し直します。
    def interrupt_wait(self) -> None:
        self._key_wait_interrupt.set()

    def clear_wait_interrupt(self) -> None:
        self._key_wait_interrupt.clear()

    def is_waiting_for_key(self) -> bool:
        return self._state.key_wait_register is not None

    # @intent:responsibility UI表示用に、現在のレジスタ値を辞書形式で提供します。
    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        regs = {f"V{i:X}": s.v[i] for i in range(16)}
        regs.update({"I": s.i, "PC": s.pc, "SP": s.sp, "DT": s.delay_timer, "ST": s.sound_timer})
        return regs

    # @intent:responsibility UIのレジスタ表示レイアウト（グループ化）を定義します。
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("General", [RegisterInfo(f"V{i:X}", 8) for i in range(16)]),
            RegisterLayoutInfo("Pointers", [
                RegisterInfo("I", 16), RegisterInfo("PC", 16), RegisterInfo("SP", 8)
            ]),
            RegisterLayoutInfo("Timers", [
                RegisterInfo("DT", 8), RegisterInfo("ST", 8)
            ]),
        ]

    # @intent:responsibility 指定範囲のメモリを逆アセンブルします。
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return disassemble(self._bus, start_addr, length)
