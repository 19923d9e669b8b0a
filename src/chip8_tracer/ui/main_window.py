# src/chip8_tracer/ui/main_window.py
"""
メインウィンドウの実装。
画面、コード、レジスタ、スタック、キーパッドの各ビューを保持し、デバッガの実行を制御します。
"""
import logging
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QApplication, QDockWidget, QTabWidget, QToolBar, QFileDialog, QMessageBox
)
from PySide6.QtGui import QPalette, QColor, QAction, QCloseEvent, QKeyEvent, QKeySequence
from PySide6.QtCore import Qt, QThread, QTimer, Signal, Slot

from chip8_tracer.common.errors import Chip8Error
from chip8_tracer.config.loader import ConfigLoader
from chip8_tracer.config.builder import SystemBuilder
from chip8_tracer.config.models import SystemConfig
from chip8_tracer.loader.loader import ProgramLoader
from chip8_tracer.debugger.debugger import Debugger
from chip8_tracer.core.snapshot import Snapshot
from .display_view import DisplayView
from .register_view import RegisterView
from .code_view import CodeView
from .stack_view import StackView
from .keypad_view import KeypadView
from .fonts import get_monospace_font_family

logger = logging.getLogger(__name__)

# 画面更新の頻度 (Hz)
FRAME_RATE = 60

# @intent:responsibility デバッガの連続実行または1命令実行をバックグラウンドで行います。
class DebuggerThread(QThread):
    """
    デバッガのrun()またはstep_instruction()をノンブロッキングで実行するためのスレッド。
    FX0Aのキー待ちでGUIスレッドが止まらないよう、UIからの1命令実行もこのスレッドを通します。
    戻った時点の最後のSnapshotを通知し、致命的エラーはメッセージとして通知します。
    """
    breakpoint_hit = Signal(Snapshot)
    error_occurred = Signal(str)

    def __init__(self, debugger: Debugger, cycles_per_second: float, single_step: bool = False):
        super().__init__()
        self.debugger = debugger
        self.cycles_per_second = cycles_per_second
        self.single_step = single_step

    def run(self):
        try:
            if self.single_step:
                self.debugger.step_instruction()
            else:
                self.debugger.run(self.cycles_per_second)
        except Chip8Error as e:
            self.error_occurred.emit(str(e))
            return
        last_snapshot = self.debugger.get_last_snapshot()
        if last_snapshot:
            self.breakpoint_hit.emit(last_snapshot)


# @intent:responsibility アプリケーションのメインウィンドウを定義し、UIの主要なコンポーネントを組み立てます。
class MainWindow(QMainWindow):
    # CPUスレッドから呼ばれるサウンド通知をGUIスレッドへ渡す
    sound_requested = Signal()

    def __init__(self, config: Optional[SystemConfig] = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("CHIP-8 Tracer")
        self.setGeometry(100, 100, 1200, 720)
        self.setDockNestingEnabled(True)

        self._rom_path: Optional[str] = None
        self.debugger_thread: Optional[DebuggerThread] = None

        self.display_view = DisplayView()
        # 画面にフォーカスを置き、キー入力がMainWindowまで伝播するようにする
        self.display_view.setFocusPolicy(Qt.StrongFocus)
        self.setCentralWidget(self.display_view)
        self._create_navigation_pane()
        self._create_status_inspector()
        self._create_toolbar()
        self._create_menus()
        self._set_dark_theme()

        self.sound_requested.connect(QApplication.beep)
        self._setup_backend(config or SystemConfig())

        # 実行中もフレームバッファとキーパッドの表示を更新する
        self._frame_timer = QTimer(self)
        self._frame_timer.timeout.connect(self._on_frame)
        self._frame_timer.start(1000 // FRAME_RATE)

        self._update_ui_state(False)

    # @intent:responsibility 構成に基づいてCPU、バス、デバッガを生成し、各ビューに接続します。
    def _setup_backend(self, config: SystemConfig) -> None:
        self.config = config
        self.cpu, self.bus = SystemBuilder().build_system(config)
        self.cpu.add_sound_listener(self.sound_requested.emit)
        self.debugger = Debugger(self.cpu, history_limit=config.debugger.history_limit)

        self.display_view.set_framebuffer(self.cpu.get_framebuffer())
        self.register_view.set_cpu(self.cpu)
        self.code_view.set_cpu(self.cpu)
        self.keypad_view.set_keypad(self.cpu.keypad)
        self.keypad_view.set_keymap(config.keymap)
        self._refresh_views()

    def _create_menus(self):
        file_menu = self.menuBar().addMenu("File")

        self.open_rom_action = QAction("Open ROM...", self)
        self.open_rom_action.setShortcut("Ctrl+O")
        self.open_rom_action.triggered.connect(self._open_rom_dialog)
        file_menu.addAction(self.open_rom_action)

        self.load_config_action = QAction("Load Config...", self)
        self.load_config_action.triggered.connect(self._load_config_dialog)
        file_menu.addAction(self.load_config_action)

        file_menu.addSeparator()
        exit_action = QAction("Exit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

    # @intent:responsibility 実行制御用のツールバーを作成します。
    def _create_toolbar(self):
        toolbar = QToolBar("Main Toolbar")
        self.addToolBar(toolbar)

        self.run_action = QAction("Run", self)
        self.run_action.triggered.connect(self._run_debugger)
        toolbar.addAction(self.run_action)

        self.stop_action = QAction("Stop", self)
        self.stop_action.triggered.connect(self._stop_debugger)
        toolbar.addAction(self.stop_action)

        self.step_action = QAction("Step", self)
        self.step_action.triggered.connect(self._step_debugger)
        toolbar.addAction(self.step_action)

        self.step_back_action = QAction("Step Back", self)
        self.step_back_action.triggered.connect(self._step_back_debugger)
        toolbar.addAction(self.step_back_action)

        self.reset_action = QAction("Reset", self)
        self.reset_action.triggered.connect(self._reset_cpu)
        toolbar.addAction(self.reset_action)

    def _create_navigation_pane(self):
        nav_dock = QDockWidget("Navigation", self)
        nav_dock.setAllowedAreas(Qt.LeftDockWidgetArea)
        self.code_view = CodeView()
        nav_dock.setWidget(self.code_view)
        self.addDockWidget(Qt.LeftDockWidgetArea, nav_dock)

    def _create_status_inspector(self):
        status_dock = QDockWidget("Status Inspector", self)
        status_dock.setAllowedAreas(Qt.RightDockWidgetArea)
        tab_widget = QTabWidget()
        self.register_view = RegisterView()
        tab_widget.addTab(self.register_view, "Registers")
        self.stack_view = StackView()
        tab_widget.addTab(self.stack_view, "Stack")
        self.keypad_view = KeypadView()
        tab_widget.addTab(self.keypad_view, "Keypad")
        status_dock.setWidget(tab_widget)
        self.addDockWidget(Qt.RightDockWidgetArea, status_dock)

    def is_running(self) -> bool:
        return self.debugger_thread is not None and self.debugger_thread.isRunning()

    # @intent:responsibility 実行状態に応じてUIコンポーネントの有効/無効を切り替えます。
    def _update_ui_state(self, is_running: bool):
        for action in (self.open_rom_action, self.load_config_action, self.run_action,
                       self.step_action, self.step_back_action, self.reset_action):
            action.setEnabled(not is_running)
        self.stop_action.setEnabled(is_running)

    # @intent:responsibility ROMファイルをプログラム領域にロードし、CPUと履歴を初期化します。
    def load_rom(self, path: str) -> int:
        """
        メモリを消去してからロードします。ロード失敗時（LoadOverflowなど）は例外を送出します。
        """
        self.cpu.reset(clear_memory=True)
        size = ProgramLoader().load_file(path, self.bus)
        self._rom_path = path
        self.debugger.reset_history()
        self.code_view.reset_cache()
        self._refresh_views()
        self.statusBar().showMessage(f"Loaded {path} ({size} bytes)")
        return size

    # @intent:responsibility 構成ファイルを読み込み、システムを再構築します。ロード済みのROMは再ロードします。
    def load_config(self, path: str) -> None:
        config = ConfigLoader().load_from_file(path)
        self._setup_backend(config)
        if self._rom_path:
            self.load_rom(self._rom_path)
        self.statusBar().showMessage(f"Loaded config {path}")

    # @intent:responsibility 1命令実行し、ビューを更新します。致命的エラーは呼び出し元に伝播します。
    # @intent:pre-condition 呼び出したスレッドで実行します。FX0Aではキー入力まで戻らないため、UI操作からは_step_debugger()を使います。
    def step(self) -> Snapshot:
        try:
            return self.debugger.step_instruction()
        finally:
            self._refresh_views()

    @Slot()
    def _open_rom_dialog(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open CHIP-8 ROM", "", "CHIP-8 ROMs (*.ch8 *.c8);;All Files (*)")
        if not file_name:
            return
        try:
            self.load_rom(file_name)
        except (OSError, Chip8Error) as e:
            logger.error("Failed to load ROM %s: %s", file_name, e)
            QMessageBox.critical(self, "Error", f"Failed to load ROM: {e}")

    @Slot()
    def _load_config_dialog(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open Config", "", "YAML Files (*.yaml *.yml);;All Files (*)")
        if not file_name:
            return
        try:
            self.load_config(file_name)
        except (OSError, ValueError) as e:
            logger.error("Failed to load config %s: %s", file_name, e)
            QMessageBox.critical(self, "Error", f"Failed to load config: {e}")

    # @intent:responsibility デバッガの連続実行を開始します。
    @Slot()
    def _run_debugger(self):
        self._start_debugger_thread(single_step=False, message="Running...")

    # @intent:responsibility バックグラウンドスレッドでデバッガを起動します。完了するまでStop以外の操作を無効にします。
    def _start_debugger_thread(self, single_step: bool, message: str) -> None:
        self.debugger_thread = DebuggerThread(self.debugger, self.config.cpu.cycles_per_second, single_step)
        self.debugger_thread.breakpoint_hit.connect(self._on_breakpoint_hit)
        self.debugger_thread.error_occurred.connect(self._show_fault)
        self.debugger_thread.finished.connect(self._on_run_finished)
        self._update_ui_state(True)
        self.statusBar().showMessage(message)
        self.debugger_thread.start()

    @Slot()
    def _stop_debugger(self):
        self.statusBar().showMessage("Stopping...")
        self.debugger.stop()

    # @intent:responsibility 1命令実行します。キー入力待ちの間もイベントループが止まらないよう、バックグラウンドで実行します。
    @Slot()
    def _step_debugger(self):
        self._start_debugger_thread(single_step=True, message="Stepping...")

    @Slot()
    def _step_back_debugger(self):
        self.debugger.step_back()
        self._refresh_views()

    @Slot()
    def _reset_cpu(self):
        self.cpu.reset()
        self.debugger.reset_history()
        self._refresh_views()
        self.statusBar().showMessage("Reset")

    @Slot(Snapshot)
    def _on_breakpoint_hit(self, snapshot: Snapshot):
        self.statusBar().showMessage(f"Stopped at PC 0x{snapshot.state.pc:03X}")

    @Slot()
    def _on_run_finished(self):
        self._update_ui_state(False)
        self._refresh_views()

    @Slot(str)
    def _show_fault(self, message: str):
        self.statusBar().showMessage(f"Halted: {message}")
        QMessageBox.critical(self, "CPU Halted", message)

    @Slot()
    def _on_frame(self):
        self.display_view.refresh()
        self.keypad_view.update_keys()

    # @intent:responsibility 現在のCPU状態で全てのビューを更新します。
    def _refresh_views(self):
        state = self.cpu.get_state()
        self.display_view.set_framebuffer(self.cpu.get_framebuffer())
        self.register_view.update_registers()
        self.stack_view.update_stack(state)
        self.code_view.update_code(state.pc)

    # @intent:responsibility キーボード入力をキーマップ経由でキーパッドに伝えます。
    def keyPressEvent(self, event: QKeyEvent):
        if event.isAutoRepeat() or not self.keypad_view.handle_key_event(self._key_name(event), True):
            super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent):
        if event.isAutoRepeat() or not self.keypad_view.handle_key_event(self._key_name(event), False):
            super().keyReleaseEvent(event)

    @staticmethod
    def _key_name(event: QKeyEvent) -> str:
        return QKeySequence(event.key()).toString()

    def _set_dark_theme(self):
        palette = QPalette()
        palette.setColor(QPalette.Window, QColor(29, 29, 29))
        palette.setColor(QPalette.WindowText, QColor(224, 224, 224))
        palette.setColor(QPalette.Base, QColor(30, 30, 30))
        palette.setColor(QPalette.Text, QColor(224, 224, 224))
        palette.setColor(QPalette.Button, QColor(53, 53, 53))
        palette.setColor(QPalette.ButtonText, QColor(224, 224, 224))
        palette.setColor(QPalette.Highlight, QColor(42, 130, 218))
        QApplication.setPalette(palette)

        font_family = get_monospace_font_family()
        self.setStyleSheet(f"""
            QWidget {{ font-family: '{font_family}', monospace; font-size: 10pt; }}
            QMainWindow, QToolBar {{ background-color: #1D1D1D; border: none; }}
            QDockWidget::title {{ text-align: left; background: #101010; padding: 4px; font-weight: bold; }}
            QTabWidget::pane {{ border-top: 2px solid #2A82DA; }}
            QTabBar::tab {{ background: #1E1E1E; padding: 6px 10px; min-width: 70px; }}
            QTabBar::tab:selected {{ background: #101010; border: 1px solid #2A82DA; }}
        """)

    # @intent:responsibility 終了時にバックグラウンドスレッドを停止・待機します。
    def closeEvent(self, event: QCloseEvent):
        self._frame_timer.stop()
        if self.is_running():
            # 終了待ちの間にシグナル経由でUIを更新しないよう切断する
            try:
                self.debugger_thread.breakpoint_hit.disconnect(self._on_breakpoint_hit)
                self.debugger_thread.finished.disconnect(self._on_run_finished)
            except RuntimeError:
                pass
            self.debugger.stop()
            self.debugger_thread.wait()
        event.accept()
