# src/chip8_tracer/ui/app.py
"""
PySide6アプリケーションのエントリポイント。
コマンドライン引数を解釈し、ログを設定してメインウィンドウを起動します。
"""
import argparse
import logging
import sys
from typing import List, Optional

from PySide6.QtWidgets import QApplication

from chip8_tracer.common.errors import Chip8Error
from chip8_tracer.config.loader import ConfigLoader
from .main_window import MainWindow

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="chip8-tracer", description="CHIP-8 interpreter and tracer")
    parser.add_argument("rom", nargs="?", help="CHIP-8 ROM file to load on startup")
    parser.add_argument("-c", "--config", help="YAML configuration file")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="logging level (default: WARNING)")
    return parser.parse_args(argv)

# @intent:responsibility アプリケーションを起動し、メインウィンドウを表示します。
def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    config = ConfigLoader().load_from_file(args.config) if args.config else None

    app = QApplication(sys.argv[:1])
    main_win = MainWindow(config)
    if args.rom:
        try:
            main_win.load_rom(args.rom)
        except (OSError, Chip8Error) as e:
            logger.error("Failed to load ROM %s: %s", args.rom, e)
            return 1
    main_win.show()
    return app.exec()

if __name__ == '__main__':
    sys.exit(main())
