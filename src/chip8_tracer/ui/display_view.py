"""
CHIP-8のフレームバッファを表示するウィジェット。
"""
from typing import Optional

from PySide6.QtWidgets import QWidget, QSizePolicy
from PySide6.QtGui import QPainter, QImage, QColor, QPaintEvent
from PySide6.QtCore import Qt, QSize

from chip8_tracer.arch.chip8.display import Framebuffer, WIDTH, HEIGHT

COLOR_PIXEL_OFF = QColor("#101010")
COLOR_PIXEL_ON = QColor("#33FF66")

# @intent:responsibility フレームバッファの内容を拡大表示します。dirtyな時だけ画像を作り直し、フラグを下ろします。
class DisplayView(QWidget):
    """
    64x32の画面を、縦横比を保ったまま整数倍に拡大して描画するウィジェット。
    refresh()をタイマから定期的に呼び出して使用します。
    """
    def __init__(self, parent=None, scale: int = 10):
        super().__init__(parent)
        self._scale = scale
        self._framebuffer: Optional[Framebuffer] = None
        self._image = QImage(WIDTH, HEIGHT, QImage.Format_Indexed8)
        self._image.setColorTable([COLOR_PIXEL_OFF.rgb(), COLOR_PIXEL_ON.rgb()])
        self._image.fill(0)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumSize(WIDTH * 4, HEIGHT * 4)

    def sizeHint(self) -> QSize:
        return QSize(WIDTH * self._scale, HEIGHT * self._scale)

    # @intent:responsibility 表示対象のフレームバッファを設定します。新しいフレームバッファは必ず一度描画します。
    def set_framebuffer(self, framebuffer: Framebuffer) -> None:
        if framebuffer is not self._framebuffer:
            self._framebuffer = framebuffer
            framebuffer.dirty = True
        self.refresh()

    # @intent:responsibility dirtyであれば画像を再構築して再描画を要求し、dirtyフラグを下ろします。
    # @intent:return 再描画を要求した場合True。
    def refresh(self) -> bool:
        fb = self._framebuffer
        if fb is None or not fb.dirty:
            return False

        pixels = fb.to_bytes()
        fb.clear_dirty()
        image = QImage(pixels, fb.width, fb.height, fb.width, QImage.Format_Indexed8)
        image.setColorTable([COLOR_PIXEL_OFF.rgb(), COLOR_PIXEL_ON.rgb()])
        # 元のbytesの寿命に依存しないようにコピーを保持する
        self._image = image.copy()
        self.update()
        return True

    def get_image(self) -> QImage:
        return self._image

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.fillRect(self.rect(), Qt.black)

        # 整数倍に拡大し、中央に配置する
        scale = max(1, min(self.width() // WIDTH, self.height() // HEIGHT))
        w, h = WIDTH * scale, HEIGHT * scale
        x = (self.width() - w) // 2
        y = (self.height() - h) // 2
        painter.drawImage(x, y, self._image.scaled(w, h, Qt.IgnoreAspectRatio, Qt.FastTransformation))
        painter.end()
