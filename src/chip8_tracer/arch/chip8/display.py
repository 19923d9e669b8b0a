# src/chip8_tracer/arch/chip8/display.py
"""
CHIP-8 フレームバッファ。

64x32 のモノクロ画素をrow-majorで保持し、画素が変化するたびにdirtyフラグを立てます。
描画側（UIなど）は描画後にclear_dirty()でフラグを下ろします。
"""
from enum import Enum
from typing import Iterable, List

WIDTH = 64
HEIGHT = 32


# @intent:responsibility スプライトが画面端を越えた場合の扱いを定義します。
class SpriteEdge(Enum):
    WRAP = "wrap"  # 画面反対側へ折り返す (座標 mod 64/32)
    CLIP = "clip"  # 画面外のピクセルを捨てる（開始座標自体は画面内に折り返す）


# @intent:responsibility 64x32 の1ビット画素とdirtyフラグを保持し、XOR描画と衝突判定を提供します。
class Framebuffer:
    def __init__(self, width: int = WIDTH, height: int = HEIGHT):
        self.width = width
        self.height = height
        self._pixels = bytearray(width * height)
        # 起動直後の画面も描画対象とする
        self.dirty = True

    def __eq__(self, other) -> bool:
        if not isinstance(other, Framebuffer):
            return NotImplemented
        return self._pixels == other._pixels and self.dirty == other.dirty

    def get_pixel(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} framebuffer")
        return self._pixels[y * self.width + x] == 1

    # @intent:responsibility 行ごとの画素リストを返します（描画・テスト用）。
    def rows(self) -> List[List[bool]]:
        w = self.width
        return [[p == 1 for p in self._pixels[y * w:(y + 1) * w]] for y in range(self.height)]

    # @intent:responsibility 画素列（row-major、1画素1バイトの0/1）のコピーを返します。
    def to_bytes(self) -> bytes:
        return bytes(self._pixels)

    def lit_count(self) -> int:
        return sum(self._pixels)

    # @intent:responsibility 全画素を消去し、dirtyにします。
    def clear(self) -> None:
        self._pixels = bytearray(self.width * self.height)
        self.dirty = True

    def clear_dirty(self) -> None:
        self.dirty = False

    # @intent:responsibility 8ピクセル幅のスプライトをXOR描画し、衝突（1→0になった画素）の有無を返します。
    # @intent:pre-condition sprite_rows の各要素は8bit値で、MSBが左端のピクセルです。
    def draw_sprite(self, x: int, y: int, sprite_rows: Iterable[int], edge: SpriteEdge = SpriteEdge.WRAP) -> bool:
        """
        (x, y) を左上としてスプライトを描画します。
        衝突判定は呼び出しごとに新しく計算され、前回の結果は持ち越しません。
        """
        collision = False
        x0 = x % self.width
        y0 = y % self.height
        for row, bits in enumerate(sprite_rows):
            py = y0 + row
            if py >= self.height:
                if edge is SpriteEdge.CLIP:
                    break
                py %= self.height
            for col in range(8):
                if not bits & (0x80 >> col):
                    continue
                px = x0 + col
                if px >= self.width:
                    if edge is SpriteEdge.CLIP:
                        break
                    px %= self.width
                idx = py * self.width + px
                if self._pixels[idx]:
                    collision = True
                self._pixels[idx] ^= 1
        self.dirty = True
        return collision
