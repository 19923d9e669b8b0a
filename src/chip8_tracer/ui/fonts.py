"""
UIフォント管理モジュール。

レジスタ値や逆アセンブル結果の桁を揃えるため、環境ごとに利用可能な等幅フォントを選びます。
"""
from functools import lru_cache

from PySide6.QtGui import QFont, QFontDatabase

# 上から順に、最初に見つかったものを使う
PREFERRED_MONOSPACE_FAMILIES = ("Consolas", "Menlo", "DejaVu Sans Mono", "Courier New")

# @intent:responsibility 利用可能な等幅フォントファミリー名を返します。結果はプロセス内でキャッシュします。
@lru_cache(maxsize=1)
def get_monospace_font_family() -> str:
    available = set(QFontDatabase.families())
    for family in PREFERRED_MONOSPACE_FAMILIES:
        if family in available:
            return family
    # 候補がない場合はQtのシステム等幅フォント
    return QFontDatabase.systemFont(QFontDatabase.FixedFont).family()

def get_monospace_font(size: int = 10, bold: bool = False) -> QFont:
    font = QFont(get_monospace_font_family(), size)
    font.setBold(bold)
    return font
