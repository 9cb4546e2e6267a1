from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass, field
from typing import Callable, TextIO

from ..models import Alert
from .base import RenderSurface
from .formatter import colorize, format_banner_text


@dataclass(slots=True)
class ConsoleSurface(RenderSurface):
    """
    终端渲染面：每次上屏输出一行 banner 文本。

    说明：
    - 终端没有鼠标点击，click() 供 CLI/测试触发点击钩子
    - width() 取终端列数，对应页面的 viewport 宽度
    """

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    color: bool = False
    columns: int | None = None
    _visible: bool = False
    _current: Alert | None = None
    _on_click: Callable[[], None] | None = None

    def width(self) -> int:
        if self.columns is not None:
            return self.columns
        return shutil.get_terminal_size(fallback=(80, 24)).columns

    def is_visible(self) -> bool:
        return self._visible

    def apply(self, alert: Alert, on_click: Callable[[], None]) -> None:
        self._current = alert
        self._on_click = on_click
        self._visible = True
        text = format_banner_text(alert, width=self.width())
        if self.color:
            text = colorize(text, alert.level)
        self.stream.write(text + "\n")
        self.stream.flush()

    def start_exit(self) -> None:
        return None

    def start_enter(self) -> None:
        return None

    def hide(self) -> None:
        self._visible = False
        self._current = None
        self._on_click = None

    @property
    def current(self) -> Alert | None:
        return self._current

    def click(self) -> bool:
        if self._on_click is None:
            return False
        self._on_click()
        return True
