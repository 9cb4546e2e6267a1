from __future__ import annotations

from typing import Callable, Protocol

from ..models import Alert


class RenderSurface(Protocol):
    """
    渲染面接口：展示单条 Alert（文本 + 链接 + 提示图标），并暴露点击钩子。

    v0 约定：
    - apply() 同步替换内容与点击回调，并将 surface 标记为可见
    - start_exit()/start_enter() 只负责启动动画，时长由 TransitionCoordinator 控制
    - width() 用于判断是否低于最小宽度（低于则整个功能不启用）
    """

    def width(self) -> int: ...

    def is_visible(self) -> bool: ...

    def apply(self, alert: Alert, on_click: Callable[[], None]) -> None: ...

    def start_exit(self) -> None: ...

    def start_enter(self) -> None: ...

    def hide(self) -> None: ...
