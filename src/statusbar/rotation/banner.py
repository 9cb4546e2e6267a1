from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from ..clock import Clock
from ..models import Alert
from ..render.base import RenderSurface
from .scheduler import RotationScheduler
from .transition import TransitionCoordinator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Banner:
    """
    轮播 banner：持有 RotationState，并把 scheduler / transition / surface 串起来。

    数据流：
    - show(displayable)：集合变化时整体重建状态、取消待触发定时器，然后渲染第一条（或隐藏）
    - scheduler 到期 -> transition_to(下一条) -> 动画结束 -> 重新 schedule
    - 点击 dismissable 的 Alert -> on_dismiss（由 orchestrator 写入 store 并重新 reconcile）

    进行中的切换不会被打断；若期间集合发生变化，切换结束后再渲染当前应展示的那一条。
    """

    clock: Clock
    surface: RenderSurface
    on_dismiss: Callable[[Alert], None] | None = None
    min_dwell_ms: float = 5000
    reading_wpm: float = 180
    pad_ms: float = 2000
    transition_ms: float = 400
    scheduler: RotationScheduler = field(init=False)
    transitions: TransitionCoordinator = field(init=False)

    def __post_init__(self) -> None:
        self.transitions = TransitionCoordinator(
            clock=self.clock,
            surface=self.surface,
            on_click=self._handle_click,
            on_settled=self._settled,
            duration_ms=self.transition_ms,
        )
        self.scheduler = RotationScheduler(
            clock=self.clock,
            is_locked=lambda: self.transitions.locked,
            on_advance=self._render,
            min_dwell_ms=self.min_dwell_ms,
            reading_wpm=self.reading_wpm,
            pad_ms=self.pad_ms,
        )

    @property
    def displayable(self) -> tuple[Alert, ...]:
        return self.scheduler.state.displayable

    @property
    def current(self) -> Alert | None:
        return self.scheduler.state.current()

    @property
    def locked(self) -> bool:
        return self.transitions.locked

    def show(self, displayable: tuple[Alert, ...]) -> bool:
        """
        替换可展示集合；与当前集合相等（值相等）时不做任何事并返回 False。
        """
        displayable = tuple(displayable)
        if displayable == self.scheduler.state.displayable:
            return False

        self.scheduler.replace(displayable)
        logger.info("displayable set changed: count=%d ids=%s", len(displayable), ",".join(a.id for a in displayable))

        current = self.scheduler.state.current()
        if current is None:
            if not self.transitions.locked:
                self.surface.hide()
            return True
        self._render(current)
        return True

    def stop(self) -> None:
        """
        停止轮播：取消 dwell 与切换定时器，清空集合并隐藏；之后 show() 会重新渲染。
        """
        self.scheduler.reset()
        self.transitions.cancel()
        self.scheduler.replace(())
        self.surface.hide()

    def _render(self, alert: Alert) -> None:
        if self.transitions.locked:
            return
        self.transitions.transition_to(alert)

    def _settled(self, shown: Alert) -> None:
        current = self.scheduler.state.current()
        if current is None:
            self.surface.hide()
            return
        if current != shown:
            self._render(current)
            return
        self.scheduler.schedule()

    def _handle_click(self, alert: Alert) -> None:
        if not alert.dismissable or self.on_dismiss is None:
            logger.debug("click on non-dismissable alert: id=%s", alert.id)
            return
        self.on_dismiss(alert)
