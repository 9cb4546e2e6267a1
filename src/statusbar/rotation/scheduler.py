from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from ..clock import Clock, TimerHandle
from ..models import Alert

logger = logging.getLogger(__name__)


def word_count(text: str) -> int:
    return len(text.split())


def compute_dwell_ms(message: str, *, min_dwell_ms: float, reading_wpm: float, pad_ms: float) -> float:
    """
    停留时长 = max(下限, 词数 / 阅读速度 * 60000 + 固定余量)。

    短消息不低于下限；长消息按词数线性增长。
    """
    wpm = reading_wpm if reading_wpm > 0 else 1.0
    return max(float(min_dwell_ms), word_count(message) / wpm * 60000 + pad_ms)


@dataclass(slots=True)
class RotationState:
    """
    轮播运行时状态（仅内存，随可展示集合整体重建）。
    """

    displayable: tuple[Alert, ...] = ()
    index: int = 0
    pending_timer: TimerHandle | None = None

    def current(self) -> Alert | None:
        if not self.displayable:
            return None
        return self.displayable[self.index % len(self.displayable)]


@dataclass(slots=True)
class RotationScheduler:
    """
    定时推进轮播下标。

    - schedule()：多于 1 条且未加锁时按当前消息长度布置一次性定时器（同一时刻至多一个）
    - 定时器触发：加锁则丢弃（进行中的 transition 结束后会自行重新 schedule），否则推进下标并请求渲染
    - reset()：取消待触发的定时器（可展示集合变化时调用）
    """

    clock: Clock
    is_locked: Callable[[], bool]
    on_advance: Callable[[Alert], None]
    min_dwell_ms: float = 5000
    reading_wpm: float = 180
    pad_ms: float = 2000
    state: RotationState = field(default_factory=RotationState)

    def dwell_ms(self, alert: Alert) -> float:
        return compute_dwell_ms(
            alert.message,
            min_dwell_ms=self.min_dwell_ms,
            reading_wpm=self.reading_wpm,
            pad_ms=self.pad_ms,
        )

    def schedule(self) -> TimerHandle | None:
        self.reset()
        current = self.state.current()
        if current is None or len(self.state.displayable) <= 1 or self.is_locked():
            return None
        dwell = self.dwell_ms(current)
        self.state.pending_timer = self.clock.call_later(dwell, self._fire)
        logger.debug("rotation armed: index=%d dwell_ms=%d id=%s", self.state.index, dwell, current.id)
        return self.state.pending_timer

    def reset(self) -> None:
        timer = self.state.pending_timer
        if timer is not None:
            timer.cancel()
            self.state.pending_timer = None

    def replace(self, displayable: tuple[Alert, ...]) -> None:
        self.reset()
        self.state = RotationState(displayable=displayable)

    def _fire(self) -> None:
        self.state.pending_timer = None
        if self.is_locked():
            logger.debug("rotation fire dropped: transition in flight")
            return
        if len(self.state.displayable) <= 1:
            return
        self.state.index = (self.state.index + 1) % len(self.state.displayable)
        current = self.state.current()
        if current is not None:
            self.on_advance(current)
