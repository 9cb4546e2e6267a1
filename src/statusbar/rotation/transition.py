from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from ..clock import Clock, TimerHandle
from ..models import Alert
from ..render.base import RenderSurface

logger = logging.getLogger(__name__)


class TransitionPhase(enum.Enum):
    IDLE = "idle"
    EXITING_OLD = "exiting_old"
    MUTATING_CONTENT = "mutating_content"
    ENTERING_NEW = "entering_new"


@dataclass(slots=True)
class TransitionCoordinator:
    """
    内容切换状态机：IDLE -> EXITING_OLD -> MUTATING_CONTENT -> ENTERING_NEW -> IDLE。

    - 同一时刻至多一个切换在进行（非 IDLE 即加锁），重复请求直接拒绝
    - 首次渲染（surface 尚无内容）跳过退出动画，直接上屏
    - 两段动画各持续 duration_ms，完成后回调 on_settled（由调用方重新 schedule）
    """

    clock: Clock
    surface: RenderSurface
    on_click: Callable[[Alert], None]
    on_settled: Callable[[Alert], None]
    duration_ms: float = 400
    phase: TransitionPhase = TransitionPhase.IDLE
    target: Alert | None = None
    history: deque[TransitionPhase] = field(default_factory=lambda: deque(maxlen=64))
    _phase_timer: TimerHandle | None = None

    @property
    def locked(self) -> bool:
        return self.phase is not TransitionPhase.IDLE

    def _enter(self, phase: TransitionPhase) -> None:
        self.phase = phase
        self.history.append(phase)
        logger.debug("transition phase: %s target=%s", phase.value, self.target.id if self.target else None)

    def transition_to(self, alert: Alert) -> bool:
        if self.locked:
            logger.debug("transition rejected: phase=%s requested=%s", self.phase.value, alert.id)
            return False

        self.target = alert
        if not self.surface.is_visible():
            self._apply(alert)
            self._settle()
            return True

        self._enter(TransitionPhase.EXITING_OLD)
        self.surface.start_exit()
        self._phase_timer = self.clock.call_later(self.duration_ms, self._mutate)
        return True

    def _apply(self, alert: Alert) -> None:
        self.surface.apply(alert, lambda: self.on_click(alert))

    def _mutate(self) -> None:
        assert self.target is not None
        self._enter(TransitionPhase.MUTATING_CONTENT)
        self._apply(self.target)
        self._enter(TransitionPhase.ENTERING_NEW)
        self.surface.start_enter()
        self._phase_timer = self.clock.call_later(self.duration_ms, self._settle)

    def cancel(self) -> None:
        """
        中止进行中的切换：取消待触发的阶段定时器并回到 IDLE，不回调 on_settled。
        """
        if self._phase_timer is not None:
            self._phase_timer.cancel()
            self._phase_timer = None
        self.target = None
        if self.locked:
            self._enter(TransitionPhase.IDLE)

    def _settle(self) -> None:
        self._phase_timer = None
        self._enter(TransitionPhase.IDLE)
        alert = self.target
        self.target = None
        if alert is not None:
            self.on_settled(alert)
