from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

from .models import now_ms

logger = logging.getLogger(__name__)


@dataclass(order=True, slots=True)
class TimerHandle:
    """
    一次性定时器句柄；cancel() 后回调不会再执行。
    """

    due_ms: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)
    fired: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class Clock(Protocol):
    """
    单线程协作式时钟：所有回调依次执行完毕后才会调度下一个。
    """

    def now_ms(self) -> int: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


class _TimerQueue:
    def __init__(self) -> None:
        self._heap: list[TimerHandle] = []
        self._seq = itertools.count()

    def _push(self, due_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(due_ms=due_ms, seq=next(self._seq), callback=callback)
        heapq.heappush(self._heap, handle)
        return handle

    def _pop_due(self, now: float) -> TimerHandle | None:
        while self._heap:
            head = self._heap[0]
            if head.cancelled:
                heapq.heappop(self._heap)
                continue
            if head.due_ms > now:
                return None
            heapq.heappop(self._heap)
            head.fired = True
            return head
        return None

    def _next_due(self) -> float | None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0].due_ms if self._heap else None

    def pending_count(self) -> int:
        return sum(1 for h in self._heap if h.pending)


class VirtualClock(_TimerQueue):
    """
    虚拟时钟：时间只在 advance() 时前进，按到期顺序同步执行回调。

    用于测试：状态机与调度逻辑不依赖真实 sleep。回调中的异常直接抛给调用方。
    """

    def __init__(self, start_ms: int = 0) -> None:
        super().__init__()
        self._now = float(start_ms)

    def now_ms(self) -> int:
        return int(self._now)

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        return self._push(self._now + max(0.0, delay_ms), callback)

    def advance(self, delta_ms: float) -> None:
        target = self._now + delta_ms
        while True:
            due = self._next_due()
            if due is None or due > target:
                break
            self._now = max(self._now, due)
            handle = self._pop_due(self._now)
            if handle is not None:
                handle.callback()
        self._now = target


class EventLoop(_TimerQueue):
    """
    真实时间的单线程事件循环（对应宿主页面的事件循环）。

    - now_ms() 返回 epoch 毫秒（用于持久化时间戳）
    - 定时器按 monotonic 时间调度，不受系统时钟回拨影响
    - 回调异常记录日志后继续运行，不中断循环
    """

    def __init__(self) -> None:
        super().__init__()
        self._stopped = False

    def now_ms(self) -> int:
        return now_ms()

    def _mono_ms(self) -> float:
        return time.monotonic() * 1000

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        return self._push(self._mono_ms() + max(0.0, delay_ms), callback)

    def stop(self) -> None:
        self._stopped = True

    def run(self, *, max_idle_sleep_seconds: float = 1.0) -> None:
        self._stopped = False
        while not self._stopped:
            handle = self._pop_due(self._mono_ms())
            if handle is not None:
                try:
                    handle.callback()
                except Exception:  # noqa: BLE001
                    logger.exception("timer callback crashed: callback=%r", handle.callback)
                continue

            due = self._next_due()
            if due is None:
                break
            wait_s = (due - self._mono_ms()) / 1000
            time.sleep(min(max(0.0, wait_s), max_idle_sleep_seconds))
