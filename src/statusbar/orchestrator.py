from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime

from .clock import Clock, EventLoop, TimerHandle
from .config import AppConfig
from .http_utils import HttpClient
from .models import Alert
from .render.base import RenderSurface
from .render.console import ConsoleSurface
from .rotation.banner import Banner
from .rules.policy import is_stale, reconcile
from .sources.base import Source
from .sources.feed import FeedSource
from .state.sqlite_store import SqliteKeyValueStore
from .state.store import BannerStateStore, KeyValueStore, PersistedState


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class SyncReport:
    started_at: datetime
    duration_ms: int = 0
    skipped: bool = False
    forced: bool = False
    stale: bool = False
    fetch_attempted: bool = False
    fetch_succeeded: bool = False
    fetch_error: str | None = None
    cached_alerts: int = 0
    fetched_alerts: int = 0
    displayable: int = 0
    changed: bool = False


@dataclass(slots=True)
class SyncOrchestrator:
    """
    同步编排器：负责一次同步周期内的完整数据流闭环：
    Store(cache) -> Reconcile -> Banner ->（过期则）Source -> Store(persist) -> Reconcile -> Banner

    同时作为 banner 的生命周期对象：start() 只生效一次，stop() 取消所有定时器。
    """

    clock: Clock
    store: BannerStateStore
    source: Source
    banner: Banner
    cache_ttl_ms: int = 30 * 60 * 1000
    poll_interval_ms: int = 60 * 1000
    min_viewport_width: int = 0
    running: bool = False
    last_report: SyncReport | None = None
    _poll_timer: TimerHandle | None = None

    def __post_init__(self) -> None:
        if self.banner.on_dismiss is None:
            self.banner.on_dismiss = self.dismiss

    def viewport_ok(self) -> bool:
        return self.banner.surface.width() >= self.min_viewport_width

    def start(self) -> bool:
        """
        启动：先用缓存渲染，过期则拉取，然后按 poll 间隔强制刷新。

        已在运行或渲染面过窄时不做任何事，返回 False。
        """
        if self.running:
            logger.debug("start ignored: already running")
            return False
        if not self.viewport_ok():
            logger.info(
                "banner inert: viewport width %d < min_viewport_width %d",
                self.banner.surface.width(),
                self.min_viewport_width,
            )
            return False

        self.running = True
        self.sync()
        self._arm_poll()
        return True

    def stop(self) -> None:
        self.running = False
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None
        self.banner.stop()

    def _arm_poll(self) -> None:
        self._poll_timer = self.clock.call_later(self.poll_interval_ms, self._poll_tick)

    def _poll_tick(self) -> None:
        self._poll_timer = None
        if not self.running:
            return
        try:
            self.sync(force=True)
        except Exception:  # noqa: BLE001
            logger.exception("sync crashed: source_key=%s", self.source.key())
        finally:
            if self.running:
                self._arm_poll()

    def cached_displayable(self) -> tuple[Alert, ...]:
        now = self.clock.now_ms()
        state = self.store.load(now)
        return reconcile(list(state.cache), state.dismissed, now)

    def sync(self, force: bool = False) -> SyncReport:
        """
        执行一次同步。

        执行顺序：
        - 读取持久化状态，立即用缓存 reconcile 并渲染（不等待网络）
        - force 或缓存过期时拉取 feed
        - 成功：持久化 payload 与时间戳，再次 reconcile；失败：记录日志，保留缓存
        """
        report = SyncReport(started_at=_utc_now(), forced=force)
        start_t = time.monotonic()

        if not self.viewport_ok():
            report.skipped = True
            self.last_report = report
            return report

        now = self.clock.now_ms()
        state = self.store.load(now)
        report.cached_alerts = len(state.cache)

        displayable = reconcile(list(state.cache), state.dismissed, now)
        report.changed = self.banner.show(displayable)
        report.displayable = len(displayable)

        report.stale = is_stale(state.last_fetch, now, self.cache_ttl_ms)
        if force or report.stale:
            report.fetch_attempted = True
            try:
                payload = self.source.fetch(now)
            except Exception as e:  # noqa: BLE001
                report.fetch_error = f"{type(e).__name__}: {e}"
                logger.warning(
                    "feed fetch failed, keeping cache: source_key=%s error=%s",
                    self.source.key(),
                    report.fetch_error,
                )
            else:
                report.fetch_succeeded = True
                report.fetched_alerts = len(payload)
                state = self._persist_fetch(state, payload, now)
                displayable = reconcile(payload, state.dismissed, now)
                report.changed = self.banner.show(displayable) or report.changed
                report.displayable = len(displayable)

        report.duration_ms = int((time.monotonic() - start_t) * 1000)
        self.last_report = report
        logger.debug(
            "sync done: forced=%s stale=%s fetched=%s displayable=%d changed=%s duration_ms=%d",
            report.forced,
            report.stale,
            report.fetch_succeeded,
            report.displayable,
            report.changed,
            report.duration_ms,
        )
        return report

    def _persist_fetch(self, state: PersistedState, payload: list, now: int) -> PersistedState:
        try:
            return self.store.record_fetch(payload, now)
        except Exception:  # noqa: BLE001
            logger.exception("state write failed: key=%s", self.store.key)
            return state

    def dismiss(self, alert: Alert) -> SyncReport:
        """
        记录 dismissal 后立即重新同步，banner 无需等待下一次轮询即可前进或消失。
        """
        now = self.clock.now_ms()
        try:
            self.store.dismiss(alert.id, now)
        except Exception:  # noqa: BLE001
            logger.exception("state write failed: key=%s dismiss_id=%s", self.store.key, alert.id)
        return self.sync()


def build_orchestrator(
    config: AppConfig,
    *,
    clock: Clock | None = None,
    surface: RenderSurface | None = None,
    backend: KeyValueStore | None = None,
) -> SyncOrchestrator:
    """
    根据配置构建可运行的 SyncOrchestrator。

    设计取舍（v0）：
    - 统一在这里做“配置 -> 实例”的装配，Orchestrator 内只关注流程编排
    - clock / surface / backend 可注入，便于测试与嵌入
    """
    clock = clock or EventLoop()
    http = HttpClient(
        timeout_seconds=config.http.timeout_seconds,
        max_retries=config.http.max_retries,
        verify_ssl=config.http.verify_ssl,
    )
    store = BannerStateStore(
        backend=backend or SqliteKeyValueStore(config.sqlite_path),
        key=config.state_key,
        dismiss_retention_ms=config.dismiss_retention_ms,
    )
    banner = Banner(
        clock=clock,
        surface=surface or ConsoleSurface(),
        min_dwell_ms=config.rotation.min_dwell_ms,
        reading_wpm=config.rotation.reading_wpm,
        pad_ms=config.rotation.pad_ms,
        transition_ms=config.rotation.transition_ms,
    )
    return SyncOrchestrator(
        clock=clock,
        store=store,
        source=FeedSource(url=config.feed_url, http=http),
        banner=banner,
        cache_ttl_ms=config.cache_ttl_ms,
        poll_interval_ms=config.poll_interval_ms,
        min_viewport_width=config.min_viewport_width,
    )
