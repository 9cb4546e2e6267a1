from __future__ import annotations

import argparse
import io
import logging
import os
import sys

from .clock import EventLoop
from .config import load_config
from .models import Alert
from .orchestrator import SyncOrchestrator, build_orchestrator
from .render.console import ConsoleSurface
from .render.formatter import format_banner_text


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="statusbar", description="Status banner (rotating alert feed)")
    p.add_argument("--config", required=True, help="Path to JSON config file")
    p.add_argument(
        "--log-level",
        default=None,
        help="Log level (DEBUG/INFO/WARNING/ERROR). Defaults to env STATUSBAR_LOG_LEVEL or INFO",
    )
    p.add_argument(
        "--status-interval",
        type=int,
        default=None,
        help="Daemon heartbeat interval seconds. Defaults to env STATUSBAR_STATUS_INTERVAL_SECONDS or 60. Set 0 to disable.",
    )
    p.add_argument("--color", action="store_true", help="Colorize banner lines by alert level")

    mode = p.add_mutually_exclusive_group(required=False)
    mode.add_argument("--once", action="store_true", help="Sync once, print the displayable alerts and exit")
    mode.add_argument("--daemon", action="store_true", help="Run the rotating banner until interrupted")
    mode.add_argument("--list", action="store_true", help="Print the cached displayable alerts without fetching")
    mode.add_argument("--dismiss", metavar="ID", default=None, help="Record a dismissal for the given alert id")
    return p


def _resolve_log_level(value: str | None) -> int:
    v = (value or "").strip().upper()
    if not v:
        return logging.INFO
    level = logging.getLevelNamesMapping().get(v)
    if isinstance(level, int):
        return level
    return logging.INFO


def _print_alerts(alerts: tuple[Alert, ...]) -> None:
    if not alerts:
        print("<no alerts>")
        return
    for a in alerts:
        marker = "x" if a.dismissable else "-"
        print(f"{a.id}\t{marker}\t{format_banner_text(a)}")


def _arm_heartbeat(loop: EventLoop, orchestrator: SyncOrchestrator, interval_seconds: int, logger: logging.Logger) -> None:
    def beat() -> None:
        report = orchestrator.last_report
        banner = orchestrator.banner
        current = banner.current
        logger.info(
            "daemon alive: displayable=%d index=%d current=%s locked=%s last_fetch_ok=%s last_error=%s",
            len(banner.displayable),
            banner.scheduler.state.index,
            current.id if current else "-",
            banner.locked,
            report.fetch_succeeded if report else "-",
            report.fetch_error if report and report.fetch_error else "-",
        )
        loop.call_later(interval_seconds * 1000, beat)

    loop.call_later(interval_seconds * 1000, beat)


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    env_log_level = os.environ.get("STATUSBAR_LOG_LEVEL")
    log_level = _resolve_log_level(args.log_level or env_log_level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    logger = logging.getLogger("statusbar")

    config = load_config(args.config)
    mode = "daemon" if args.daemon else "dismiss" if args.dismiss else "list" if args.list else "once"
    loop = EventLoop()
    # 只有 daemon 模式把 banner 渲染到终端；其他模式只打印结果
    stream = sys.stdout if mode == "daemon" else io.StringIO()
    surface = ConsoleSurface(stream=stream, color=args.color)
    orchestrator = build_orchestrator(config, clock=loop, surface=surface)

    status_interval = args.status_interval
    if status_interval is None:
        try:
            status_interval = int(os.environ.get("STATUSBAR_STATUS_INTERVAL_SECONDS") or 60)
        except Exception:
            status_interval = 60
    status_interval = max(0, int(status_interval))

    logger.info("statusbar start: mode=%s config=%s", mode, args.config)
    logger.info(
        "config: feed_url=%s poll_interval_seconds=%d cache_ttl_seconds=%d sqlite_path=%s",
        config.feed_url,
        config.poll_interval_seconds,
        config.cache_ttl_seconds,
        config.sqlite_path,
    )

    if args.dismiss:
        orchestrator.store.dismiss(args.dismiss, loop.now_ms())
        return 0

    if args.list:
        _print_alerts(orchestrator.cached_displayable())
        return 0

    if not args.daemon:
        report = orchestrator.sync(force=True)
        logger.info(
            "once done: duration_ms=%d fetched=%s cached=%d displayable=%d error=%s",
            report.duration_ms,
            report.fetch_succeeded,
            report.cached_alerts,
            report.displayable,
            report.fetch_error or "-",
        )
        _print_alerts(orchestrator.banner.displayable)
        return 0

    if not orchestrator.start():
        logger.warning("banner not started (terminal narrower than min_viewport_width=%d)", config.min_viewport_width)
        return 0
    if status_interval > 0:
        _arm_heartbeat(loop, orchestrator, status_interval, logger)
    try:
        loop.run()
    except KeyboardInterrupt:
        logger.info("interrupted; stopping")
    finally:
        orchestrator.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
