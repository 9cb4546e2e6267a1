from __future__ import annotations

from typing import Any, Mapping

from ..models import Alert, parse_alert


def is_stale(last_fetch: int | float | None, now: int | float, ttl: int | float) -> bool:
    """
    缓存是否过期：从未拉取（0/None）或 now - last_fetch > ttl。

    只决定是否发起远程刷新；缓存内容总是先行展示（cache-then-revalidate）。
    """
    if not last_fetch:
        return True
    return now - last_fetch > ttl


def is_dismissed(alert: Alert, dismissed: Mapping[str, Any]) -> bool:
    # 同时检查显式 id 与内容指纹：浏览器版 banner 总是以内容指纹记录 dismissal。
    return alert.id in dismissed or alert.content_key in dismissed


def reconcile(raw_alerts: Any, dismissed: Mapping[str, Any] | None, now: int | float) -> tuple[Alert, ...]:
    """
    由 feed 原始数据与 dismissed 映射计算可展示集合（纯函数）。

    规则：
    - 非 list 输入视为空；格式错误的记录直接丢弃
    - 仅保留 active is True、message 非空、且未被 dismiss 的 Alert
    - 任一 Alert 带 priority 时按 priority 降序稳定排序（缺省视为 0），否则保持 feed 顺序
    - 排序后按内容指纹去重，先出现者保留
    """
    del now  # dismissed 的过期清理在 store 层完成，这里只做纯过滤
    if not isinstance(raw_alerts, list):
        return ()
    dismissed = dismissed or {}

    kept: list[Alert] = []
    for raw in raw_alerts:
        alert = parse_alert(raw)
        if alert is None or not alert.active:
            continue
        if is_dismissed(alert, dismissed):
            continue
        kept.append(alert)

    if any(a.priority is not None for a in kept):
        kept.sort(key=lambda a: -(a.priority or 0.0))

    seen: set[str] = set()
    result: list[Alert] = []
    for alert in kept:
        key = alert.content_key
        if key in seen:
            continue
        seen.add(key)
        result.append(alert)
    return tuple(result)
