from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Protocol

logger = logging.getLogger(__name__)

STATE_SCHEMA_VERSION = 2
DEFAULT_STATE_KEY = "app_banner_system"
DAY_MS = 24 * 60 * 60 * 1000


class KeyValueStore(Protocol):
    """
    外部 key-value 后端：只保存不透明的字符串 blob。
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


@dataclass(slots=True)
class MemoryKeyValueStore:
    """
    进程内 key-value 后端（嵌入使用与测试）。
    """

    data: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


@dataclass(frozen=True, slots=True)
class PersistedState:
    """
    持久化状态（单个 JSON 文档）。

    cache:
      - 最近一次成功拉取的 feed 原始记录
    last_fetch:
      - 最近一次成功拉取的时间（epoch 毫秒，0 表示从未拉取）
    dismissed:
      - alert id -> dismiss 时间（epoch 毫秒）
    """

    cache: tuple[Any, ...] = ()
    last_fetch: int = 0
    dismissed: dict[str, int] = field(default_factory=dict)
    version: int = STATE_SCHEMA_VERSION

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "cache": list(self.cache),
            "lastFetch": self.last_fetch,
            "dismissed": dict(self.dismissed),
        }

    def pruned(self, now: int, retention_ms: int) -> PersistedState:
        if retention_ms <= 0:
            return self
        cutoff = now - retention_ms
        kept = {k: v for k, v in self.dismissed.items() if v >= cutoff}
        if len(kept) == len(self.dismissed):
            return self
        return replace(self, dismissed=kept)


def _is_timestamp(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _decode_dismissed(value: Any) -> dict[str, int]:
    if not isinstance(value, dict):
        return {}
    out: dict[str, int] = {}
    for k, v in value.items():
        if not _is_timestamp(v):
            continue
        out[str(k)] = int(v)
    return out


def _decode_int(value: Any) -> int:
    return int(value) if _is_timestamp(value) else 0


def _migrate_v1(obj: dict[str, Any]) -> dict[str, Any]:
    """
    v1：浏览器版 banner 写入的无版本结构 {cache?, lastFetch?, dismissed?}，
    字段可能缺失或为任意类型。
    """
    cache = obj.get("cache")
    return {
        "version": 2,
        "cache": cache if isinstance(cache, list) else [],
        "lastFetch": _decode_int(obj.get("lastFetch")),
        "dismissed": _decode_dismissed(obj.get("dismissed")),
    }


_MIGRATIONS = {
    1: _migrate_v1,
}


def decode_state(blob: str | None) -> PersistedState:
    """
    解析持久化 blob；缺失或损坏时降级为默认空状态（不抛异常）。
    """
    if not blob:
        return PersistedState()
    try:
        obj = json.loads(blob)
    except ValueError:
        logger.warning("persisted state is not valid JSON; resetting to default")
        return PersistedState()
    if not isinstance(obj, dict):
        logger.warning("persisted state is not an object (%s); resetting to default", type(obj).__name__)
        return PersistedState()

    version = obj.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        version = 1
    if version > STATE_SCHEMA_VERSION:
        logger.warning("persisted state version %d is newer than supported %d; resetting", version, STATE_SCHEMA_VERSION)
        return PersistedState()
    if version < STATE_SCHEMA_VERSION and version not in _MIGRATIONS:
        logger.warning("persisted state version %d is unknown; resetting to default", version)
        return PersistedState()
    while version < STATE_SCHEMA_VERSION:
        obj = _MIGRATIONS[version](obj)
        version = obj["version"]

    cache = obj.get("cache")
    return PersistedState(
        cache=tuple(cache) if isinstance(cache, list) else (),
        last_fetch=_decode_int(obj.get("lastFetch")),
        dismissed=_decode_dismissed(obj.get("dismissed")),
    )


def encode_state(state: PersistedState) -> str:
    return json.dumps(state.to_json_dict(), ensure_ascii=False, separators=(",", ":"))


@dataclass(slots=True)
class BannerStateStore:
    """
    PersistentStore 适配层：通过注入的 key-value 后端读写单个 JSON blob。

    - 读取时做 schema 迁移与 dismissed 过期清理
    - 读-改-写不跨进程加锁（last write wins）
    """

    backend: KeyValueStore
    key: str = DEFAULT_STATE_KEY
    dismiss_retention_ms: int = 7 * DAY_MS

    def load(self, now: int) -> PersistedState:
        try:
            blob = self.backend.get(self.key)
        except Exception:  # noqa: BLE001
            logger.exception("state backend read failed: key=%s", self.key)
            return PersistedState()
        return decode_state(blob).pruned(now, self.dismiss_retention_ms)

    def save(self, state: PersistedState, now: int) -> PersistedState:
        state = state.pruned(now, self.dismiss_retention_ms)
        self.backend.set(self.key, encode_state(state))
        return state

    def record_fetch(self, payload: list[Any], now: int) -> PersistedState:
        state = self.load(now)
        return self.save(replace(state, cache=tuple(payload), last_fetch=now), now)

    def dismiss(self, alert_id: str, now: int) -> PersistedState:
        state = self.load(now)
        dismissed = dict(state.dismissed)
        dismissed[alert_id] = now
        logger.info("alert dismissed: id=%s", alert_id)
        return self.save(replace(state, dismissed=dismissed), now)
