from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping


def _require_dict(value: Any, *, where: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"Expected object at {where}, got {type(value)}")
    return value


def _get_bool(d: Mapping[str, Any], key: str, default: bool) -> bool:
    v = d.get(key, default)
    return bool(v)


def _get_int(d: Mapping[str, Any], key: str, default: int) -> int:
    v = d.get(key, default)
    if isinstance(v, bool):
        return default
    try:
        return int(v)
    except Exception:
        return default


def _get_float(d: Mapping[str, Any], key: str, default: float) -> float:
    v = d.get(key, default)
    if isinstance(v, bool):
        return default
    try:
        return float(v)
    except Exception:
        return default


def _get_str(d: Mapping[str, Any], key: str, default: str | None = None) -> str | None:
    v = d.get(key, default)
    if v is None:
        return None
    return str(v)


@dataclass(frozen=True, slots=True)
class RotationConfig:
    """
    轮播节奏配置。

    min_dwell_ms:
      - 单条消息最短停留时长（下限）
    pad_ms:
      - 按阅读速度估算时长之外的固定余量
    reading_wpm:
      - 阅读速度（词/分钟）
    transition_ms:
      - 退出/进入动画各自的时长
    """

    min_dwell_ms: int = 5000
    pad_ms: int = 2000
    reading_wpm: float = 180.0
    transition_ms: int = 400


@dataclass(frozen=True, slots=True)
class HttpConfig:
    timeout_seconds: float = 10.0
    max_retries: int = 0
    verify_ssl: bool = True


@dataclass(frozen=True, slots=True)
class AppConfig:
    """
    应用总配置（v0 版本）。

    feed_url:
      - alert feed 地址（http/https，或本地 JSON 路径）
    poll_interval_seconds:
      - 强制刷新的轮询间隔（与缓存是否过期无关）
    cache_ttl_seconds:
      - 缓存新鲜期，过期后下一次同步会发起远程拉取
    dismiss_retention_days:
      - dismissed 记录保留天数，0 表示永久保留
    min_viewport_width:
      - 渲染面宽度低于该值时整个功能不启用（终端下为列数）
    sqlite_path / state_key:
      - 持久化状态所在的 SQLite 库与 key
    """

    feed_url: str
    poll_interval_seconds: int
    cache_ttl_seconds: int
    dismiss_retention_days: int
    min_viewport_width: int
    sqlite_path: str
    state_key: str
    rotation: RotationConfig
    http: HttpConfig

    @property
    def cache_ttl_ms(self) -> int:
        return self.cache_ttl_seconds * 1000

    @property
    def poll_interval_ms(self) -> int:
        return self.poll_interval_seconds * 1000

    @property
    def dismiss_retention_ms(self) -> int:
        return self.dismiss_retention_days * 24 * 60 * 60 * 1000


def parse_config(raw: Any) -> AppConfig:
    root = _require_dict(raw, where="$")

    rot = _require_dict(root.get("rotation", {}), where="$.rotation")
    rotation = RotationConfig(
        min_dwell_ms=max(0, _get_int(rot, "min_dwell_ms", 5000)),
        pad_ms=max(0, _get_int(rot, "pad_ms", 2000)),
        reading_wpm=_get_float(rot, "reading_wpm", 180.0),
        transition_ms=max(0, _get_int(rot, "transition_ms", 400)),
    )
    if rotation.reading_wpm <= 0:
        raise ValueError("$.rotation.reading_wpm must be positive")

    hc = _require_dict(root.get("http", {}), where="$.http")
    http = HttpConfig(
        timeout_seconds=_get_float(hc, "timeout_seconds", 10.0),
        max_retries=max(0, _get_int(hc, "max_retries", 0)),
        verify_ssl=_get_bool(hc, "verify_ssl", True),
    )

    state = _require_dict(root.get("state", {}), where="$.state")

    return AppConfig(
        feed_url=_get_str(root, "feed_url", "data.json") or "data.json",
        poll_interval_seconds=max(1, _get_int(root, "poll_interval_seconds", 60)),
        cache_ttl_seconds=max(0, _get_int(root, "cache_ttl_seconds", 1800)),
        dismiss_retention_days=max(0, _get_int(root, "dismiss_retention_days", 7)),
        min_viewport_width=max(0, _get_int(root, "min_viewport_width", 40)),
        sqlite_path=str(state.get("sqlite_path") or "./statusbar_state.sqlite3"),
        state_key=str(state.get("key") or "app_banner_system"),
        rotation=rotation,
        http=http,
    )


def load_config(config_path: str) -> AppConfig:
    """
    v0 约定：使用 JSON 作为配置落地形式，避免引入第三方 YAML 解析依赖。

    JSON 顶层结构（示意，均可省略）：
    {
      "feed_url": "https://example.com/alerts.json",
      "poll_interval_seconds": 60,
      "cache_ttl_seconds": 1800,
      "dismiss_retention_days": 7,
      "min_viewport_width": 40,
      "rotation": { "min_dwell_ms": 5000, "pad_ms": 2000, "reading_wpm": 180, "transition_ms": 400 },
      "state": { "sqlite_path": "./statusbar_state.sqlite3", "key": "app_banner_system" },
      "http": { "timeout_seconds": 10, "max_retries": 0 }
    }
    """
    with open(config_path, "rb") as f:
        raw = json.loads(f.read().decode("utf-8"))
    return parse_config(raw)
