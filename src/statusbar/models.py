from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Mapping

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def now_ms() -> int:
    return int(time.time() * 1000)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return sign + "".join(reversed(digits))


def _first_utf16_unit(ch: str) -> int:
    cp = ord(ch)
    if cp <= 0xFFFF:
        return cp
    return 0xD800 + ((cp - 0x10000) >> 10)


def content_hash(text: str) -> str:
    """
    消息内容的稳定指纹（非加密），在 feed 未提供 id 时作为 Alert 的身份。

    算法：h = h*31 + unit，每步截断为有符号 32 位，最后以 36 进制输出。
    - 每个码点取其第一个 UTF-16 码元，与浏览器版 banner 写入的 dismissed key 一致
    - 不使用 Python 内置 hash（进程间加盐，不稳定）
    """
    h = 0
    for ch in text:
        h = _to_int32((h << 5) - h + _first_utf16_unit(ch))
    return _to_base36(h)


@dataclass(frozen=True, slots=True)
class Alert:
    """
    Banner 消息：由 feed 原始记录解析而来，解析后不可变。

    id 为显式 id（字符串化）或 content_hash(message)；原始记录本身不会被修改。
    """

    id: str
    message: str
    link: str = "#"
    active: bool = False
    dismissable: bool = False
    priority: float | None = None
    level: str | None = None

    @property
    def content_key(self) -> str:
        return content_hash(self.message)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def parse_alert(raw: Any) -> Alert | None:
    """
    将 feed 中的一条记录解析为 Alert；不符合格式的记录返回 None（丢弃而非报错）。

    兼容字段：msg / message。
    """
    if not isinstance(raw, Mapping):
        return None

    message = raw.get("msg") or raw.get("message")
    if not isinstance(message, str) or not message.strip():
        return None

    raw_id = raw.get("id")
    if isinstance(raw_id, str) and raw_id:
        alert_id = raw_id
    elif isinstance(raw_id, int) and not isinstance(raw_id, bool):
        alert_id = str(raw_id)
    else:
        alert_id = content_hash(message)

    link = raw.get("link")
    priority = raw.get("priority")
    level = raw.get("level")
    return Alert(
        id=alert_id,
        message=message,
        link=link if isinstance(link, str) and link else "#",
        active=raw.get("active") is True,
        dismissable=raw.get("dismissable") is True,
        priority=float(priority) if _is_number(priority) else None,
        level=level if isinstance(level, str) and level else None,
    )
