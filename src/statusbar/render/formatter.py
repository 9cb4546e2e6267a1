from __future__ import annotations

from ..models import Alert

ARROW = "→"

LEVEL_COLORS = {
    "danger": "\033[41;97m",
    "error": "\033[41;97m",
    "warning": "\033[43;30m",
    "info": "\033[44;97m",
    "success": "\033[42;30m",
}
DEFAULT_COLOR = "\033[103;30m"
RESET = "\033[0m"


def format_banner_text(alert: Alert, *, width: int | None = None) -> str:
    """
    v0：单行 banner 文本：[level] message →  link（link 为 "#" 时省略）。

    width 给定时按宽度截断，避免终端折行。
    """
    parts = []
    if alert.level:
        parts.append(f"[{alert.level}]")
    parts.append(alert.message.strip())
    parts.append(ARROW)
    if alert.link and alert.link != "#":
        parts.append(alert.link)
    text = " ".join(parts)
    if width is not None and width > 1 and len(text) > width:
        text = text[: width - 1] + "…"
    return text


def colorize(text: str, level: str | None) -> str:
    color = LEVEL_COLORS.get((level or "").lower(), DEFAULT_COLOR)
    return f"{color}{text}{RESET}"
