from __future__ import annotations

from typing import Any, Protocol


class FeedError(RuntimeError):
    """
    feed 拉取成功但内容不可用（非 2xx、非法 JSON、顶层不是数组）。
    """


class Source(Protocol):
    """
    feed 适配器接口：拉取远程 alert 列表（原始记录，未解析）。

    v0 约定：
    - 失败一律抛异常，由 orchestrator 统一捕获、记录并保留旧缓存
    - now_ms 用作 cache-buster 查询参数
    """

    def key(self) -> str: ...

    def fetch(self, now_ms: int) -> list[Any]: ...
