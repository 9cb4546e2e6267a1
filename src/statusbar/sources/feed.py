from __future__ import annotations

import json
import urllib.error
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..http_utils import HttpClient, with_query_params
from .base import FeedError


@dataclass(slots=True)
class FeedSource:
    """
    拉取 alert feed：GET <url>?t=<epoch 毫秒>。

    url 没有 http/https scheme 时视为本地 JSON 文件路径（支持 file://），便于离线部署。
    """

    url: str
    http: HttpClient

    def key(self) -> str:
        return f"feed:{self.url}"

    def _is_remote(self) -> bool:
        return urllib.parse.urlparse(self.url).scheme in ("http", "https")

    def fetch(self, now_ms: int) -> list[Any]:
        if self._is_remote():
            try:
                resp = self.http.get(with_query_params(self.url, {"t": str(now_ms)}))
            except urllib.error.HTTPError as e:
                raise FeedError(f"feed request failed: status={e.code} url={self.url}") from e
            if not resp.ok:
                raise FeedError(f"feed request failed: status={resp.status} url={resp.url}")
            body = resp.body
        else:
            parsed = urllib.parse.urlparse(self.url)
            path = Path(urllib.parse.unquote(parsed.path)) if parsed.scheme == "file" else Path(self.url)
            body = path.read_bytes()

        try:
            data = json.loads(body.decode("utf-8"))
        except ValueError as e:
            raise FeedError(f"feed is not valid JSON: {self.url}") from e
        if not isinstance(data, list):
            raise FeedError(f"feed expected list, got {type(data).__name__}: {self.url}")
        return data
