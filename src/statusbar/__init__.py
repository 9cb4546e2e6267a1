"""
Status Banner (statusbar)

轮播通知 banner：拉取远程 alert feed，与本地持久化状态（缓存新鲜度、逐条 dismiss）
合并，计算可展示集合，并按消息长度决定停留时长进行轮播，切换时先退出再进入。
"""

from .models import Alert, content_hash
from .orchestrator import SyncOrchestrator, SyncReport, build_orchestrator

__all__ = [
    "Alert",
    "SyncOrchestrator",
    "SyncReport",
    "build_orchestrator",
    "content_hash",
]
