from .base import FeedError, Source
from .feed import FeedSource

__all__ = [
    "FeedError",
    "FeedSource",
    "Source",
]
