from .base import RenderSurface
from .console import ConsoleSurface
from .formatter import colorize, format_banner_text

__all__ = [
    "ConsoleSurface",
    "RenderSurface",
    "colorize",
    "format_banner_text",
]
