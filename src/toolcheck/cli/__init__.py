"""CLI package."""

from .app import app
from .render import Renderer
from .shell import InteractiveShell

__all__ = [
    "InteractiveShell",
    "Renderer",
    "app",
]
