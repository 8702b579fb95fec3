"""
Загрузчики шаблонов.
"""

from __future__ import annotations

from .base import BaseLoader, LoadCallback
from .filesystem import FileSystemLoader
from .memory import MemoryLoader

__all__ = ["BaseLoader", "LoadCallback", "FileSystemLoader", "MemoryLoader"]
