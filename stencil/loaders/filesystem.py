"""
Загрузчик шаблонов из файловой системы.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from ..errors import TemplateNotFoundError
from .base import BaseLoader

logger = logging.getLogger(__name__)


class FileSystemLoader(BaseLoader):
    """
    Загружает шаблоны с диска.

    Пути разрешаются относительно ``basepath``, если он задан, иначе
    относительно каталога шаблона-источника, иначе от рабочего каталога.
    """

    def __init__(self, basepath: Optional[str] = None, encoding: str = "utf-8"):
        self.basepath = str(basepath) if basepath is not None else None
        self.encoding = encoding

    def resolve(self, to: str, from_: Optional[str] = None) -> str:
        if self.basepath:
            base = self.basepath
        elif from_:
            base = os.path.dirname(from_)
        else:
            base = os.getcwd()
        resolved = os.path.normpath(os.path.join(os.path.abspath(base), to))
        logger.debug(f"Resolved {to} from {from_ or base} to {resolved}")
        return resolved

    def read(self, identifier: str) -> str:
        path = Path(self.resolve(identifier))
        if not path.is_file():
            raise TemplateNotFoundError(path=str(path))
        logger.debug(f"Loading template {path}")
        return path.read_text(encoding=self.encoding)

    def __repr__(self) -> str:
        return f"FileSystemLoader(basepath={self.basepath!r})"


__all__ = ["FileSystemLoader"]
