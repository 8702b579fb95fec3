"""
Загрузчик шаблонов из словаря в памяти.

Пути в стиле POSIX; ключи словаря сопоставляются как с ведущим
слэшем, так и без него.
"""

from __future__ import annotations

import logging
import posixpath
from typing import Mapping, Optional

from ..errors import TemplateNotFoundError
from .base import BaseLoader

logger = logging.getLogger(__name__)


class MemoryLoader(BaseLoader):
    def __init__(self, mapping: Mapping[str, str], basepath: Optional[str] = None):
        self.mapping = dict(mapping)
        self.basepath = basepath

    def resolve(self, to: str, from_: Optional[str] = None) -> str:
        if self.basepath:
            base = self.basepath
        elif from_:
            base = posixpath.dirname(from_)
        else:
            base = "/"
        resolved = posixpath.normpath(posixpath.join("/", base, to))
        logger.debug(f"Resolved {to} from {from_ or base} to {resolved}")
        return resolved

    def read(self, identifier: str) -> str:
        logger.debug(f"Loading template {identifier} from memory")
        for key in (identifier, identifier.lstrip("/\\")):
            if key in self.mapping:
                return self.mapping[key]
        raise TemplateNotFoundError(path=identifier)


__all__ = ["MemoryLoader"]
