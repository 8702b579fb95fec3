"""
Реестры тегов и фильтров.

Регистрация по имени; повторная регистрация перезаписывает
существующую запись с предупреждением в лог.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional

from .base import TemplateTag
from .types import FilterSpec

logger = logging.getLogger(__name__)


class TagRegistry:
    """Упорядоченная таблица тегов по имени."""

    def __init__(self):
        self._tags: Dict[str, TemplateTag] = {}

    def register(self, tag: TemplateTag) -> None:
        if tag.name in self._tags:
            logger.warning(f"Tag '{tag.name}' overwrites existing tag")
        self._tags[tag.name] = tag

    def get(self, name: str) -> Optional[TemplateTag]:
        return self._tags.get(name)

    def names(self) -> List[str]:
        return list(self._tags)

    def __contains__(self, name: object) -> bool:
        return name in self._tags

    def __getitem__(self, name: str) -> TemplateTag:
        return self._tags[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)


class FilterRegistry:
    """Таблица фильтров по имени."""

    def __init__(self):
        self._filters: Dict[str, FilterSpec] = {}

    def register(self, name: str, func: Callable, safe: bool = False) -> FilterSpec:
        if name in self._filters:
            logger.warning(f"Filter '{name}' overwrites existing filter")
        spec = FilterSpec(name=name, func=func, safe=safe)
        self._filters[name] = spec
        return spec

    def get(self, name: str) -> Optional[FilterSpec]:
        return self._filters.get(name)

    def names(self) -> List[str]:
        return list(self._filters)

    def __contains__(self, name: object) -> bool:
        return name in self._filters

    def __getitem__(self, name: str) -> FilterSpec:
        return self._filters[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)


__all__ = ["TagRegistry", "FilterRegistry"]
