"""
Протокол загрузчиков шаблонов.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..errors import StencilError

# callback(error, source)
LoadCallback = Callable[[Optional[Exception], Optional[str]], None]


class BaseLoader(ABC):
    """
    Загрузчик шаблонов.

    ``resolve`` превращает ссылку из шаблона в идентификатор (путь),
    ``load`` читает исходник по идентификатору. При переданном callback
    результат или ошибка доставляются в него, а метод возвращает None.
    """

    @abstractmethod
    def resolve(self, to: str, from_: Optional[str] = None) -> str:
        """Разрешает путь ``to`` относительно шаблона ``from_``."""
        pass

    @abstractmethod
    def read(self, identifier: str) -> str:
        """Читает исходник шаблона; отсутствие шаблона - TemplateNotFoundError."""
        pass

    def load(self, identifier: str, callback: Optional[LoadCallback] = None) -> Optional[str]:
        if callback is None:
            return self.read(identifier)
        try:
            source = self.read(identifier)
        except (StencilError, OSError) as e:
            callback(e, None)
            return None
        callback(None, source)
        return None


__all__ = ["BaseLoader", "LoadCallback"]
