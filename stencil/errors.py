"""
Исключения движка шаблонов.

Ошибки, которые автор шаблона может исправить сам (синтаксис, отсутствующий
файл, цикл extends, неверные опции), наследуются от StencilError: CLI
печатает их одной строкой и завершается с кодом 2. Прочие исключения
считаются багами и выходят с трассировкой.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class StencilError(Exception):
    """Базовый класс ошибок, показываемых пользователю без трассировки."""


class TemplateSyntaxError(StencilError):
    """
    Template could not be parsed or compiled.

    The rendered message embeds the line number and the template
    filename when they are known.
    """

    def __init__(self, message: str, line: Optional[int] = None, filename: Optional[str] = None):
        self.message = message
        self.line = line
        self.filename = filename
        super().__init__(self._format())

    def _format(self) -> str:
        text = self.message
        if self.line is not None:
            text += f" on line {self.line}"
        if self.filename:
            text += f" in file {self.filename}"
        return text + "."

    def with_location(self, line: Optional[int], filename: Optional[str]) -> TemplateSyntaxError:
        """Возвращает копию ошибки с дозаполненными строкой и файлом."""
        return TemplateSyntaxError(
            self.message,
            self.line if self.line is not None else line,
            self.filename or filename,
        )


class ExpressionSyntaxError(TemplateSyntaxError):
    """Expression tokens do not form a valid expression."""

    def __init__(self, source: str, line: Optional[int] = None, filename: Optional[str] = None):
        self.source = source
        super().__init__(f'Unable to parse "{source}"', line, filename)

    def with_source(self, source: str) -> ExpressionSyntaxError:
        """Копия ошибки с исходным текстом, если сборщик его не знал."""
        if self.source or not source:
            return self
        return ExpressionSyntaxError(source, self.line, self.filename)

    def with_location(self, line: Optional[int], filename: Optional[str]) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(
            self.source,
            self.line if self.line is not None else line,
            self.filename or filename,
        )


@dataclass
class TemplateNotFoundError(StencilError):
    """Loader could not find the requested template."""
    path: str

    def __str__(self) -> str:
        return f'Unable to find template "{self.path}".'


@dataclass
class ExtendsCycleError(StencilError):
    """Circular dependency detected in an extends chain."""
    path: str
    chain: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f'Illegal circular extends of "{self.path}".'


class OptionsError(StencilError, ValueError):
    """Invalid engine or compile option."""
    pass


__all__ = [
    "StencilError",
    "TemplateSyntaxError",
    "ExpressionSyntaxError",
    "TemplateNotFoundError",
    "ExtendsCycleError",
    "OptionsError",
]
