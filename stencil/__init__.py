"""
Stencil: шаблонизатор с синтаксисом ``{{ }}`` / ``{% %}`` / ``{# #}``,
наследованием шаблонов, макросами и автоэкранированием.

Функции уровня модуля создают новое окружение на каждый вызов;
для кэширования и собственных фильтров используйте ``Environment``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .config import Options, load_options
from .environment import Environment, Template
from .errors import (
    ExtendsCycleError,
    OptionsError,
    StencilError,
    TemplateNotFoundError,
    TemplateSyntaxError,
)
from .loaders import FileSystemLoader, MemoryLoader


def compile(source: str, **options: Any) -> Template:
    return Environment().compile(source, **options)


def render(source: str, locals: Optional[Mapping[str, Any]] = None, **options: Any) -> str:
    return Environment().render(source, locals, **options)


def render_file(path: str, locals: Optional[Mapping[str, Any]] = None, **options: Any) -> str:
    return Environment().render_file(path, locals, **options)


__all__ = [
    "Environment",
    "Template",
    "Options",
    "load_options",
    "FileSystemLoader",
    "MemoryLoader",
    "StencilError",
    "TemplateSyntaxError",
    "TemplateNotFoundError",
    "ExtendsCycleError",
    "OptionsError",
    "compile",
    "render",
    "render_file",
]
