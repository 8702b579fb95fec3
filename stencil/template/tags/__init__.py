"""
Встроенные теги шаблонизатора.
"""

from __future__ import annotations

from ..registry import TagRegistry
from .assignment import AssignTarget, SetTag
from .blocks import BlockTag, ExtendsTag, ParentTag
from .conditional import ElseIfTag, ElseTag, IfTag
from .imports import ImportTag
from .include import IncludeTag
from .loop import ForTag
from .macro import Macro, MacroTag
from .output import AutoescapeTag, FilterTag, RawTag, SpacelessTag


def register_builtin_tags(registry: TagRegistry) -> None:
    """Регистрирует встроенные теги в реестре."""
    for tag in (
        AutoescapeTag(),
        BlockTag(),
        ElseTag(),
        ElseIfTag("elseif"),
        ElseIfTag("elif"),
        ExtendsTag(),
        FilterTag(),
        ForTag(),
        IfTag(),
        ImportTag(),
        IncludeTag(),
        MacroTag(),
        ParentTag(),
        RawTag(),
        SetTag(),
        SpacelessTag(),
    ):
        registry.register(tag)


__all__ = [
    "register_builtin_tags",
    "AssignTarget",
    "Macro",
    "AutoescapeTag", "BlockTag", "ElseTag", "ElseIfTag", "ExtendsTag", "FilterTag",
    "ForTag", "IfTag", "ImportTag", "IncludeTag", "MacroTag", "ParentTag", "RawTag",
    "SetTag", "SpacelessTag",
]
