"""
Общие типы шаблонизатора.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from .nodes import ParsedTemplate, TemplateNode

if TYPE_CHECKING:
    from ..config import Options
    from ..runtime import Frame

# Скомпилированная инструкция: пишет вывод в кадр рендеринга
Instruction = Callable[["Frame"], None]

# Функция компиляции, передаваемая тегам: (content, parents, options, block_name)
CompileFn = Callable[[List[TemplateNode], List[ParsedTemplate], "Options", Optional[str]], Instruction]


@dataclass(frozen=True)
class FilterSpec:
    """
    Зарегистрированный фильтр.

    ``safe`` отключает автоэкранирование выражения, в котором применён фильтр.
    """
    name: str
    func: Callable[..., Any]
    safe: bool = False


__all__ = ["Instruction", "CompileFn", "FilterSpec"]
