"""
Узлы AST шаблонизатора.

Здесь определены два семейства узлов:
- узлы выражений (результат сборки фрагментов парсера выражений);
- узлы шаблона (литеральный текст, вывод переменной, тег).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from .base import TemplateTag


# ============================================================================
# Узлы выражений
# ============================================================================

@dataclass(frozen=True)
class Expr:
    """Базовый класс узлов выражений."""
    pass


@dataclass(frozen=True)
class Literal(Expr):
    """Строка, число или булево значение."""
    value: Any


@dataclass(frozen=True)
class Path(Expr):
    """
    Безопасный доступ по пути ``a.b.c``.

    Сначала путь ищется в контексте рендеринга, затем в окружающей
    области видимости; при отсутствии любого звена результат пуст.
    """
    segments: Tuple[str, ...]


@dataclass(frozen=True)
class Attribute(Expr):
    """Доступ к ключу после выражения: ``expr.key``."""
    target: Expr
    key: str


@dataclass(frozen=True)
class Index(Expr):
    """Доступ по индексу: ``expr[key]``."""
    target: Expr
    key: Expr


@dataclass(frozen=True)
class FilterCall(Expr):
    """Применение фильтра: ``target|name(args)``."""
    name: str
    target: Expr
    args: Tuple[Expr, ...] = ()


@dataclass(frozen=True)
class FunctionCall(Expr):
    """Вызов функции по имени: ``name(args)``."""
    name: str
    args: Tuple[Expr, ...] = ()


@dataclass(frozen=True)
class Call(Expr):
    """Вызов произвольного выражения: ``a.b(args)``, ``e["f"](args)``."""
    callee: Expr
    args: Tuple[Expr, ...] = ()


@dataclass(frozen=True)
class ArrayLiteral(Expr):
    items: Tuple[Expr, ...] = ()


@dataclass(frozen=True)
class ObjectLiteral(Expr):
    items: Tuple[Tuple[str, Expr], ...] = ()


@dataclass(frozen=True)
class Not(Expr):
    operand: Expr


@dataclass(frozen=True)
class BinaryOp(Expr):
    """Арифметика и сравнения."""
    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True)
class LogicalOp(Expr):
    """Логические ``&&`` и ``||`` с коротким замыканием."""
    op: str
    left: Expr
    right: Expr


# ============================================================================
# Узлы шаблона
# ============================================================================

class TemplateNode:
    """
    Базовый класс узлов шаблона.

    Не является dataclass: текстовые узлы неизменяемы, а теги накапливают
    содержимое во время разбора.
    """
    pass


@dataclass(frozen=True)
class TextNode(TemplateNode):
    """Литеральный текст между конструкциями шаблона."""
    text: str


@dataclass(frozen=True)
class OutputNode(TemplateNode):
    """Вывод переменной ``{{ ... }}``."""
    expr: Expr
    source: str = ""
    line: int = 1


@dataclass(eq=False)
class TagNode(TemplateNode):
    """
    Тег ``{% name args %}``.

    Изменяемый узел: содержимое накапливается, пока тег открыт,
    а резолвер наследования создаёт копии с переписанным содержимым.
    """
    name: str
    args: List[Any]
    tag: TemplateTag
    content: List[TemplateNode] = field(default_factory=list)
    line: int = 1
    filename: Optional[str] = None
    # Исходный текст аргументов тега
    source: str = ""

    @property
    def ends(self) -> bool:
        return self.tag.ends

    @property
    def block(self) -> bool:
        return self.tag.block

    @property
    def block_name(self) -> str:
        """Имя блока, склеенное из аргументов (для тега ``block``)."""
        return "".join(str(a) for a in self.args)


# Алиас для списка узлов (AST)
TemplateAST = List[TemplateNode]


@dataclass
class ParsedTemplate:
    """
    Результат разбора одного исходника.

    Attributes:
        name: Имя файла шаблона (или None для строковых исходников)
        parent: Имя родительского шаблона из ``extends``
        tokens: Узлы верхнего уровня
        blocks: Блочные теги верхнего уровня по ключу
    """
    name: Optional[str]
    parent: Optional[str]
    tokens: List[TemplateNode]
    blocks: Dict[str, TagNode] = field(default_factory=dict)


__all__ = [
    "Expr", "Literal", "Path", "Attribute", "Index", "FilterCall", "FunctionCall", "Call",
    "ArrayLiteral", "ObjectLiteral", "Not", "BinaryOp", "LogicalOp",
    "TemplateNode", "TextNode", "OutputNode", "TagNode", "TemplateAST", "ParsedTemplate",
]
