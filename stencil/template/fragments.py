"""
Фрагменты промежуточного представления выражений.

Парсер токенов выражения выдаёт линейную последовательность фрагментов
(аналог кусочков сгенерированного кода), которую затем собирает
в дерево ``ExpressionBuilder``. Префиксная запись фильтров
(``FILTER_OPEN target, args )``) получается вставкой фрагмента
перед началом операнда.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Tuple


class FragmentKind(enum.Enum):
    """Виды фрагментов."""

    LITERAL = "literal"              # строка, число, булево значение
    PATH = "path"                    # безопасный путь a.b.c
    NAME = "name"                    # голый ключ объектного литерала
    FILTER_OPEN = "filter_open"      # начало вызова фильтра: f(
    FUNC_OPEN = "func_open"          # вызов функции по имени: f(
    FUNC_CALL = "func_call"          # вызов функции без аргументов: f()
    CALLEE_OPEN = "callee_open"      # вставленная перед вызываемым выражением скобка
    CALL_OPEN = "call_open"          # начало списка аргументов вызова выражения
    PAREN_OPEN = "paren_open"        # группирующая скобка
    PAREN_CLOSE = "paren_close"
    COMMA = "comma"
    OPERATOR = "operator"            # + - * / %
    COMPARATOR = "comparator"        # === == !== != < <= > >= in
    LOGIC = "logic"                  # && ||
    NOT = "not"
    INDEX_OPEN = "index_open"        # a[ ... ]
    ARRAY_OPEN = "array_open"        # [ ... ]
    BRACKET_CLOSE = "bracket_close"
    CURLY_OPEN = "curly_open"
    COLON = "colon"
    CURLY_CLOSE = "curly_close"
    DOTKEY = "dotkey"                # .key после выражения


@dataclass(frozen=True)
class Fragment:
    """Один фрагмент выражения."""
    kind: FragmentKind
    value: Any = None

    def __repr__(self) -> str:
        if self.value is None:
            return f"<{self.kind.value}>"
        return f"<{self.kind.value} {self.value!r}>"


def literal(value: Any) -> Fragment:
    return Fragment(FragmentKind.LITERAL, value)


def path(segments: Tuple[str, ...]) -> Fragment:
    return Fragment(FragmentKind.PATH, tuple(segments))


def punct(kind: FragmentKind, value: Any = None) -> Fragment:
    return Fragment(kind, value)


def is_fragment(item: Any) -> bool:
    """Проверяет, что элемент выхода парсера является фрагментом выражения."""
    return isinstance(item, Fragment)


__all__ = ["FragmentKind", "Fragment", "literal", "path", "punct", "is_fragment"]
