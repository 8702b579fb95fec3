"""
Сборщик дерева выражения из последовательности фрагментов.

Фрагменты уже находятся в префиксной форме для фильтров и вызовов,
поэтому здесь остаётся обычный рекурсивный спуск с приоритетами
бинарных операторов:

    ||  <  &&  <  == === != !==  <  < <= > >= in  <  + -  <  * / %  <  !
"""

from __future__ import annotations

from typing import Any, List, NoReturn, Optional, Sequence, Tuple

from ..errors import ExpressionSyntaxError
from .fragments import Fragment, FragmentKind
from .nodes import (
    ArrayLiteral, Attribute, BinaryOp, Call, Expr, FilterCall, FunctionCall,
    Index, Literal, LogicalOp, Not, ObjectLiteral, Path,
)

# Уровни приоритета от низшего к высшему
_BINARY_LEVELS: Tuple[Tuple[FragmentKind, Tuple[str, ...]], ...] = (
    (FragmentKind.LOGIC, ("||",)),
    (FragmentKind.LOGIC, ("&&",)),
    (FragmentKind.COMPARATOR, ("==", "===", "!=", "!==")),
    (FragmentKind.COMPARATOR, ("<", "<=", ">", ">=", "in")),
    (FragmentKind.OPERATOR, ("+", "-")),
    (FragmentKind.OPERATOR, ("*", "/", "%")),
)


class ExpressionBuilder:
    """
    Рекурсивный спуск по фрагментам.

    Любая некорректная последовательность приводит к ошибке
    ``Unable to parse "<source>"``.
    """

    def __init__(self, fragments: Sequence[Any], source: str = "",
                 line: Optional[int] = None, filename: Optional[str] = None):
        self.fragments = list(fragments)
        self.source = source
        self.line = line
        self.filename = filename
        self.position = 0

    def build(self) -> Expr:
        if not self.fragments:
            return Literal("")
        for item in self.fragments:
            if not isinstance(item, Fragment):
                self._fail()
        expr = self._expression()
        if not self._at_end():
            self._fail()
        return expr

    def build_arguments(self) -> Tuple[Expr, ...]:
        """Разбирает список аргументов через запятую (без скобок)."""
        if not self.fragments:
            return ()
        if not all(isinstance(item, Fragment) for item in self.fragments):
            self._fail()
        items = [self._expression()]
        while self._match(FragmentKind.COMMA):
            items.append(self._expression())
        if not self._at_end():
            self._fail()
        return tuple(items)

    # ------------------------------------------------------------------
    # Навигация
    # ------------------------------------------------------------------

    def _fail(self) -> NoReturn:
        raise ExpressionSyntaxError(self.source, self.line, self.filename)

    def _at_end(self) -> bool:
        return self.position >= len(self.fragments)

    def _peek(self) -> Optional[Fragment]:
        if self._at_end():
            return None
        return self.fragments[self.position]

    def _check(self, kind: FragmentKind) -> bool:
        fragment = self._peek()
        return fragment is not None and fragment.kind is kind

    def _advance(self) -> Fragment:
        fragment = self._peek()
        if fragment is None:
            self._fail()
        self.position += 1
        return fragment

    def _match(self, kind: FragmentKind) -> bool:
        if self._check(kind):
            self.position += 1
            return True
        return False

    def _expect(self, kind: FragmentKind) -> Fragment:
        if not self._check(kind):
            self._fail()
        return self._advance()

    # ------------------------------------------------------------------
    # Грамматика
    # ------------------------------------------------------------------

    def _expression(self) -> Expr:
        return self._binary(0)

    def _binary(self, level: int) -> Expr:
        if level == len(_BINARY_LEVELS):
            return self._unary()

        kind, ops = _BINARY_LEVELS[level]
        left = self._binary(level + 1)
        while True:
            fragment = self._peek()
            if fragment is None or fragment.kind is not kind or fragment.value not in ops:
                return left
            self._advance()
            right = self._binary(level + 1)
            if kind is FragmentKind.LOGIC:
                left = LogicalOp(fragment.value, left, right)
            else:
                left = BinaryOp(fragment.value, left, right)

    def _unary(self) -> Expr:
        if self._match(FragmentKind.NOT):
            return Not(self._unary())
        return self._postfix()

    def _postfix(self) -> Expr:
        expr = self._primary()
        while True:
            fragment = self._peek()
            if fragment is None:
                return expr
            if fragment.kind is FragmentKind.DOTKEY:
                self._advance()
                expr = Attribute(expr, fragment.value)
            elif fragment.kind is FragmentKind.INDEX_OPEN:
                self._advance()
                key = self._expression()
                self._expect(FragmentKind.BRACKET_CLOSE)
                expr = Index(expr, key)
            else:
                return expr

    def _arguments(self, close: FragmentKind) -> Tuple[Expr, ...]:
        items: List[Expr] = []
        if self._match(close):
            return ()
        while True:
            items.append(self._expression())
            if self._match(close):
                return tuple(items)
            self._expect(FragmentKind.COMMA)
            if self._match(close):
                return tuple(items)

    def _primary(self) -> Expr:
        fragment = self._advance()
        kind = fragment.kind

        if kind is FragmentKind.LITERAL:
            return Literal(fragment.value)

        if kind is FragmentKind.PATH:
            return Path(fragment.value)

        if kind is FragmentKind.FILTER_OPEN:
            target = self._expression()
            args: List[Expr] = []
            while self._match(FragmentKind.COMMA):
                args.append(self._expression())
            self._expect(FragmentKind.PAREN_CLOSE)
            return FilterCall(fragment.value, target, tuple(args))

        if kind is FragmentKind.FUNC_OPEN:
            return FunctionCall(fragment.value, self._arguments(FragmentKind.PAREN_CLOSE))

        if kind is FragmentKind.FUNC_CALL:
            return FunctionCall(fragment.value, ())

        if kind is FragmentKind.CALLEE_OPEN:
            callee = self._expression()
            self._expect(FragmentKind.CALL_OPEN)
            return Call(callee, self._arguments(FragmentKind.PAREN_CLOSE))

        if kind is FragmentKind.PAREN_OPEN:
            inner = self._expression()
            self._expect(FragmentKind.PAREN_CLOSE)
            return inner

        if kind is FragmentKind.ARRAY_OPEN:
            return ArrayLiteral(self._arguments(FragmentKind.BRACKET_CLOSE))

        if kind is FragmentKind.CURLY_OPEN:
            return self._object()

        self._fail()

    def _object(self) -> Expr:
        items: List[Tuple[str, Expr]] = []
        if self._match(FragmentKind.CURLY_CLOSE):
            return ObjectLiteral(())
        while True:
            key = self._advance()
            if key.kind not in (FragmentKind.NAME, FragmentKind.LITERAL):
                self._fail()
            self._expect(FragmentKind.COLON)
            items.append((str(key.value), self._expression()))
            if self._match(FragmentKind.CURLY_CLOSE):
                return ObjectLiteral(tuple(items))
            self._expect(FragmentKind.COMMA)


def build_expression(fragments: Sequence[Any], source: str = "",
                     line: Optional[int] = None, filename: Optional[str] = None) -> Expr:
    """Собирает дерево выражения из фрагментов."""
    return ExpressionBuilder(fragments, source, line, filename).build()


def build_arguments(fragments: Sequence[Any], source: str = "",
                    line: Optional[int] = None, filename: Optional[str] = None) -> Tuple[Expr, ...]:
    """Собирает список выражений, разделённых запятыми."""
    return ExpressionBuilder(fragments, source, line, filename).build_arguments()


__all__ = ["ExpressionBuilder", "build_expression", "build_arguments"]
