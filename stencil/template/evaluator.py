"""
Вычислитель выражений шаблона.

Интерпретирует дерево выражения в кадре рендеринга. Обращения
к отсутствующим путям и ключам дают пустую строку; исключения
пользовательских фильтров и функций пробрасываются как есть.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Type

from ..errors import StencilError
from ..runtime import (
    ARITHMETIC, MISSING, Frame, call_value, compare, get_member, lookup_callable,
    truthy, try_get_path,
)
from .nodes import (
    ArrayLiteral, Attribute, BinaryOp, Call, Expr, FilterCall, FunctionCall,
    Index, Literal, LogicalOp, Not, ObjectLiteral, Path,
)


class ExpressionEvaluator:
    """Интерпретатор узлов выражений."""

    def evaluate(self, expr: Expr, frame: Frame) -> Any:
        method = self._dispatch.get(type(expr))
        if method is None:
            raise TypeError(f"Unknown expression node: {type(expr).__name__}")
        return method(self, expr, frame)

    def _literal(self, expr: Literal, frame: Frame) -> Any:
        return expr.value

    def _path(self, expr: Path, frame: Frame) -> Any:
        value = try_get_path(frame.context, frame.ambient, expr.segments)
        return "" if value is MISSING else value

    def _attribute(self, expr: Attribute, frame: Frame) -> Any:
        value = get_member(self.evaluate(expr.target, frame), expr.key)
        return "" if value is MISSING else value

    def _index(self, expr: Index, frame: Frame) -> Any:
        target = self.evaluate(expr.target, frame)
        value = get_member(target, self.evaluate(expr.key, frame))
        return "" if value is MISSING else value

    def _filter(self, expr: FilterCall, frame: Frame) -> Any:
        spec = frame.env.filters.get(expr.name) if frame.env is not None else None
        if spec is None:
            raise StencilError(f'Filter "{expr.name}" does not exist.')
        target = self.evaluate(expr.target, frame)
        args = [self.evaluate(arg, frame) for arg in expr.args]
        return spec.func(target, *args)

    def _function(self, expr: FunctionCall, frame: Frame) -> Any:
        callee = lookup_callable(frame.context, frame.ambient, expr.name)
        args = [self.evaluate(arg, frame) for arg in expr.args]
        return call_value(callee, args)

    def _call(self, expr: Call, frame: Frame) -> Any:
        callee = self.evaluate(expr.callee, frame)
        args = [self.evaluate(arg, frame) for arg in expr.args]
        return call_value(callee, args)

    def _array(self, expr: ArrayLiteral, frame: Frame) -> Any:
        return [self.evaluate(item, frame) for item in expr.items]

    def _object(self, expr: ObjectLiteral, frame: Frame) -> Any:
        return {key: self.evaluate(value, frame) for key, value in expr.items}

    def _not(self, expr: Not, frame: Frame) -> Any:
        return not truthy(self.evaluate(expr.operand, frame))

    def _binary(self, expr: BinaryOp, frame: Frame) -> Any:
        left = self.evaluate(expr.left, frame)
        right = self.evaluate(expr.right, frame)
        operation = ARITHMETIC.get(expr.op)
        if operation is not None:
            return operation(left, right)
        return compare(expr.op, left, right)

    def _logical(self, expr: LogicalOp, frame: Frame) -> Any:
        # Результатом является сам операнд, а не bool
        left = self.evaluate(expr.left, frame)
        if expr.op == "&&":
            return self.evaluate(expr.right, frame) if truthy(left) else left
        return left if truthy(left) else self.evaluate(expr.right, frame)

    _dispatch: Dict[Type[Expr], Callable[..., Any]] = {
        Literal: _literal,
        Path: _path,
        Attribute: _attribute,
        Index: _index,
        FilterCall: _filter,
        FunctionCall: _function,
        Call: _call,
        ArrayLiteral: _array,
        ObjectLiteral: _object,
        Not: _not,
        BinaryOp: _binary,
        LogicalOp: _logical,
    }


_evaluator = ExpressionEvaluator()


def evaluate(expr: Expr, frame: Frame) -> Any:
    """Вычисляет выражение вычислителем по умолчанию."""
    return _evaluator.evaluate(expr, frame)


__all__ = ["ExpressionEvaluator", "evaluate"]
