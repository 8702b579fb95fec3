"""
Условные теги: ``if``, ``elseif``/``elif``, ``else``.

Ветки ``elseif`` и ``else`` не требуют закрывающего тега и попадают
в содержимое открытого ``if``; компиляция ``if`` разбивает содержимое
на ветки по этим узлам.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from ...runtime import Frame, truthy
from ..base import TemplateTag
from ..builder import build_expression
from ..evaluator import evaluate
from ..expression import TokenParser
from ..lexer import LexerToken, TokenType
from ..nodes import Expr, TagNode, TemplateNode
from ..types import Instruction


def setup_condition(args: Optional[str], parser: TokenParser) -> None:
    """Проверки логических выражений условия поверх алгоритма по умолчанию."""
    if args is None:
        parser.fail("No conditional statement provided")

    def on_comparator(token: LexerToken) -> bool:
        if parser.is_last:
            parser.fail(f'Unexpected logic "{token.match}"')
        if parser.prev_token is not None and parser.prev_token.type is TokenType.NOT:
            parser.fail(f'Attempted logic "not {token.match}". Use !(foo {token.match}) instead')
        return True

    def on_not(token: LexerToken) -> bool:
        if parser.is_last:
            parser.fail(f'Unexpected logic "{token.match}"')
        return True

    def on_logic(token: LexerToken) -> bool:
        if not parser.out or parser.is_last:
            parser.fail(f'Unexpected logic "{token.match}"')
        return True

    parser.on(TokenType.COMPARATOR, on_comparator)
    parser.on(TokenType.NOT, on_not)
    parser.on(TokenType.LOGIC, on_logic)


def _in_if(stack: List[TagNode]) -> bool:
    return bool(stack) and stack[-1].name == "if"


class IfTag(TemplateTag):
    """``{% if cond %}...{% elseif cond %}...{% else %}...{% endif %}``"""

    name = "if"
    ends = True

    def parse(self, args, line, parser, stack, options, env) -> bool:
        setup_condition(args, parser)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        branches: List[Tuple[Optional[Expr], List[TemplateNode]]] = [(build_expression(args), [])]
        for node in content:
            if isinstance(node, TagNode) and node.name in ("elseif", "elif"):
                branches.append((build_expression(node.args, node.source, node.line, node.filename), []))
            elif isinstance(node, TagNode) and node.name == "else":
                branches.append((None, []))
            else:
                branches[-1][1].append(node)

        compiled = [
            (condition, compiler(nodes, parents, options, block_name))
            for condition, nodes in branches
        ]

        def render(frame: Frame) -> None:
            for condition, body in compiled:
                if condition is None or truthy(evaluate(condition, frame)):
                    body(frame)
                    return

        return render


class ElseIfTag(TemplateTag):
    """Ветка ``elseif``/``elif``; допустима только внутри ``if``."""

    def __init__(self, name: str):
        self.name = name

    def parse(self, args, line, parser, stack, options, env) -> bool:
        setup_condition(args, parser)
        return _in_if(stack)

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        # Ветки компилирует родительский if
        return None


class ElseTag(TemplateTag):
    name = "else"

    def parse(self, args, line, parser, stack, options, env) -> bool:
        def reject(token: LexerToken) -> Any:
            parser.fail(f'"else" tag does not accept any tokens. Found "{token.match}"')

        parser.on("*", reject)
        return _in_if(stack)

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        return None


__all__ = ["IfTag", "ElseIfTag", "ElseTag", "setup_condition"]
