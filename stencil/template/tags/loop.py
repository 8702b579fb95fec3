"""
Тег цикла ``for``.

    {% for item in items %}...{% endfor %}
    {% for key, value in mapping %}...{% endfor %}

Внутри цикла доступна переменная ``loop`` (index, index0, revindex,
revindex0, length, first, last, key). После цикла переменные цикла
и ``loop`` восстанавливаются в значения, которые были до него.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ...runtime import MISSING, Frame, iterate_items
from ..base import TemplateTag
from ..builder import build_expression
from ..evaluator import evaluate
from ..expression import TokenParser
from ..fragments import is_fragment
from ..lexer import LexerToken, TokenType
from ..types import Instruction

# Состояния, внутри которых числа допустимы в выражении итерируемого
_NUMBER_STATES = frozenset({
    TokenType.ARRAYOPEN, TokenType.CURLYOPEN, TokenType.CURLYCLOSE, TokenType.COLON,
    TokenType.FUNCTION, TokenType.FILTER, TokenType.PARENOPEN,
})


class ForTag(TemplateTag):
    name = "for"
    ends = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        state = {"first_var": False, "ready": False}

        def on_number(token: LexerToken) -> bool:
            if not state["ready"] or parser.last_state not in _NUMBER_STATES:
                parser.fail(f'Unexpected number "{token.match}"')
            return True

        def on_var(token: LexerToken) -> bool:
            if state["ready"] and state["first_var"]:
                return True
            if not parser.out:
                state["first_var"] = True
            parser.out.append(token.match)
            return False

        def on_comma(token: LexerToken) -> bool:
            prev = parser.prev_token
            if state["first_var"] and not state["ready"] and prev is not None and prev.type is TokenType.VAR:
                return False
            return True

        def on_comparator(token: LexerToken) -> bool:
            if token.match != "in" or not state["first_var"]:
                parser.fail(f'Unexpected token "{token.match}"')
            state["ready"] = True
            parser.filter_apply_idx.append(len(parser.out))
            return False

        def on_end(_token: Optional[LexerToken]) -> None:
            if not state["ready"]:
                parser.fail('Expected "in" in "for" tag')

        parser.on(TokenType.NUMBER, on_number)
        parser.on(TokenType.VAR, on_var)
        parser.on(TokenType.COMMA, on_comma)
        parser.on(TokenType.COMPARATOR, on_comparator)
        parser.on("end", on_end)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        names = [arg for arg in args if not is_fragment(arg)]
        if len(names) > 1:
            key_name, value_name = names[0], names[1]
        else:
            key_name, value_name = None, names[0]
        iterable = build_expression([arg for arg in args if is_fragment(arg)])
        body = compiler(content, parents, options, block_name)

        def render(frame: Frame) -> None:
            items = iterate_items(evaluate(iterable, frame))
            if not items:
                return

            ctx = frame.context
            saved: Dict[str, Any] = {
                name: ctx.get(name, MISSING) for name in ("loop", key_name, value_name) if name
            }
            length = len(items)
            loop: Dict[str, Any] = {"length": length}
            ctx["loop"] = loop
            try:
                for index0, (key, value) in enumerate(items):
                    loop.update(
                        index=index0 + 1,
                        index0=index0,
                        revindex=length - index0,
                        revindex0=length - index0 - 1,
                        first=index0 == 0,
                        last=index0 == length - 1,
                        key=key,
                    )
                    ctx[value_name] = value
                    if key_name:
                        ctx[key_name] = key
                    body(frame)
            finally:
                _restore(ctx, saved)

        return render


def _restore(ctx: Dict[str, Any], saved: Dict[str, Any]) -> None:
    for name, value in saved.items():
        if value is MISSING:
            ctx.pop(name, None)
        else:
            ctx[name] = value


__all__ = ["ForTag"]
