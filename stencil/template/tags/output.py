"""
Теги, управляющие выводом содержимого: ``filter``, ``raw``,
``spaceless``, ``autoescape``.
"""

from __future__ import annotations

import re
from typing import Optional

from ...errors import StencilError, TemplateSyntaxError
from ...runtime import Frame, to_string
from ..base import TemplateTag
from ..builder import build_expression
from ..evaluator import evaluate
from ..expression import TokenParser, unquote
from ..lexer import LexerToken, TokenType
from ..nodes import FunctionCall, Path
from ..types import Instruction

_BETWEEN_TAGS = re.compile(r">\s+<")

_ESCAPE_MODES = ("html", "js")


class FilterTag(TemplateTag):
    """
    ``{% filter upper %}...{% endfilter %}``, ``{% filter replace("a", "b", "g") %}``

    Пропускает отрендеренное содержимое через фильтр.
    """

    name = "filter"
    ends = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        state = {"named": False}

        def on_name(token: LexerToken) -> bool:
            if state["named"]:
                return True
            state["named"] = True
            if token.match not in parser.filters:
                parser.fail(f'Filter "{token.match}" does not exist')
            return True

        def on_end(_token: Optional[LexerToken]) -> None:
            if not state["named"]:
                parser.fail("Expected a filter name")

        parser.on(TokenType.VAR, on_name)
        parser.on(TokenType.FUNCTION, on_name)
        parser.on(TokenType.FUNCTIONEMPTY, on_name)
        parser.on("end", on_end)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        call = build_expression(args)
        if isinstance(call, Path) and len(call.segments) == 1:
            name, arguments = call.segments[0], ()
        elif isinstance(call, FunctionCall):
            name, arguments = call.name, call.args
        else:
            raise TemplateSyntaxError("Invalid filter tag arguments")
        body = compiler(content, parents, options, block_name)

        def render(frame: Frame) -> None:
            spec = frame.env.filters.get(name)
            if spec is None:
                raise StencilError(f'Filter "{name}" does not exist.')
            captured = frame.capture(body)
            values = [evaluate(arg, frame) for arg in arguments]
            frame.write(to_string(spec.func(captured, *values)))

        return render


def _reject_all(parser: TokenParser, suffix: str = "") -> None:
    def reject(token: LexerToken) -> bool:
        parser.fail(f'Unexpected token "{token.match}"{suffix}')

    parser.on("*", reject)


class RawTag(TemplateTag):
    """``{% raw %}...{% endraw %}``: содержимое выводится без интерпретации."""

    name = "raw"
    ends = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        _reject_all(parser, " in raw tag")
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        return compiler(content, parents, options, block_name)


class SpacelessTag(TemplateTag):
    """
    ``{% spaceless %}...{% endspaceless %}`` убирает пробелы по краям
    вывода и между соседними HTML-тегами.
    """

    name = "spaceless"
    ends = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        _reject_all(parser)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        body = compiler(content, parents, options, block_name)

        def render(frame: Frame) -> None:
            frame.write(_BETWEEN_TAGS.sub("><", frame.capture(body).strip()))

        return render


class AutoescapeTag(TemplateTag):
    """
    ``{% autoescape false %}``, ``{% autoescape "js" %}``

    Режим экранирования переключает парсер шаблона; сам тег только
    компилирует содержимое.
    """

    name = "autoescape"
    ends = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        def on_any(token: LexerToken) -> bool:
            if not parser.out:
                if token.type is TokenType.BOOL:
                    parser.out.append(token.match == "true")
                    return False
                if token.type is TokenType.STRING and unquote(token.match) in _ESCAPE_MODES:
                    parser.out.append(unquote(token.match))
                    return False
            parser.fail(f'Unexpected token "{token.match}" in autoescape tag')

        parser.on("*", on_any)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        return compiler(content, parents, options, block_name)


__all__ = ["FilterTag", "RawTag", "SpacelessTag", "AutoescapeTag"]
