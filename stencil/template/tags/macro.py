"""
Тег ``macro``: именованный фрагмент шаблона с позиционными параметрами.

    {% macro field(name, value) %}<input name="{{ name }}" value="{{ value }}">{% endmacro %}
    {{ field("q", query) }}

Каждый вызов получает копию контекста рендеринга без имён параметров,
а сами параметры связываются в окружающей области. Присваивания внутри
макроса не видны снаружи.
"""

from __future__ import annotations

from collections import ChainMap
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ...runtime import Frame
from ..base import TemplateTag
from ..expression import TokenParser
from ..lexer import LexerToken, TokenType
from ..types import Instruction


class Macro:
    """Вызываемый макрос, связанный с кадром, в котором он определён."""

    safe = True

    def __init__(self, name: str, params: Tuple[str, ...], body: Instruction,
                 frame: Frame, namespace: Optional[Mapping[str, Any]] = None):
        self.name = name
        self.params = params
        self.body = body
        self.frame = frame
        self.namespace = namespace

    def __call__(self, *args: Any) -> str:
        context = {k: v for k, v in self.frame.context.items() if k not in self.params}
        if self.namespace:
            # Импортированные макросы видят друг друга под своими именами
            context.update(self.namespace)
        bound = {name: args[i] if i < len(args) else None for i, name in enumerate(self.params)}
        frame = Frame(self.frame.env, context, ChainMap(bound, self.frame.scope))
        self.body(frame)
        return frame.getvalue()

    def __repr__(self) -> str:
        return f"<Macro {self.name}({', '.join(self.params)})>"


class MacroInstruction:
    """Инструкция определения макроса в контексте рендеринга."""

    def __init__(self, name: str, params: Tuple[str, ...], body: Instruction):
        self.name = name
        self.params = params
        self.body = body

    def bind(self, frame: Frame, namespace: Optional[Dict[str, Any]] = None) -> Macro:
        return Macro(self.name, self.params, self.body, frame, namespace)

    def __call__(self, frame: Frame) -> None:
        frame.context[self.name] = self.bind(frame)


class MacroTag(TemplateTag):
    name = "macro"
    ends = True
    block = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        state = {"name": None}

        def on_var(token: LexerToken) -> bool:
            if "." in token.match:
                parser.fail(f'Unexpected dot in macro argument "{token.match}"')
            parser.out.append(token.match)
            return False

        def on_function(token: LexerToken) -> bool:
            if state["name"] is None:
                state["name"] = token.match
                parser.out.append(token.match)
                if token.type is TokenType.FUNCTION:
                    parser.push_state(TokenType.FUNCTION)
            return False

        def on_paren_close(token: LexerToken) -> bool:
            if parser.is_last:
                return True
            parser.fail("Unexpected parenthesis close")

        def on_comma(token: LexerToken) -> bool:
            return True

        def skip(token: LexerToken) -> bool:
            return False

        def on_end(_token: Optional[LexerToken]) -> None:
            if not parser.out:
                parser.fail("Macro name is required")

        parser.on(TokenType.VAR, on_var)
        parser.on(TokenType.FUNCTION, on_function)
        parser.on(TokenType.FUNCTIONEMPTY, on_function)
        parser.on(TokenType.PARENCLOSE, on_paren_close)
        parser.on(TokenType.COMMA, on_comma)
        parser.on("*", skip)
        parser.on("end", on_end)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        names: List[str] = [arg for arg in args if isinstance(arg, str)]
        body = compiler(content, parents, options, block_name)
        return MacroInstruction(names[0], tuple(names[1:]), body)


__all__ = ["MacroTag", "Macro", "MacroInstruction"]
