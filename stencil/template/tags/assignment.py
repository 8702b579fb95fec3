"""
Тег присваивания ``set``.

    {% set name = expr %}
    {% set obj.key += expr %}
    {% set obj["key"][var] = expr %}

Левая часть разбирается хуками в ``AssignTarget`` (корневое имя и звенья
пути); правая часть остаётся обычным выражением.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ...runtime import ARITHMETIC, MISSING, Frame, assign_path, try_get_path
from ..base import TemplateTag
from ..builder import build_expression
from ..evaluator import evaluate
from ..expression import TokenParser, parse_number, unquote
from ..fragments import is_fragment
from ..lexer import LexerToken, TokenType
from ..types import Instruction

# Звено пути: ("key", литеральный ключ) или ("var", путь переменной-ключа)
Segment = Tuple[str, Any]


@dataclass(frozen=True)
class AssignTarget:
    """Левая часть присваивания."""
    root: str
    segments: Tuple[Segment, ...] = ()

    def keys(self, frame: Frame) -> List[Any]:
        result: List[Any] = []
        for kind, value in self.segments:
            if kind == "var":
                resolved = try_get_path(frame.context, frame.ambient, value)
                result.append("" if resolved is MISSING else resolved)
            else:
                result.append(value)
        return result


class SetTag(TemplateTag):
    name = "set"
    block = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        state: dict = {"root": None, "segments": [], "bracket": None, "done": False}

        def target_open() -> bool:
            return not state["done"] and not parser.out

        def on_var(token: LexerToken) -> bool:
            if not target_open():
                return True
            parts = token.match.split(".")
            if state["bracket"] is not None:
                state["bracket"].append(("var", tuple(parts)))
                return False
            if state["root"] is not None:
                parser.fail(f'Unexpected variable "{token.match}"')
            state["root"] = parts[0]
            state["segments"].extend(("key", part) for part in parts[1:])
            return False

        def on_bracket_open(token: LexerToken) -> bool:
            if not target_open() or state["root"] is None:
                return True
            if state["bracket"] is not None:
                parser.fail("Unexpected open bracket")
            state["bracket"] = []
            return False

        def on_string(token: LexerToken) -> bool:
            if state["bracket"] is None or not target_open():
                return True
            state["bracket"].append(("key", unquote(token.match)))
            return False

        def on_number(token: LexerToken) -> bool:
            if state["bracket"] is None or not target_open():
                return True
            state["bracket"].append(("key", parse_number(token.match)))
            return False

        def on_bracket_close(token: LexerToken) -> bool:
            if state["bracket"] is None or not target_open():
                return True
            if len(state["bracket"]) != 1:
                parser.fail("Unexpected closing square bracket")
            state["segments"].append(state["bracket"][0])
            state["bracket"] = None
            return False

        def on_dotkey(token: LexerToken) -> bool:
            if not target_open() or state["root"] is None:
                return True
            state["segments"].append(("key", token.match))
            return False

        def on_assignment(token: LexerToken) -> bool:
            if state["done"] or parser.out or state["root"] is None or state["bracket"] is not None:
                parser.fail(f'Unexpected assignment "{token.match}"')
            parser.out.append(AssignTarget(state["root"], tuple(state["segments"])))
            parser.out.append(token.match)
            state["done"] = True
            parser.filter_apply_idx.append(len(parser.out))
            return False

        def on_end(_token: Optional[LexerToken]) -> None:
            if not state["done"]:
                parser.fail("Expected an assignment")

        parser.on(TokenType.VAR, on_var)
        parser.on(TokenType.BRACKETOPEN, on_bracket_open)
        parser.on(TokenType.STRING, on_string)
        parser.on(TokenType.NUMBER, on_number)
        parser.on(TokenType.BRACKETCLOSE, on_bracket_close)
        parser.on(TokenType.DOTKEY, on_dotkey)
        parser.on(TokenType.ASSIGNMENT, on_assignment)
        parser.on("end", on_end)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        target: AssignTarget = args[0]
        operator: str = args[1]
        expr = build_expression([arg for arg in args[2:] if is_fragment(arg)])
        operation = ARITHMETIC.get(operator[0]) if operator != "=" else None

        def render(frame: Frame) -> None:
            value = evaluate(expr, frame)
            keys = target.keys(frame)
            if operation is not None:
                current = try_get_path(frame.context, frame.ambient, (target.root, *keys))
                value = operation(None if current is MISSING else current, value)
            assign_path(frame.context, target.root, keys, value)

        return render


__all__ = ["SetTag", "AssignTarget"]
