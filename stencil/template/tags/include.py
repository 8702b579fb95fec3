"""
Тег ``include``: рендерит другой шаблон на месте тега.

    {% include "./partial.html" %}
    {% include "./partial.html" with obj %}
    {% include "./partial.html" with obj only %}
    {% include "./missing.html" ignore missing %}

Путь разрешается относительно текущего файла. ``with`` дополняет
контекст, ``only`` заменяет его, ``ignore missing`` подавляет только
отсутствие файла.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from ...errors import TemplateNotFoundError
from ...runtime import Frame, to_string
from ..base import TemplateTag
from ..builder import build_expression
from ..evaluator import evaluate
from ..expression import TokenParser, unquote
from ..fragments import is_fragment, literal
from ..lexer import LexerToken, TokenType
from ..types import Instruction

logger = logging.getLogger(__name__)

WITH = "with"
ONLY = "only"
IGNORE = "ignore"
MISSING_MARK = "missing"


class IncludeTag(TemplateTag):
    name = "include"

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        state = {"file": False, "with": False, "ignore": False, "missing": False}

        def reject_after_missing(token: LexerToken) -> None:
            if state["missing"]:
                parser.fail(f'Unexpected token "{token.match}" after "{IGNORE} {MISSING_MARK}"')

        def on_string(token: LexerToken) -> bool:
            reject_after_missing(token)
            if not state["file"]:
                state["file"] = True
                parser.filter_apply_idx.append(len(parser.out))
                parser.out.append(literal(unquote(token.match)))
                return False
            return True

        def on_var(token: LexerToken) -> bool:
            reject_after_missing(token)
            prev = parser.prev_token.match if parser.prev_token is not None else None
            if not state["file"]:
                state["file"] = True
                return True

            if not state["with"] and token.match == WITH:
                state["with"] = True
                parser.out.append(WITH)
                return False

            if state["with"] and token.match == ONLY and prev != WITH:
                parser.out.append(ONLY)
                return False

            if token.match == IGNORE:
                state["ignore"] = True
                return False

            if token.match == MISSING_MARK:
                if prev != IGNORE:
                    parser.fail(f'Unexpected token "{MISSING_MARK}"')
                parser.out.append(MISSING_MARK)
                state["missing"] = True
                return False

            if prev == IGNORE:
                parser.fail(f'Expected "{MISSING_MARK}" but found "{token.match}"')

            return True

        def on_any(token: LexerToken) -> bool:
            reject_after_missing(token)
            return True

        def on_end(_token: Optional[LexerToken]) -> None:
            if not state["file"]:
                parser.fail("Expected a template to include")
            if state["ignore"] and MISSING_MARK not in parser.out:
                parser.fail(f'Expected "{MISSING_MARK}" after "{IGNORE}"')
            parser.out.append(options.filename)

        parser.on(TokenType.STRING, on_string)
        parser.on(TokenType.VAR, on_var)
        parser.on("*", on_any)
        parser.on("end", on_end)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        items = list(args)
        resolve_from: Optional[str] = items.pop()
        ignore_missing = MISSING_MARK in items
        only = ONLY in items

        file_fragments: List[Any] = []
        with_fragments: List[Any] = []
        target = file_fragments
        for item in items:
            if item == WITH:
                target = with_fragments
            elif is_fragment(item):
                target.append(item)

        file_expr = build_expression(file_fragments)
        with_expr = build_expression(with_fragments) if with_fragments else None
        overrides = {"resolve_from": resolve_from}
        if options.loader is not None:
            overrides["loader"] = options.loader

        def render(frame: Frame) -> None:
            context: Dict[str, Any]
            if with_expr is None:
                context = dict(frame.context)
            else:
                extra = evaluate(with_expr, frame)
                extra = dict(extra) if isinstance(extra, Mapping) else {}
                context = extra if only else {**frame.context, **extra}

            path = to_string(evaluate(file_expr, frame))
            try:
                template = frame.env.compile_file(path, **overrides)
            except TemplateNotFoundError:
                if not ignore_missing:
                    raise
                logger.debug(f"Ignoring missing include {path}")
                return
            frame.write(template(context))

        return render


__all__ = ["IncludeTag"]
