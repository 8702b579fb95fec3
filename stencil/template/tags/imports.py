"""
Тег ``import``: подключает макросы другого файла под локальным именем.

    {% import "./forms.html" as forms %}
    {{ forms.input("text", "name") }}

Файл разбирается на этапе разбора текущего шаблона. Импортированные
макросы вызывают друг друга через своё пространство имён, а не через
одноимённые макросы текущего шаблона.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ...runtime import Frame
from ..base import TemplateTag
from ..expression import TokenParser, unquote
from ..lexer import LexerToken, TokenType
from ..nodes import TagNode
from ..types import Instruction
from .macro import MacroInstruction


class ImportTag(TemplateTag):
    name = "import"
    block = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        state = {"loaded": False, "alias": None}

        def on_string(token: LexerToken) -> bool:
            if state["loaded"]:
                parser.fail(f"Unexpected string {token.match}")
            document = env.load_document(unquote(token.match), options.merged(resolve_from=options.filename))
            for node in document.tokens:
                if isinstance(node, TagNode) and node.name == "macro":
                    parser.out.append(node)
            state["loaded"] = True
            return False

        def on_var(token: LexerToken) -> bool:
            if not state["loaded"] or state["alias"] is not None:
                parser.fail(f'Unexpected variable "{token.match}"')
            if token.match == "as":
                return False
            state["alias"] = token.match
            parser.out.append(token.match)
            return False

        def on_end(_token: Optional[LexerToken]) -> None:
            if state["alias"] is None:
                parser.fail('Expected "as <name>" in import tag')

        parser.on(TokenType.STRING, on_string)
        parser.on(TokenType.VAR, on_var)
        parser.on("end", on_end)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        alias: str = args[-1]
        macros: List[MacroInstruction] = []
        for node in args[:-1]:
            node_options = options.merged(filename=node.filename, resolve_from=None)
            macros.append(node.tag.compile(compiler, node.args, node.content, [], node_options, None))

        def render(frame: Frame) -> None:
            namespace: Dict[str, Any] = {}
            for macro in macros:
                namespace[macro.name] = macro.bind(frame, namespace)
            frame.context[alias] = namespace

        return render


__all__ = ["ImportTag"]
