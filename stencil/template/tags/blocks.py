"""
Теги наследования: ``extends``, ``block``, ``parent``.

Подстановку блоков выполняет резолвер наследования; здесь только
разбор аргументов и компиляция содержимого блока.
"""

from __future__ import annotations

from typing import Optional

from ..base import TemplateTag
from ..expression import TokenParser, unquote
from ..lexer import LexerToken, TokenType
from ..types import Instruction


class ExtendsTag(TemplateTag):
    """``{% extends "layout.html" %}``; имя родителя читает парсер шаблона."""

    name = "extends"

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        def on_string(token: LexerToken) -> bool:
            if parser.out:
                parser.fail(f'Unexpected string {token.match}')
            parser.out.append(unquote(token.match))
            return False

        def reject(token: LexerToken) -> bool:
            parser.fail(f'Unexpected token "{token.match}" in extends tag')

        def on_end(_token: Optional[LexerToken]) -> None:
            if not parser.out:
                parser.fail("Expected a template name in extends tag")

        parser.on(TokenType.STRING, on_string)
        parser.on("*", reject)
        parser.on("end", on_end)
        return not stack

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        return None


class BlockTag(TemplateTag):
    """``{% block name %}...{% endblock %}``"""

    name = "block"
    ends = True
    block = True

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        def on_any(token: LexerToken) -> bool:
            parser.out.append(token.match)
            return False

        parser.on("*", on_any)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        return compiler(content, parents, options, "".join(str(arg) for arg in args))


class ParentTag(TemplateTag):
    """
    ``{% parent %}`` выводит содержимое одноимённого блока ближайшего
    предка; без предков или без такого блока вывод пуст.
    """

    name = "parent"

    def parse(self, args, line, parser: TokenParser, stack, options, env) -> bool:
        def reject(token: LexerToken) -> bool:
            parser.fail(f'Unexpected argument "{token.match}"')

        def on_end(_token: Optional[LexerToken]) -> None:
            parser.out.append(options.filename)

        parser.on("*", reject)
        parser.on("end", on_end)
        return True

    def compile(self, compiler, args, content, parents, options, block_name) -> Optional[Instruction]:
        if not parents or block_name is None:
            return None

        current_file = args[0] if args else None
        for i, parent in enumerate(parents):
            block = parent.blocks.get(block_name)
            if block is None or parent.name == current_file:
                continue
            return block.tag.compile(compiler, [block_name], block.content, parents[i + 1:], options, block_name)
        return None


__all__ = ["ExtendsTag", "BlockTag", "ParentTag"]
