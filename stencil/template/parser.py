"""
Парсер шаблонов.

Разбивает исходник на литеральный текст, переменные ``{{ }}``,
теги ``{% %}`` и комментарии ``{# #}``, строит дерево узлов
со стеком открытых тегов, обрабатывает маркеры обрезки пробелов
и собирает карту блоков верхнего уровня.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, List, NoReturn, Optional, Pattern, Tuple, Union

from ..errors import TemplateSyntaxError
from .builder import build_expression
from .expression import TokenParser
from .lexer import ExpressionLexer
from .nodes import OutputNode, ParsedTemplate, TagNode, TemplateNode, TextNode
from .registry import FilterRegistry, TagRegistry

if TYPE_CHECKING:
    from ..config import Options
    from ..environment import Environment

logger = logging.getLogger(__name__)


class _Controls:
    """Скомпилированные регулярные выражения для пары разделителей."""

    def __init__(self, controls: Tuple[str, str]):
        open_, close = (re.escape(c) for c in controls)
        self.open, self.close = controls
        self.body = f"{open_}[\\s\\S]*?{close}"
        self.strip = re.compile(f"^{open_}-?\\s*-?|-?\\s*-?{close}$")
        self.strip_before = re.compile(f"^{open_}-")
        self.strip_after = re.compile(f"-{close}$")

    def wraps(self, chunk: str) -> bool:
        return chunk.startswith(self.open) and chunk.endswith(self.close)


class TemplateParser:
    """
    Парсер исходника шаблона в ``ParsedTemplate``.

    Экземпляр одноразовый: состояние разбора (стек тегов, режим raw,
    текущее автоэкранирование) хранится в полях на время ``parse``.
    """

    def __init__(self, env: Optional[Environment], options: Options,
                 tags: TagRegistry, filters: FilterRegistry):
        self.env = env
        self.options = options
        self.tags = tags
        self.filters = filters
        self.filename = options.filename
        self.lexer = ExpressionLexer()

        self.var = _Controls(options.var_controls)
        self.tag = _Controls(options.tag_controls)
        self.cmt = _Controls(options.cmt_controls)
        self.splitter: Pattern[str] = re.compile(f"({self.tag.body}|{self.var.body}|{self.cmt.body})")

        self.escape: Union[bool, str] = options.autoescape
        self.in_raw = False
        self.line = 1
        self.stack: List[TagNode] = []
        self.tokens: List[TemplateNode] = []
        self.parent: Optional[str] = None
        self.blocks: dict = {}

    def fail(self, message: str, line: Optional[int] = None) -> NoReturn:
        raise TemplateSyntaxError(message, self.line if line is None else line, self.filename)

    # ------------------------------------------------------------------
    # Документ
    # ------------------------------------------------------------------

    def parse(self, source: str) -> ParsedTemplate:
        source = source.replace("\r\n", "\n")
        strip_next = False

        for chunk in self.splitter.split(source):
            if not chunk:
                continue

            node: Optional[TemplateNode] = None
            strip_prev = False

            if not self.in_raw and self.var.wraps(chunk):
                strip_prev = bool(self.var.strip_before.search(chunk))
                strip_next = bool(self.var.strip_after.search(chunk))
                node = self._parse_variable(self.var.strip.sub("", chunk))

            elif self.tag.wraps(chunk):
                strip_prev = bool(self.tag.strip_before.search(chunk))
                strip_next = bool(self.tag.strip_after.search(chunk))
                node = self._parse_tag(self.tag.strip.sub("", chunk))
                if isinstance(node, TagNode):
                    self._register(node)
                elif self.in_raw:
                    node = TextNode(chunk)

            elif self.in_raw or not self.cmt.wraps(chunk):
                text = chunk.lstrip() if strip_next else chunk
                strip_next = False
                if text:
                    node = TextNode(text)

            if strip_prev:
                self._strip_previous()

            if node is not None:
                self._append(node)

            self.line += chunk.count("\n")

        if self.stack:
            opened = self.stack[-1]
            self.fail(f'Missing end tag for "{opened.name}"', line=opened.line)

        return ParsedTemplate(
            name=self.filename,
            parent=self.parent,
            tokens=self.tokens,
            blocks=self.blocks,
        )

    def _append(self, node: TemplateNode) -> None:
        if self.stack:
            self.stack[-1].content.append(node)
        else:
            self.tokens.append(node)

        if isinstance(node, TagNode) and node.ends:
            self.stack.append(node)

    def _register(self, node: TagNode) -> None:
        if node.name == "extends":
            self.parent = node.block_name
        elif node.block and not self.stack:
            key = node.block_name if node.name == "block" else f"{node.name}:{len(self.blocks)}"
            self.blocks[key] = node

    def _strip_previous(self) -> None:
        """Убирает хвостовые пробелы у последнего текстового узла перед маркером ``-``."""
        container = self.stack[-1].content if self.stack else self.tokens
        while container:
            last = container[-1]
            if isinstance(last, TextNode):
                container[-1] = TextNode(last.text.rstrip())
                return
            if isinstance(last, TagNode) and last.content:
                container = last.content
                continue
            return

    # ------------------------------------------------------------------
    # Переменные и теги
    # ------------------------------------------------------------------

    def _parse_variable(self, text: str) -> OutputNode:
        text = text.strip()
        tokens = self.lexer.read(text)
        parser = TokenParser(tokens, self.filters, self.escape, self.line, self.filename)
        out = parser.parse()
        if parser.state:
            self.fail(f'Unable to parse "{text}"')
        expr = build_expression(out, text, self.line, self.filename)
        return OutputNode(expr=expr, source=text, line=self.line)

    def _parse_tag(self, text: str) -> Optional[TagNode]:
        text = text.strip()
        parts = re.split(r"\s+", text, maxsplit=1)
        name = parts[0]
        args_text: Optional[str] = parts[1] if len(parts) > 1 and parts[1] else None

        if name.startswith("end"):
            last = self.stack[-1] if self.stack else None
            closing = name[3:]
            if last is not None and last.name == closing and last.ends:
                if last.name == "autoescape":
                    self.escape = self.options.autoescape
                elif last.name == "raw":
                    self.in_raw = False
                self.stack.pop()
                return None
            if not self.in_raw:
                self.fail(f'Unexpected end of tag "{closing}"')

        if self.in_raw:
            return None

        tag = self.tags.get(name)
        if tag is None:
            self.fail(f'Unexpected tag "{text}"')

        tokens = self.lexer.read(args_text) if args_text else []
        parser = TokenParser(tokens, self.filters, False, self.line, self.filename)
        if not tag.parse(args_text, self.line, parser, self.stack, self.options, self.env):
            self.fail(f'Unexpected tag "{name}"')

        args: List[Any] = parser.parse()
        if parser.state:
            self.fail(f'Unable to parse "{args_text}"')

        node = TagNode(name=name, args=args, tag=tag, line=self.line,
                       filename=self.filename, source=args_text or "")
        if name == "autoescape":
            self.escape = args[0] if args else False
        elif name == "raw":
            self.in_raw = True
        return node


def parse_template(env: Optional[Environment], source: str, options: Options,
                   tags: TagRegistry, filters: FilterRegistry) -> ParsedTemplate:
    """Разбирает исходник шаблона."""
    logger.debug(f"Parsing template {options.filename or '<string>'}")
    return TemplateParser(env, options, tags, filters).parse(source)


__all__ = ["TemplateParser", "parse_template"]
