"""
Шаблонизатор: лексер, парсер выражений и шаблонов, теги, наследование
и компиляция в инструкции рендеринга.
"""

from __future__ import annotations

from .base import FunctionTag, TemplateTag
from .compiler import TemplateCompiler
from .expression import TokenParser
from .lexer import ExpressionLexer, LexerToken, TokenType
from .nodes import OutputNode, ParsedTemplate, TagNode, TemplateNode, TextNode
from .parser import TemplateParser, parse_template
from .registry import FilterRegistry, TagRegistry
from .types import FilterSpec, Instruction

__all__ = [
    "TemplateTag",
    "FunctionTag",
    "TemplateCompiler",
    "TokenParser",
    "ExpressionLexer",
    "LexerToken",
    "TokenType",
    "TemplateNode",
    "TextNode",
    "OutputNode",
    "TagNode",
    "ParsedTemplate",
    "TemplateParser",
    "parse_template",
    "TagRegistry",
    "FilterRegistry",
    "FilterSpec",
    "Instruction",
]
