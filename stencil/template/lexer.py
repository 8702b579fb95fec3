"""
Лексический анализатор выражений шаблона.

Разбивает содержимое между разделителями переменной или тега
(например, ``foo.bar|default("x")``) на плоскую последовательность
типизированных токенов. Правила применяются в фиксированном порядке
к оставшемуся суффиксу строки; побеждает первое совпавшее правило.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple


class TokenType(enum.IntEnum):
    """Типы токенов выражения."""

    WHITESPACE = 0
    STRING = 1
    FILTER = 2
    FILTEREMPTY = 3
    FUNCTION = 4
    FUNCTIONEMPTY = 5
    PARENOPEN = 6
    PARENCLOSE = 7
    COMMA = 8
    VAR = 9
    NUMBER = 10
    OPERATOR = 11
    BRACKETOPEN = 12
    BRACKETCLOSE = 13
    DOTKEY = 14
    ARRAYOPEN = 15
    CURLYOPEN = 17
    CURLYCLOSE = 18
    COLON = 19
    COMPARATOR = 20
    LOGIC = 21
    NOT = 22
    BOOL = 23
    ASSIGNMENT = 24
    METHODOPEN = 25
    UNKNOWN = 100


@dataclass(frozen=True)
class LexerToken:
    """
    Токен выражения.

    ``match`` содержит нормализованный текст (без хвостовых пробелов,
    с заменой алиасов вроде ``and`` -> ``&&``), ``length`` равна числу
    поглощённых символов исходной строки.
    """
    type: TokenType
    match: str
    length: int

    def __repr__(self) -> str:
        return f"LexerToken({self.type.name}, {self.match!r})"


@dataclass(frozen=True)
class LexerRule:
    """Правило лексера: набор шаблонов, группа захвата и таблица замен."""
    type: TokenType
    patterns: Tuple[Pattern[str], ...]
    idx: int = 0
    replace: Optional[Dict[str, str]] = None


def _rule(token_type: TokenType, *patterns: str, idx: int = 0,
          replace: Optional[Dict[str, str]] = None) -> LexerRule:
    return LexerRule(
        type=token_type,
        patterns=tuple(re.compile(p) for p in patterns),
        idx=idx,
        replace=replace,
    )


# Порядок правил является частью семантики: STRING раньше VAR,
# FILTER раньше FILTEREMPTY, словесные LOGIC/COMPARATOR раньше VAR.
RULES: Tuple[LexerRule, ...] = (
    _rule(TokenType.WHITESPACE, r'^\s+'),
    _rule(TokenType.STRING, r'^""', r'^".*?[^\\]"', r"^''", r"^'.*?[^\\]'"),
    _rule(TokenType.FILTER, r'^\|\s*(\w+)\(', idx=1),
    _rule(TokenType.FILTEREMPTY, r'^\|\s*(\w+)', idx=1),
    _rule(TokenType.FUNCTIONEMPTY, r'^\s*(\w+)\(\)', idx=1),
    _rule(TokenType.FUNCTION, r'^\s*(\w+)\(', idx=1),
    _rule(TokenType.PARENOPEN, r'^\('),
    _rule(TokenType.PARENCLOSE, r'^\)'),
    _rule(TokenType.COMMA, r'^,'),
    _rule(
        TokenType.LOGIC, r'^(&&|\|\|)\s*', r'^(and|or)\s+',
        idx=1, replace={"and": "&&", "or": "||"},
    ),
    _rule(
        TokenType.COMPARATOR,
        r'^(===|==|!==|!=|<=|<|>=|>|in\s|gte\s|gt\s|lte\s|lt\s)\s*',
        idx=1, replace={"gte": ">=", "gt": ">", "lte": "<=", "lt": "<"},
    ),
    _rule(TokenType.ASSIGNMENT, r'^(=|\+=|-=|\*=|/=)'),
    _rule(TokenType.NOT, r'^!\s*', r'^not\s+', replace={"not": "!"}),
    _rule(TokenType.BOOL, r'^(true|false)(?![\w$.])\s*', idx=1),
    _rule(TokenType.VAR, r'^[a-zA-Z_$]\w*((\.\$?\w*)+)?', r'^[a-zA-Z_$]\w*'),
    _rule(TokenType.BRACKETOPEN, r'^\['),
    _rule(TokenType.BRACKETCLOSE, r'^\]'),
    _rule(TokenType.CURLYOPEN, r'^\{'),
    _rule(TokenType.COLON, r'^:'),
    _rule(TokenType.CURLYCLOSE, r'^\}'),
    _rule(TokenType.DOTKEY, r'^\.(\w+)', idx=1),
    _rule(TokenType.NUMBER, r'^[+\-]?\d+(\.\d+)?'),
    _rule(TokenType.OPERATOR, r'^(\+|-|/|\*|%)'),
)


class ExpressionLexer:
    """
    Лексер выражений.

    Не хранит состояния между вызовами: ``read`` можно вызывать
    повторно для любых фрагментов.
    """

    def __init__(self, rules: Tuple[LexerRule, ...] = RULES):
        self.rules = rules

    def read(self, text: str) -> List[LexerToken]:
        """
        Токенизирует фрагмент выражения.

        Args:
            text: Содержимое между разделителями

        Returns:
            Список токенов; сумма их ``length`` равна ``len(text)``
        """
        tokens: List[LexerToken] = []
        offset = 0
        while offset < len(text):
            token = self._read_token(text[offset:])
            tokens.append(token)
            offset += token.length
        return tokens

    def _read_token(self, rest: str) -> LexerToken:
        for rule in self.rules:
            for pattern in rule.patterns:
                m = pattern.match(rest)
                if not m:
                    continue
                matched = (m.group(rule.idx) or "").rstrip()
                if rule.replace and matched in rule.replace:
                    matched = rule.replace[matched]
                return LexerToken(rule.type, matched, len(m.group(0)))

        # Гарантируем продвижение: неизвестный символ поглощается по одному
        return LexerToken(TokenType.UNKNOWN, rest[0], 1)


_default_lexer = ExpressionLexer()


def read(text: str) -> List[LexerToken]:
    """Токенизирует фрагмент выражения лексером по умолчанию."""
    return _default_lexer.read(text)


__all__ = ["TokenType", "LexerToken", "LexerRule", "RULES", "ExpressionLexer", "read"]
