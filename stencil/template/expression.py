"""
Парсер токенов выражения.

Потребляет поток токенов лексера для одного выражения и выдаёт
линейную последовательность фрагментов (см. ``fragments``), попутно
проверяя вложенность через стек состояний.

Теги перехватывают обработку отдельных типов токенов через ``on()``:
обработчик получает токен и возвращает истину, если токен нужно
передать алгоритму по умолчанию.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, NoReturn, Optional, Sequence, Union

from ..errors import TemplateSyntaxError
from .fragments import Fragment, FragmentKind, literal, path, punct
from .lexer import LexerToken, TokenType

# Обработчик токена; для событий 'start' и 'end' токен равен None
TokenHook = Callable[[Optional[LexerToken]], Any]
HookKey = Union[TokenType, str]

RESERVED_KEYWORDS = frozenset({
    "break", "case", "catch", "continue", "debugger", "default", "delete", "do",
    "else", "finally", "for", "function", "if", "in", "instanceof", "new",
    "return", "switch", "this", "throw", "try", "typeof", "var", "void",
    "while", "with",
})

# После каких токенов скобка означает вызов, а не группировку
_CALLABLE_PREV = frozenset({
    TokenType.VAR, TokenType.DOTKEY, TokenType.BRACKETCLOSE,
    TokenType.PARENCLOSE, TokenType.FUNCTIONEMPTY,
})

# После каких токенов квадратная скобка означает доступ по индексу
_INDEXABLE_PREV = frozenset({
    TokenType.VAR, TokenType.DOTKEY, TokenType.BRACKETCLOSE,
    TokenType.PARENCLOSE, TokenType.FUNCTIONEMPTY,
})

_DOTKEY_PREV = frozenset({
    TokenType.VAR, TokenType.BRACKETCLOSE, TokenType.DOTKEY, TokenType.PARENCLOSE,
    TokenType.FUNCTIONEMPTY, TokenType.FILTEREMPTY, TokenType.CURLYCLOSE,
})

# После каких токенов знак числа читается как бинарный оператор
_OPERAND_PREV = frozenset({
    TokenType.VAR, TokenType.NUMBER, TokenType.STRING, TokenType.BOOL,
    TokenType.BRACKETCLOSE, TokenType.PARENCLOSE, TokenType.CURLYCLOSE,
    TokenType.DOTKEY, TokenType.FILTEREMPTY, TokenType.FUNCTIONEMPTY,
})

_COMMA_STATES = frozenset({
    TokenType.FUNCTION, TokenType.FILTER, TokenType.ARRAYOPEN,
    TokenType.CURLYOPEN, TokenType.PARENOPEN, TokenType.COLON,
})

_NO_FILTER_COMMA = frozenset({
    TokenType.PARENCLOSE, TokenType.COMMA, TokenType.OPERATOR,
    TokenType.FILTER, TokenType.FILTEREMPTY,
})


def unquote(match: str) -> str:
    """Снимает кавычки со строкового литерала; прочие обратные слэши сохраняются."""
    if len(match) < 2:
        return match
    quote = match[0]
    return match[1:-1].replace("\\" + quote, quote)


def parse_number(match: str) -> Union[int, float]:
    if "." in match:
        return float(match)
    return int(match)


class TokenParser:
    """
    Парсер одного выражения.

    Attributes:
        out: Выходная последовательность (фрагменты и значения, добавленные тегами)
        state: Стек состояний вложенности (типы токенов)
        filter_apply_idx: Стек позиций, перед которыми вставляется вызов фильтра
        escape: Текущий режим автоэкранирования для этого выражения
        prev_token: Предыдущий значимый токен
        is_last: Обрабатывается ли последний значимый токен
    """

    def __init__(
        self,
        tokens: Sequence[LexerToken],
        filters: Mapping[str, Any],
        autoescape: Union[bool, str],
        line: int,
        filename: Optional[str] = None,
    ):
        self.tokens = list(tokens)
        self.filters = filters
        self.escape = autoescape
        self.line = line
        self.filename = filename

        self.out: List[Any] = []
        self.state: List[TokenType] = []
        self.filter_apply_idx: List[int] = []
        # Глубина стека позиций на момент открытия каждого состояния
        self._marks: List[int] = []

        self.prev_token: Optional[LexerToken] = None
        self.is_last = False
        self._hooks: Dict[HookKey, TokenHook] = {}

    # ------------------------------------------------------------------
    # API для тегов
    # ------------------------------------------------------------------

    def on(self, kind: HookKey, handler: TokenHook) -> None:
        """
        Устанавливает обработчик для типа токена.

        Args:
            kind: Тип токена, '*' (любой без своего обработчика), 'start' или 'end'
            handler: Функция от токена; истинный результат передаёт токен
                     алгоритму по умолчанию
        """
        self._hooks[kind] = handler

    def fail(self, message: str) -> NoReturn:
        raise TemplateSyntaxError(message, self.line, self.filename)

    @property
    def last_state(self) -> Optional[TokenType]:
        return self.state[-1] if self.state else None

    def push_state(self, token_type: TokenType) -> None:
        self.state.append(token_type)
        self._marks.append(len(self.filter_apply_idx))

    def pop_state(self) -> Optional[TokenType]:
        """Снимает состояние и отбрасывает позиции, накопленные внутри него."""
        if not self.state:
            return None
        mark = self._marks.pop()
        del self.filter_apply_idx[mark:]
        return self.state.pop()

    def pop_apply_idx(self) -> None:
        """Снимает позицию операнда, не выходя за пределы открытого состояния."""
        floor = self._marks[-1] if self._marks else 0
        if len(self.filter_apply_idx) > floor:
            self.filter_apply_idx.pop()

    # ------------------------------------------------------------------
    # Разбор
    # ------------------------------------------------------------------

    def parse(self) -> List[Any]:
        """Обрабатывает все токены и возвращает выходную последовательность."""
        start = self._hooks.get("start")
        if start is not None:
            start(None)

        significant = [t for t in self.tokens if t.type is not TokenType.WHITESPACE]
        for i, token in enumerate(significant):
            self.is_last = i == len(significant) - 1
            self.prev_token = significant[i - 1] if i else None
            self.parse_token(token)

        end = self._hooks.get("end")
        if end is not None:
            end(None)

        if self.escape and self.out:
            self._apply_autoescape()

        return self.out

    def parse_token(self, token: LexerToken) -> None:
        hook = self._hooks.get(token.type) or self._hooks.get("*")
        if hook is not None and not hook(token):
            return
        self._default(token)

    def _apply_autoescape(self) -> None:
        if "e" not in self.filters:
            self.fail('Invalid filter "e"')
        self.out.insert(0, punct(FragmentKind.FILTER_OPEN, "e"))
        if isinstance(self.escape, str):
            self.out.extend([punct(FragmentKind.COMMA), literal(self.escape)])
        self.out.append(punct(FragmentKind.PAREN_CLOSE))

    def _apply_position(self) -> int:
        return self.filter_apply_idx[-1] if self.filter_apply_idx else 0

    def _default(self, token: LexerToken) -> None:
        prev_type = self.prev_token.type if self.prev_token else None
        last_state = self.last_state
        t = token.type

        if (last_state is TokenType.FILTER and prev_type is TokenType.FILTER
                and t not in _NO_FILTER_COMMA):
            self.out.append(punct(FragmentKind.COMMA))

        if last_state is TokenType.METHODOPEN:
            # Получатель метода уже связан доступом к атрибуту
            self.pop_state()

        handler = self._handlers.get(t)
        if handler is None:
            self.fail(f'Unexpected token "{token.match}"')
        handler(self, token, prev_type, last_state)

    # ------------------------------------------------------------------
    # Алгоритм по умолчанию по типам токенов
    # ------------------------------------------------------------------

    def _on_string(self, token: LexerToken, prev_type, last_state) -> None:
        self.filter_apply_idx.append(len(self.out))
        self.out.append(literal(unquote(token.match)))

    def _on_number(self, token: LexerToken, prev_type, last_state) -> None:
        text = token.match
        if text[0] in "+-" and prev_type in _OPERAND_PREV:
            # "x-1": знак числа после операнда это бинарный оператор
            self._on_operator(LexerToken(TokenType.OPERATOR, text[0], 1), prev_type, last_state)
            text = text[1:]
        self.filter_apply_idx.append(len(self.out))
        self.out.append(literal(parse_number(text)))

    def _on_bool(self, token: LexerToken, prev_type, last_state) -> None:
        self.filter_apply_idx.append(len(self.out))
        self.out.append(literal(token.match == "true"))

    def _check_filter(self, name: str) -> None:
        spec = self.filters.get(name)
        if spec is None or not callable(getattr(spec, "func", spec)):
            self.fail(f'Invalid filter "{name}"')
        if getattr(spec, "safe", False):
            self.escape = False

    def _on_filter(self, token: LexerToken, prev_type, last_state) -> None:
        self._check_filter(token.match)
        self.out.insert(self._apply_position(), punct(FragmentKind.FILTER_OPEN, token.match))
        self.push_state(TokenType.FILTER)

    def _on_filter_empty(self, token: LexerToken, prev_type, last_state) -> None:
        self._check_filter(token.match)
        self.out.insert(self._apply_position(), punct(FragmentKind.FILTER_OPEN, token.match))
        self.out.append(punct(FragmentKind.PAREN_CLOSE))

    def _on_function(self, token: LexerToken, prev_type, last_state) -> None:
        self.escape = False
        self.filter_apply_idx.append(len(self.out))
        if token.type is TokenType.FUNCTIONEMPTY:
            self.out.append(punct(FragmentKind.FUNC_CALL, token.match))
        else:
            self.out.append(punct(FragmentKind.FUNC_OPEN, token.match))
            self.push_state(TokenType.FUNCTION)

    def _on_paren_open(self, token: LexerToken, prev_type, last_state) -> None:
        if prev_type in _CALLABLE_PREV and self.filter_apply_idx:
            self.out.insert(self._apply_position(), punct(FragmentKind.CALLEE_OPEN))
            self.out.append(punct(FragmentKind.CALL_OPEN))
            self.push_state(TokenType.PARENOPEN)
            if prev_type is TokenType.VAR:
                self.push_state(TokenType.METHODOPEN)
                self.escape = False
            return

        self.filter_apply_idx.append(len(self.out))
        self.out.append(punct(FragmentKind.PAREN_OPEN))
        self.push_state(TokenType.PARENOPEN)

    def _on_paren_close(self, token: LexerToken, prev_type, last_state) -> None:
        closed = self.pop_state()
        if closed not in (TokenType.PARENOPEN, TokenType.FUNCTION, TokenType.FILTER):
            self.fail("Mismatched nesting state")
        self.out.append(punct(FragmentKind.PAREN_CLOSE))

    def _on_comma(self, token: LexerToken, prev_type, last_state) -> None:
        if last_state not in _COMMA_STATES:
            self.fail("Unexpected comma")
        if last_state is TokenType.COLON:
            self.pop_state()
        self.out.append(punct(FragmentKind.COMMA))
        self.pop_apply_idx()

    def _on_logic(self, token: LexerToken, prev_type, last_state) -> None:
        if prev_type is None or prev_type in (
            TokenType.COMMA, token.type, TokenType.BRACKETOPEN,
            TokenType.CURLYOPEN, TokenType.PARENOPEN, TokenType.FUNCTION,
        ):
            self.fail("Unexpected logic")
        kind = FragmentKind.LOGIC if token.type is TokenType.LOGIC else FragmentKind.COMPARATOR
        self.out.append(punct(kind, token.match))

    def _on_not(self, token: LexerToken, prev_type, last_state) -> None:
        self.out.append(punct(FragmentKind.NOT))

    def _on_var(self, token: LexerToken, prev_type, last_state) -> None:
        parts = token.match.split(".")
        if parts[0] in RESERVED_KEYWORDS:
            self.fail(f'Reserved keyword "{parts[0]}" attempted to be used as a variable')

        self.filter_apply_idx.append(len(self.out))
        if last_state is TokenType.CURLYOPEN:
            if len(parts) > 1:
                self.fail("Unexpected dot")
            self.out.append(punct(FragmentKind.NAME, parts[0]))
            return

        self.out.append(path(tuple(parts)))

    def _on_bracket_open(self, token: LexerToken, prev_type, last_state) -> None:
        if prev_type in _INDEXABLE_PREV:
            self.out.append(punct(FragmentKind.INDEX_OPEN))
            self.push_state(TokenType.BRACKETOPEN)
            return
        self.filter_apply_idx.append(len(self.out))
        self.out.append(punct(FragmentKind.ARRAY_OPEN))
        self.push_state(TokenType.ARRAYOPEN)

    def _on_bracket_close(self, token: LexerToken, prev_type, last_state) -> None:
        closed = self.pop_state()
        if closed not in (TokenType.BRACKETOPEN, TokenType.ARRAYOPEN):
            self.fail("Unexpected closing square bracket")
        self.out.append(punct(FragmentKind.BRACKET_CLOSE))

    def _on_curly_open(self, token: LexerToken, prev_type, last_state) -> None:
        self.filter_apply_idx.append(len(self.out))
        self.out.append(punct(FragmentKind.CURLY_OPEN))
        self.push_state(TokenType.CURLYOPEN)

    def _on_colon(self, token: LexerToken, prev_type, last_state) -> None:
        if last_state is not TokenType.CURLYOPEN:
            self.fail("Unexpected colon")
        self.pop_apply_idx()
        self.push_state(TokenType.COLON)
        self.out.append(punct(FragmentKind.COLON))

    def _on_curly_close(self, token: LexerToken, prev_type, last_state) -> None:
        if last_state is TokenType.COLON:
            self.pop_state()
        if self.pop_state() is not TokenType.CURLYOPEN:
            self.fail("Unexpected closing curly brace")
        self.out.append(punct(FragmentKind.CURLY_CLOSE))

    def _on_dotkey(self, token: LexerToken, prev_type, last_state) -> None:
        if prev_type not in _DOTKEY_PREV:
            self.fail(f'Unexpected key "{token.match}"')
        self.out.append(punct(FragmentKind.DOTKEY, token.match))

    def _on_operator(self, token: LexerToken, prev_type, last_state) -> None:
        self.out.append(punct(FragmentKind.OPERATOR, token.match))
        self.pop_apply_idx()

    def _on_assignment(self, token: LexerToken, prev_type, last_state) -> None:
        self.fail(f'Unexpected assignment "{token.match}"')

    _handlers: Dict[TokenType, Callable[..., None]] = {
        TokenType.STRING: _on_string,
        TokenType.NUMBER: _on_number,
        TokenType.BOOL: _on_bool,
        TokenType.FILTER: _on_filter,
        TokenType.FILTEREMPTY: _on_filter_empty,
        TokenType.FUNCTION: _on_function,
        TokenType.FUNCTIONEMPTY: _on_function,
        TokenType.PARENOPEN: _on_paren_open,
        TokenType.PARENCLOSE: _on_paren_close,
        TokenType.COMMA: _on_comma,
        TokenType.LOGIC: _on_logic,
        TokenType.COMPARATOR: _on_logic,
        TokenType.NOT: _on_not,
        TokenType.VAR: _on_var,
        TokenType.BRACKETOPEN: _on_bracket_open,
        TokenType.BRACKETCLOSE: _on_bracket_close,
        TokenType.CURLYOPEN: _on_curly_open,
        TokenType.COLON: _on_colon,
        TokenType.CURLYCLOSE: _on_curly_close,
        TokenType.DOTKEY: _on_dotkey,
        TokenType.OPERATOR: _on_operator,
        TokenType.ASSIGNMENT: _on_assignment,
    }


__all__ = ["TokenParser", "TokenHook", "RESERVED_KEYWORDS", "unquote", "parse_number"]
