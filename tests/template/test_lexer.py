"""
Тесты лексера выражений.

Проверяет порядок правил, нормализацию алиасов и продвижение
по неизвестным символам.
"""

from stencil.template.lexer import ExpressionLexer, TokenType, read


def types(text):
    return [t.type for t in read(text) if t.type is not TokenType.WHITESPACE]


def matches(text):
    return [t.match for t in read(text) if t.type is not TokenType.WHITESPACE]


class TestExpressionLexer:

    def setup_method(self):
        self.lexer = ExpressionLexer()

    def test_lengths_cover_input(self):
        text = 'foo.bar|default("x") + 3'
        tokens = self.lexer.read(text)
        assert sum(t.length for t in tokens) == len(text)

    def test_variable_with_dots(self):
        tokens = self.lexer.read("foo.bar.baz")
        assert len(tokens) == 1
        assert tokens[0].type is TokenType.VAR
        assert tokens[0].match == "foo.bar.baz"

    def test_strings(self):
        assert types('"a" \'b\' "" \'\'') == [TokenType.STRING] * 4
        assert matches('"say \\"hi\\""') == ['"say \\"hi\\""']

    def test_filters(self):
        assert types("a|upper") == [TokenType.VAR, TokenType.FILTEREMPTY]
        assert types('a|default("x")') == [
            TokenType.VAR, TokenType.FILTER, TokenType.STRING, TokenType.PARENCLOSE,
        ]
        assert matches("a| upper") == ["a", "upper"]

    def test_functions(self):
        assert types("foo()") == [TokenType.FUNCTIONEMPTY]
        assert types("foo(1)") == [TokenType.FUNCTION, TokenType.NUMBER, TokenType.PARENCLOSE]
        assert matches("foo(1)")[0] == "foo"

    def test_logic_aliases(self):
        assert matches("a and b or c") == ["a", "&&", "b", "||", "c"]
        assert types("a && b") == [TokenType.VAR, TokenType.LOGIC, TokenType.VAR]

    def test_comparator_aliases(self):
        assert matches("a gt b") == ["a", ">", "b"]
        assert matches("a gte b") == ["a", ">=", "b"]
        assert matches("a lt b") == ["a", "<", "b"]
        assert matches("a lte b") == ["a", "<=", "b"]
        assert matches("a in b") == ["a", "in", "b"]
        assert matches("a === b") == ["a", "===", "b"]

    def test_not(self):
        assert matches("not a") == ["!", "a"]
        assert types("!a") == [TokenType.NOT, TokenType.VAR]

    def test_words_are_not_partially_matched(self):
        for word in ("org", "andif", "note", "truestuff", "falsey", "index"):
            assert types(word) == [TokenType.VAR], word

    def test_bools(self):
        assert types("true") == [TokenType.BOOL]
        assert matches("false") == ["false"]

    def test_numbers_and_operators(self):
        assert types("1 + 2.5") == [TokenType.NUMBER, TokenType.OPERATOR, TokenType.NUMBER]
        assert matches("-3") == ["-3"]

    def test_assignment(self):
        assert matches("a += 1") == ["a", "+=", "1"]
        assert types("a = 1") == [TokenType.VAR, TokenType.ASSIGNMENT, TokenType.NUMBER]

    def test_brackets_and_objects(self):
        assert types('a["b"]') == [
            TokenType.VAR, TokenType.BRACKETOPEN, TokenType.STRING, TokenType.BRACKETCLOSE,
        ]
        assert types("{a: 1}") == [
            TokenType.CURLYOPEN, TokenType.VAR, TokenType.COLON, TokenType.NUMBER, TokenType.CURLYCLOSE,
        ]

    def test_dotkey_after_call(self):
        assert types("foo().bar") == [TokenType.FUNCTIONEMPTY, TokenType.DOTKEY]
        assert matches("foo().bar")[1] == "bar"

    def test_unknown_character_advances(self):
        tokens = self.lexer.read("a @ b")
        assert [t.type for t in tokens if t.type is not TokenType.WHITESPACE] == [
            TokenType.VAR, TokenType.UNKNOWN, TokenType.VAR,
        ]
