"""Тесты парсера токенов выражений и сборщика дерева."""

import pytest

from stencil import Environment
from stencil.errors import TemplateSyntaxError
from stencil.filters import register_builtin_filters
from stencil.template.builder import build_expression
from stencil.template.expression import TokenParser, unquote
from stencil.template.fragments import FragmentKind, is_fragment
from stencil.template.lexer import TokenType, read
from stencil.template.nodes import (
    BinaryOp, Call, FilterCall, FunctionCall, Literal, LogicalOp, Not, ObjectLiteral, Path,
)
from stencil.template.registry import FilterRegistry


class TestTokenParser:

    def setup_method(self):
        self.filters = FilterRegistry()
        register_builtin_filters(self.filters)

    def parse(self, text, autoescape=False):
        parser = TokenParser(read(text), self.filters, autoescape, line=1)
        return parser, parser.parse()

    def build(self, text, autoescape=False):
        _, out = self.parse(text, autoescape)
        return build_expression(out, text)

    def test_path(self):
        assert self.build("foo.bar") == Path(("foo", "bar"))

    def test_filter_wraps_its_operand(self):
        expr = self.build('foo|default("x")')
        assert expr == FilterCall("default", Path(("foo",)), (Literal("x"),))

    def test_chained_filters(self):
        expr = self.build("foo|lower|upper")
        assert expr == FilterCall("upper", FilterCall("lower", Path(("foo",)), ()), ())

    def test_filter_binds_to_right_operand(self):
        expr = self.build('a + b|default("2")')
        assert isinstance(expr, BinaryOp)
        assert expr.left == Path(("a",))
        assert expr.right == FilterCall("default", Path(("b",)), (Literal("2"),))

    def test_nested_filter_arguments(self):
        expr = self.build('b|default(c|default("3"))')
        assert expr == FilterCall(
            "default", Path(("b",)), (FilterCall("default", Path(("c",)), (Literal("3"),)),),
        )

    def test_autoescape_wraps_whole_expression(self):
        expr = self.build("foo", autoescape=True)
        assert expr == FilterCall("e", Path(("foo",)), ())

    def test_autoescape_js_passes_mode(self):
        expr = self.build("foo", autoescape="js")
        assert expr == FilterCall("e", Path(("foo",)), (Literal("js"),))

    def test_safe_filter_disables_autoescape(self):
        expr = self.build("foo|safe", autoescape=True)
        assert expr == FilterCall("safe", Path(("foo",)), ())

    def test_function_call_disables_autoescape(self):
        expr = self.build("foo(1)", autoescape=True)
        assert expr == FunctionCall("foo", (Literal(1),))

    def test_method_call(self):
        expr = self.build("o.foo(1)")
        assert isinstance(expr, Call)
        assert expr.callee == Path(("o", "foo"))
        assert expr.args == (Literal(1),)

    def test_precedence(self):
        expr = self.build("a || b && c")
        assert isinstance(expr, LogicalOp) and expr.op == "||"
        assert isinstance(expr.right, LogicalOp) and expr.right.op == "&&"

        expr = self.build("1 + 2 * 3")
        assert expr == BinaryOp("+", Literal(1), BinaryOp("*", Literal(2), Literal(3)))

    @pytest.mark.parametrize("text,expected", [
        ("x-1", BinaryOp("-", Path(("x",)), Literal(1))),
        ("loop.index+1", BinaryOp("+", Path(("loop", "index")), Literal(1))),
        ("2-1.5", BinaryOp("-", Literal(2), Literal(1.5))),
        ("x - -1", BinaryOp("-", Path(("x",)), Literal(-1))),
        ("foo(-1)", FunctionCall("foo", (Literal(-1),))),
    ])
    def test_sign_after_operand_is_operator(self, text, expected):
        assert self.build(text) == expected

    def test_not_and_grouping(self):
        expr = self.build("not (2 in baz)")
        assert expr == Not(BinaryOp("in", Literal(2), Path(("baz",))))

    def test_object_literal(self):
        expr = self.build("{label: 'x', value: page.code}")
        assert expr == ObjectLiteral((("label", Literal("x")), ("value", Path(("page", "code")))))

    def test_hook_replaces_default(self):
        parser = TokenParser(read("a b"), self.filters, False, line=1)
        seen = []

        def on_var(token):
            seen.append(token.match)
            return False

        parser.on(TokenType.VAR, on_var)
        assert parser.parse() == []
        assert seen == ["a", "b"]

    def test_hook_can_fall_through(self):
        parser = TokenParser(read("a"), self.filters, False, line=1)
        parser.on(TokenType.VAR, lambda token: True)
        out = parser.parse()
        assert len(out) == 1 and is_fragment(out[0])
        assert out[0].kind is FragmentKind.PATH

    def test_start_and_end_hooks(self):
        parser = TokenParser(read("a"), self.filters, False, line=1)
        events = []
        parser.on("start", lambda token: events.append(("start", token)))
        parser.on("end", lambda token: events.append(("end", token)))
        parser.parse()
        assert events == [("start", None), ("end", None)]

    @pytest.mark.parametrize("text,message", [
        ("a) ", "Mismatched nesting state"),
        ("a]", "Unexpected closing square bracket"),
        ("a}", "Unexpected closing curly brace"),
        ("foo:bar", "Unexpected colon"),
        (".a", 'Unexpected key "a"'),
        ('{a.foo: "1"}', "Unexpected dot"),
        ("foo, bar", "Unexpected comma"),
        ("=== foo", "Unexpected logic"),
        ("a|bar()", 'Invalid filter "bar"'),
        ("if", 'Reserved keyword "if" attempted to be used as a variable'),
        ("a = 1", 'Unexpected assignment "="'),
        ("a @ b", 'Unexpected token "@"'),
    ])
    def test_errors(self, text, message):
        with pytest.raises(TemplateSyntaxError, match=message):
            self.parse(text)

    def test_error_carries_line_and_file(self):
        parser = TokenParser(read("a]"), self.filters, False, line=3, filename="x.html")
        with pytest.raises(TemplateSyntaxError) as info:
            parser.parse()
        assert str(info.value) == "Unexpected closing square bracket on line 3 in file x.html."


def test_unquote():
    assert unquote('"a"') == "a"
    assert unquote("'it\\'s'") == "it's"
    assert unquote('"a\\nb"') == "a\\nb"


def test_builder_rejects_dangling_operator():
    filters = FilterRegistry()
    out = TokenParser(read("1 +"), filters, False, line=1).parse()
    with pytest.raises(TemplateSyntaxError, match='Unable to parse "1 \\+"'):
        build_expression(out, "1 +")


def test_unspaced_arithmetic_renders():
    env = Environment()
    assert env.render("{{ x-1 }} {{ x+1 }} {{ -1 }} {{ x - -1 }}", {"x": 5}) == "4 6 -1 6"
    assert env.render("{% set y = x+1 %}{{ y }}", {"x": 5}) == "6"
    assert env.render("{% for i in items %}{{ loop.index-1 }}{% endfor %}", {"items": ["a", "b"]}) == "01"
