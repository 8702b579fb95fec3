"""Тесты парсера шаблонов: разбиение на узлы, обрезка пробелов, ошибки."""

import pytest

from stencil import Environment, TemplateSyntaxError
from stencil.template.nodes import OutputNode, TagNode, TextNode


class TestTemplateParser:

    def setup_method(self):
        self.env = Environment()

    def test_text_output_and_tags(self):
        doc = self.env.parse("a {{ b }} {% if c %}d{% endif %}")
        assert isinstance(doc.tokens[0], TextNode)
        assert doc.tokens[0].text == "a "
        assert isinstance(doc.tokens[1], OutputNode)
        assert doc.tokens[1].source == "b"
        assert isinstance(doc.tokens[3], TagNode)
        assert doc.tokens[3].name == "if"
        assert doc.tokens[3].content == [TextNode("d")]

    def test_comments_are_dropped(self):
        doc = self.env.parse("a{# note #}b")
        assert doc.tokens == [TextNode("a"), TextNode("b")]

    def test_blocks_and_parent(self):
        doc = self.env.parse(
            '{% extends "base.html" %}{% block one %}1{% endblock %}'
            "{% macro m() %}{% endmacro %}{% block two %}2{% endblock %}",
            filename="/child.html",
        )
        assert doc.parent == "base.html"
        assert doc.name == "/child.html"
        assert list(doc.blocks) == ["one", "macro:1", "two"]

    def test_nested_blocks_are_not_top_level(self):
        doc = self.env.parse("{% block a %}{% block b %}{% endblock %}{% endblock %}")
        assert list(doc.blocks) == ["a"]

    def test_line_numbers(self):
        doc = self.env.parse("a\n\n{{ b }}\n{% if c %}{% endif %}")
        assert doc.tokens[1].line == 3
        assert doc.tokens[3].line == 4

    def test_crlf_is_normalized(self):
        doc = self.env.parse("a\r\nb")
        assert doc.tokens == [TextNode("a\nb")]


class TestWhitespaceControl:

    def setup_method(self):
        self.env = Environment()
        self.locals = {"tacos": "tacos"}

    def render(self, source):
        return self.env.render(source, self.locals)

    def test_strips_before(self):
        assert self.render("burritos\n \n{{- tacos }}\n") == "burritostacos\n"
        assert self.render("burritos\n \n{%- if tacos %}\ntacos\r\n{%- endif %}\n") == "burritos\ntacos\n"

    def test_strips_after(self):
        assert self.render("burritos\n \n{{ tacos -}}\n") == "burritos\n \ntacos"
        assert self.render("burritos\n \n{% if tacos -%}\ntacos\n{% endif -%}\n") == "burritos\n \ntacos\n"

    def test_strips_both(self):
        assert self.render("burritos\n \n{{- tacos -}}\n") == "burritostacos"
        assert self.render("burritos\n \n{%- if tacos -%}\ntacos\n{%- endif -%}\n") == "burritostacos"


class TestComments:

    def test_are_removed_from_output(self):
        env = Environment()
        assert env.render("{# some content #}") == ""
        assert env.render("{# \n can have newlines \r\n in whatever type #}") == ""
        assert env.render('{#\n{% extends "layout.html" %}\n#}') == ""


class TestParserErrors:

    def setup_method(self):
        self.env = Environment()

    def test_unknown_tag(self):
        with pytest.raises(TemplateSyntaxError, match='Unexpected tag "foobar" on line 3\\.'):
            self.env.render("\n \n{% foobar %}")

    def test_unexpected_end_tag(self):
        with pytest.raises(TemplateSyntaxError, match='Unexpected end of tag "foo" on line 4\\.'):
            self.env.render("\n{% if foo %}\n  asdf\n{% endfoo %}")

    def test_missing_end_tag_reports_opening_line(self):
        with pytest.raises(TemplateSyntaxError, match='Missing end tag for "if" on line 2'):
            self.env.render("a\n{% if foo %}\nb\n")

    def test_end_tags_accept_any_tokens(self):
        out = self.env.render("{% if foo %}hi!{% endif the above will render if foo == true %}", {"foo": True})
        assert out == "hi!"

    def test_left_open_state(self):
        with pytest.raises(TemplateSyntaxError, match='Unable to parse "a\\(asdf" on line 1\\.'):
            self.env.render("{{ a(asdf }}")
        with pytest.raises(TemplateSyntaxError, match='Unable to parse "a\\[foo" on line 1\\.'):
            self.env.render("{{ a[foo }}")

    @pytest.mark.parametrize("source,message", [
        ("{% set y = 1 + %}", 'Unable to parse "y = 1 \\+" on line 1\\.'),
        ("{% if 1 * %}{% endif %}", 'Unable to parse "1 \\*" on line 1\\.'),
        ("{% if a %}\n{% elseif 1 * %}{% endif %}", 'Unable to parse "1 \\*" on line 2\\.'),
        ("{% for x in items + %}{% endfor %}", 'Unable to parse "x in items \\+" on line 1\\.'),
    ])
    def test_tag_expression_error_quotes_arguments(self, source, message):
        with pytest.raises(TemplateSyntaxError, match=message):
            self.env.render(source)

    def test_unknown_filter_line(self):
        with pytest.raises(TemplateSyntaxError, match='Invalid filter "bar" on line 3\\.'):
            self.env.render("\n\n{{ a|bar() }}")

    def test_reserved_word_reports_file(self):
        with pytest.raises(TemplateSyntaxError,
                           match='Reserved keyword "new" attempted to be used as a variable on line 1 in file new.html\\.'):
            self.env.render("{{ new }}", filename="new.html")


class TestCustomControls:

    def test_set_at_compile_time(self):
        env = Environment()
        assert env.compile("<%= a %>", var_controls=["<%=", "%>"])({"a": "b"}) == "b"
        assert env.compile("<* if a *>c<* endif *>", tag_controls=["<*", "*>"])({"a": 1}) == "c"
        assert env.compile("<!-- hello -->", cmt_controls=["<!--", "-->"])({}) == ""

    def test_set_as_default(self):
        env = Environment(var_controls=("<=", "=>"), tag_controls=("<%", "%>"), cmt_controls=("<#", "#>"))
        assert env.compile("<= a =>")({"a": "b"}) == "b"
        assert env.compile("<% if a %>b<% endif %>")({"a": 1}) == "b"
        assert env.compile("<# hello #>")({}) == ""

    def test_newlines_inside_controls(self):
        env = Environment()
        assert env.render("{{\nfoo\n}}", {"foo": "tacos"}) == "tacos"
        assert env.render("{%\nif foo\n%}tacos{% endif %}", {"foo": "tacos"}) == "tacos"
        assert env.render("{#\nfoo\n#}") == ""
