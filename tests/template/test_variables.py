"""Вывод переменных: литералы, пути, вызовы, операторы, экранирование."""

import pytest

from stencil import Environment


def make_locals():
    class Dish:
        def __init__(self):
            self.name = "taco"

        def describe(self, size):
            return f"{size} {self.name}"

    return {
        "ap": "apples",
        "bu": "burritos",
        "a": 1,
        "foo": "<blah>",
        "chalupa": lambda: {"bar": lambda: "chalupas"},
        "c": lambda b=None: "barfoo" if b else "foobar",
        "d": lambda c=None: None,
        "e": {"f": lambda *args: "eeeee"},
        "g": {"0": {"q": "deep"}},
        "n": None,
        "o3": {"n": None},
        "dish": Dish(),
        "items": [1, 2, 3],
    }


CASES = [
    ("{{ ap }}, {{ bu }}", "apples, burritos"),
    ('{{ "a" }}', "a"),
    ("{{ 1 }}", "1"),
    ("{{ 1.5 }}", "1.5"),
    ("{{ true }}", "true"),
    ('"{{ u }}"', '""'),
    ('"{{ n }}"', '""'),
    ('"{{ o3.n }}"', '""'),
    ("{{ n.missing.deeper }}", ""),
    ("{{ a + 3 }}", "4"),
    ("{{ a * 3 }}", "3"),
    ("{{ 3 - a }}", "2"),
    ("{{ a % 3 }}", "1"),
    ("{{ 4 / 2 }}", "2"),
    ("{{ a / 0 }}", "Infinity"),
    ("{{ [0, 1, 3] }}", "0,1,3"),
    ("{{ foo }}", "&lt;blah&gt;"),
    ("{{ c() }}", "foobar"),
    ("{{ c(1) }}", "barfoo"),
    ('{{ d(1)|default("tacos")|replace("tac", "churr") }}', "churros"),
    ('{{ d()|default("tacos") }}', "tacos"),
    ('{{ e.f(4, "blah") }}', "eeeee"),
    ('{{ q.r(4, "blah") }}', ""),
    ('{{ e["f"](4, "blah") }}', "eeeee"),
    ("{{ chalupa().bar() }}", "chalupas"),
    ('{{ { foo: "bar" }.foo }}', "bar"),
    ('{{ a|default("")|default(1) }}', "1"),
    ('{{ a|default("1") + b|default("2") }}', "12"),
    ('{{ ap === "apples" }}', "true"),
    ("{{ not a }}", "false"),
    ("{{ a <= 4 }}", "true"),
    ('{{ g["0"].q }}', "deep"),
    ("{{ g.0.q }}", "deep"),
    ("{{ dish.name }}", "taco"),
    ('{{ dish.describe("big") }}', "big taco"),
    ("{{ items.length }}", "3"),
    ("{{ items[1] }}", "2"),
    ('{{ "a" + 1 }}', "a1"),
    ("{{ ap || bu }}", "apples"),
    ("{{ n || bu }}", "burritos"),
    ("{{ a && bu }}", "burritos"),
    ("foo\\ blah \\ and stuff", "foo\\ blah \\ and stuff"),
]


class TestVariables:

    def setup_method(self):
        self.env = Environment()
        self.locals = make_locals()

    @pytest.mark.parametrize("source,expected", CASES)
    def test_render(self, source, expected):
        assert self.env.render(source, self.locals) == expected

    def test_logic_words_are_not_partially_matched(self):
        for name in ("org", "andif", "note", "truestuff", "falsey"):
            assert self.env.render("{{ " + name + " }}", {name: "foo"}) == "foo"

    def test_object_literal_in_set(self):
        tpl = "{% set foo = {label:'account.label',value:page.code} %}{{ foo.value }}"
        assert self.env.render(tpl, {"page": {"code": "tacos"}}) == "tacos"

    def test_null_object_property(self):
        assert self.env.render("{{ a.property }}", {"a": None}) == ""


class TestAmbientScope:

    def test_falls_back_to_globals(self):
        env = Environment()
        env.globals["foo"] = "global"
        assert env.render("{{ foo }}", {"foo": "local"}) == "local"
        assert env.render("{{ foo }}") == "global"
        del env.globals["foo"]
        assert env.render("{{ foo }}") == ""

    def test_global_functions(self):
        env = Environment()
        env.globals["shout"] = lambda s: s.upper() + "!"
        assert env.render('{{ shout("hey") }}') == "HEY!"

    def test_dunder_attributes_are_hidden(self):
        env = Environment()
        assert env.render("{{ obj.__class__ }}", {"obj": object()}) == ""


class TestAutoescape:

    def test_separate_instances(self):
        a = Environment(autoescape=False)
        b = Environment()
        assert a.render("{{ foo }}", {"foo": "<h1>"}) == "<h1>"
        assert b.render("{{ foo }}", {"foo": "<h1>"}) == "&lt;h1&gt;"

    def test_js_mode(self):
        env = Environment(autoescape="js")
        assert env.render("{{ foo }}", {"foo": "<b>"}) == "\\u003Cb\\u003E"

    def test_safe_filter_applies_to_whole_expression(self):
        env = Environment()
        assert env.render("{{ v|safe|lower }}", {"v": "<&>fOo"}) == "<&>foo"

    def test_safe_custom_filter(self):
        env = Environment()
        env.set_filter("bold", lambda s: f"<b>{s}</b>", safe=True)
        assert env.render("{{ v|bold }}", {"v": "x"}) == "<b>x</b>"

    def test_numbers_are_not_escaped(self):
        assert Environment().render("{{ 5 }}") == "5"
