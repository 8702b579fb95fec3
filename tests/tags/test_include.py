import pytest

from stencil import Environment, MemoryLoader, TemplateNotFoundError, TemplateSyntaxError
from tests.conftest import memory_env


class TestInclude:

    def setup_method(self):
        self.env = memory_env({
            "/foo/bar.html": "{{ foo }}",
            "/foo/loop.html": "{{ item }},",
            "/foo/nested/inner.html": '[{% include "../bar.html" %}]',
        })

    def test_relative_to_current_file(self):
        out = self.env.render('{% include "./bar.html" %}', {"foo": "tacos"}, filename="/foo/page.html")
        assert out == "tacos"

    def test_nested_relative_paths(self):
        out = self.env.render('{% include "nested/inner.html" %}', {"foo": 1}, filename="/foo/page.html")
        assert out == "[1]"

    def test_basepath(self):
        env = Environment(loader=MemoryLoader({"/foo/bar.html": "{{ foo }}"}, "/foo"))
        assert env.render('{% include "bar.html" %}', {"foo": "baz"}) == "baz"

    def test_variable_path(self):
        out = self.env.render("{% include tpl %}", {"tpl": "/foo/bar.html", "foo": "v"})
        assert out == "v"

    def test_sees_loop_variables(self):
        out = self.env.render('{% for item in items %}{% include "loop.html" %}{% endfor %}',
                              {"items": ["a", "b"]}, filename="/foo/page.html")
        assert out == "a,b,"

    def test_with_context(self):
        out = self.env.render('{% include "./bar.html" with ctx %}',
                              {"foo": "outer", "ctx": {"foo": "inner"}}, filename="/foo/page.html")
        assert out == "inner"

    def test_with_keeps_outer_context(self):
        env = memory_env({"/both.html": "{{ a }}{{ b }}"})
        assert env.render('{% include "both.html" with extra %}', {"a": 1, "extra": {"b": 2}}) == "12"

    def test_only_isolates_context(self):
        env = memory_env({"/both.html": "{{ a }}{{ b }}"})
        assert env.render('{% include "both.html" with extra only %}', {"a": 1, "extra": {"b": 2}}) == "2"

    def test_ignore_missing(self):
        out = self.env.render('a{% include "./nope.html" ignore missing %}b', filename="/foo/page.html")
        assert out == "ab"

    def test_missing_raises(self):
        with pytest.raises(TemplateNotFoundError, match='Unable to find template "/foo/nope.html"'):
            self.env.render('{% include "./nope.html" %}', filename="/foo/page.html")

    def test_ignore_missing_does_not_hide_syntax_errors(self):
        env = memory_env({"/broken.html": "{% if %}{% endif %}"})
        with pytest.raises(TemplateSyntaxError, match="No conditional statement provided"):
            env.render('{% include "broken.html" ignore missing %}')

    def test_from_filesystem(self, tmp_templates):
        env = Environment()
        out = env.render('{% include "./partials/greeting.html" %}', {"who": "Ann"},
                         filename=str(tmp_templates / "index.html"))
        assert out == "Hi Ann"

    @pytest.mark.parametrize("source,message", [
        ('{% include "foo" missing %}', 'Unexpected token "missing" on line 1\\.'),
        ('{% include "foo" ignore foobar %}', 'Expected "missing" but found "foobar" on line 1\\.'),
        ('{% include "foo" ignore %}', 'Expected "missing" after "ignore" on line 1\\.'),
        ('{% include "foo" ignore missing with bar %}', 'Unexpected token "with" after "ignore missing" on line 1\\.'),
        ('{% include "foo" ignore missing "x" %}', 'after "ignore missing" on line 1\\.'),
    ])
    def test_errors(self, source, message):
        with pytest.raises(TemplateSyntaxError, match=message):
            self.env.render(source)
