import logging

from stencil import Environment
from stencil.template.registry import FilterRegistry, TagRegistry
from stencil.template.tags import register_builtin_tags


def test_builtin_tags_registered():
    registry = TagRegistry()
    register_builtin_tags(registry)
    assert "elif" in registry
    assert "elseif" in registry
    assert registry["for"].ends is True
    assert set(registry) == set(registry.names())
    assert len(registry) == 16


def test_filter_overwrite_logs_warning(caplog):
    registry = FilterRegistry()
    registry.register("x", str)
    with caplog.at_level(logging.WARNING, logger="stencil.template.registry"):
        spec = registry.register("x", repr, safe=True)
    assert "Filter 'x' overwrites existing filter" in caplog.text
    assert registry["x"] is spec
    assert registry.names() == ["x"]
    assert len(registry) == 1


def test_set_tag_overwrites_builtin(caplog):
    env = Environment()
    with caplog.at_level(logging.WARNING, logger="stencil.template.registry"):
        env.set_tag("spaceless", lambda *a: True, lambda *a: lambda frame: frame.write("!"))
    assert "Tag 'spaceless' overwrites existing tag" in caplog.text
    assert env.render("{% spaceless %}") == "!"
