import math

import pytest

from stencil.runtime import (
    ARITHMETIC,
    MISSING,
    Frame,
    assign_path,
    compare,
    contains,
    get_member,
    iterate_items,
    to_number,
    to_string,
    try_get_path,
)


class TestToString:

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        (MISSING, ""),
        (True, "true"),
        (False, "false"),
        (3, "3"),
        (2.0, "2"),
        (0.5, "0.5"),
        (math.nan, "NaN"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
        ([1, [2, 3], None], "1,2,3,"),
        ("text", "text"),
    ])
    def test_values(self, value, expected):
        assert to_string(value) == expected


class TestArithmetic:

    @pytest.mark.parametrize("op,left,right,expected", [
        ("+", 1, 2, 3),
        ("+", "a", 1, "a1"),
        ("+", 1, None, 1),
        ("-", "5", 2, 3),
        ("*", True, 3, 3),
        ("%", 7, 3, 1),
        ("/", 3, 2, 1.5),
        ("/", -1, 0, -math.inf),
    ])
    def test_operators(self, op, left, right, expected):
        assert ARITHMETIC[op](left, right) == expected

    def test_nan_results(self):
        assert math.isnan(ARITHMETIC["/"](0, 0))
        assert math.isnan(ARITHMETIC["%"](1, 0))
        assert math.isnan(ARITHMETIC["-"]("abc", 1))

    def test_to_number(self):
        assert to_number(" 12 ") == 12
        assert to_number("1.5") == 1.5
        assert to_number("") == 0
        assert math.isnan(to_number([1]))


class TestCompare:

    @pytest.mark.parametrize("op,left,right,expected", [
        ("==", "1", 1, True),
        ("===", "1", 1, False),
        ("===", True, 1, False),
        ("!==", 1, 2, True),
        ("!=", 1, 1, False),
        ("<", "a", "b", True),
        (">=", "10", 9, True),
        ("<", [1], {"a": 1}, False),
        ("in", "b", ["a", "b"], True),
        ("in", "ell", "hello", True),
        ("in", "k", {"k": 1}, True),
        ("in", 1, None, False),
    ])
    def test_operators(self, op, left, right, expected):
        assert compare(op, left, right) is expected

    def test_contains_unhashable(self):
        assert contains([1], {"a": 1}) is False


class TestNavigation:

    def test_get_member(self):
        assert get_member({"a": 1}, "a") == 1
        assert get_member({"0": "x"}, 0) == "x"
        assert get_member([1, 2, 3], "length") == 3
        assert get_member([1, 2, 3], "1") == 2
        assert get_member([1], 5) is MISSING
        assert get_member(None, "a") is MISSING
        assert get_member(object(), "__class__") is MISSING

    def test_try_get_path_prefers_context(self):
        context = {"a": {"b": 1}}
        ambient = {"a": {"b": 2}, "c": 3}
        assert try_get_path(context, ambient, ["a", "b"]) == 1
        assert try_get_path(context, ambient, ["c"]) == 3
        assert try_get_path({"a": None}, {"a": {"b": 4}}, ["a", "b"]) == 4
        assert try_get_path({}, {}, ["x", "y"]) is MISSING


class TestIterateItems:

    def test_kinds(self):
        assert iterate_items([5, 6]) == [(0, 5), (1, 6)]
        assert iterate_items({"a": 1}) == [("a", 1)]
        assert iterate_items("ab") == [(0, "a"), (1, "b")]
        assert iterate_items(x for x in [7]) == [(0, 7)]
        assert iterate_items(None) == []
        assert iterate_items(5) == []


class TestAssignPath:

    def test_copies_containers(self):
        shared = {"b": {"c": 1}}
        context = {"a": shared}
        assign_path(context, "a", ["b", "c"], 2)
        assert context["a"]["b"]["c"] == 2
        assert shared == {"b": {"c": 1}}

    def test_appends_to_list(self):
        items = [1, 2]
        context = {"items": items}
        assign_path(context, "items", [2], 3)
        assert context["items"] == [1, 2, 3]
        assert items == [1, 2]

    def test_plain_root(self):
        context = {}
        assign_path(context, "x", [], 1)
        assert context == {"x": 1}


class TestFrame:

    def test_capture_restores_output(self):
        frame = Frame(None, {})
        frame.write("a")
        assert frame.capture(lambda f: f.write("b")) == "b"
        frame.write("c")
        assert frame.getvalue() == "ac"

    def test_ambient_without_environment(self):
        frame = Frame(None, {}, {"p": 1})
        assert frame.ambient == {"p": 1}
