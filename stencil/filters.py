"""
Встроенные фильтры.

Фильтр - функция ``func(input, *args)``. Строковые фильтры применяются
поэлементно к спискам и к значениям словарей.
"""

from __future__ import annotations

import json as _json
import re
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, unquote

from .runtime import MISSING, is_number, to_string
from .template.registry import FilterRegistry

_AMPERSAND = re.compile(r"&(?!amp;|lt;|gt;|quot;|#39;)")
_TAGS = re.compile(r"<[^>]+>")
_WORD = re.compile(r"\w\S*")
_JS_GROUP = re.compile(r"\$(\d+|&)")

_JS_ESCAPES = (
    ("&", "\\u0026"),
    ("<", "\\u003C"),
    (">", "\\u003E"),
    ("'", "\\u0027"),
    ('"', "\\u0022"),
    ("=", "\\u003D"),
    ("-", "\\u002D"),
    (";", "\\u003B"),
)

# Символы, которые не кодирует url_encode (как encodeURIComponent)
_URL_SAFE = "-_.!~*'()"


def _iterate(func: Callable[..., Any], input: Any, *args: Any) -> Any:
    """Применяет фильтр к элементам списка или значениям словаря; иначе None."""
    if isinstance(input, (list, tuple)):
        return [func(item, *args) for item in input]
    if isinstance(input, Mapping):
        return {key: func(value, *args) for key, value in input.items()}
    return None


def addslashes(input: Any) -> Any:
    out = _iterate(addslashes, input)
    if out is not None:
        return out
    return to_string(input).replace("\\", "\\\\").replace("'", "\\'").replace('"', '\\"')


def capitalize(input: Any) -> Any:
    out = _iterate(capitalize, input)
    if out is not None:
        return out
    text = to_string(input)
    return text[:1].upper() + text[1:].lower()


def default(input: Any, fallback: Any = "") -> Any:
    """Значение по умолчанию для пустого или отсутствующего входа; числа (включая 0) сохраняются."""
    if input is None or input is MISSING:
        return fallback
    if input or is_number(input):
        return input
    return fallback


def escape(input: Any, kind: Any = "html") -> Any:
    """
    Экранирует строку для HTML (по умолчанию) или для JavaScript (``"js"``).

    Не строковые значения возвращаются без изменений.
    """
    out = _iterate(escape, input, kind)
    if out is not None:
        return out
    if not isinstance(input, str):
        return input

    if kind == "js":
        chars = []
        for char in input.replace("\\", "\\u005C"):
            code = ord(char)
            chars.append(f"\\u00{code:02X}" if code < 32 else char)
        text = "".join(chars)
        for char, replacement in _JS_ESCAPES:
            text = text.replace(char, replacement)
        return text

    return (
        _AMPERSAND.sub("&amp;", input)
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def first(input: Any) -> Any:
    if isinstance(input, Mapping):
        return next(iter(input.values()), "")
    if isinstance(input, (str, list, tuple)):
        return input[0] if input else ""
    return ""


def last(input: Any) -> Any:
    if isinstance(input, Mapping):
        values = list(input.values())
        return values[-1] if values else ""
    if isinstance(input, (str, list, tuple)):
        return input[-1] if input else ""
    return ""


def group_by(input: Any, key: Any) -> Any:
    """Группирует список словарей по значению ключа; сам ключ из элементов удаляется."""
    if not isinstance(input, (list, tuple)):
        return input

    out: Dict[str, List[Any]] = {}
    for item in input:
        if not isinstance(item, Mapping) or key not in item:
            continue
        rest = {k: v for k, v in item.items() if k != key}
        out.setdefault(to_string(item[key]), []).append(rest)
    return out


def join(input: Any, glue: Any = "") -> Any:
    if isinstance(input, (list, tuple)):
        return to_string(glue).join(to_string(item) for item in input)
    if isinstance(input, Mapping):
        return to_string(glue).join(to_string(value) for value in input.values())
    return input


def json(input: Any, indent: Optional[Any] = None) -> str:
    if indent:
        return _json.dumps(input, indent=int(indent), ensure_ascii=False, default=to_string)
    return _json.dumps(input, separators=(",", ":"), ensure_ascii=False, default=to_string)


def length(input: Any) -> Any:
    if isinstance(input, (str, list, tuple, Mapping)):
        return len(input)
    return ""


def lower(input: Any) -> Any:
    out = _iterate(lower, input)
    if out is not None:
        return out
    return to_string(input).lower()


def upper(input: Any) -> Any:
    out = _iterate(upper, input)
    if out is not None:
        return out
    return to_string(input).upper()


def safe(input: Any) -> Any:
    """Помечает вывод как безопасный: автоэкранирование не применяется."""
    return input


def _js_replacement(replacement: str) -> Callable[[re.Match], str]:
    def expand(match: re.Match) -> str:
        def group(ref: re.Match) -> str:
            name = ref.group(1)
            if name == "&":
                return match.group(0)
            index = int(name)
            if index > (match.re.groups or 0):
                return ref.group(0)
            return match.group(index) or ""
        return _JS_GROUP.sub(group, replacement)
    return expand


def replace(input: Any, search: Any, replacement: Any = "", flags: Any = "") -> Any:
    """
    Замена по регулярному выражению.

    Флаг ``g`` заменяет все вхождения, ``i`` игнорирует регистр;
    в строке замены поддерживаются ссылки ``$1`` и ``$&``.
    """
    out = _iterate(replace, input, search, replacement, flags)
    if out is not None:
        return out
    flags = to_string(flags)
    pattern = re.compile(to_string(search), re.IGNORECASE if "i" in flags else 0)
    count = 0 if "g" in flags else 1
    return pattern.sub(_js_replacement(to_string(replacement)), to_string(input), count=count)


def _sorted(items: List[Any]) -> List[Any]:
    try:
        return sorted(items)
    except TypeError:
        return sorted(items, key=to_string)


def sort(input: Any, reverse: Any = False) -> Any:
    """
    Сортирует список (копию), ключи словаря или символы строки.

    ``reverse`` для строк только переворачивает её, без сортировки.
    """
    if isinstance(input, (list, tuple)):
        out = _sorted(list(input))
    elif isinstance(input, Mapping):
        out = _sorted(list(input.keys()))
    elif isinstance(input, str):
        if reverse:
            return input[::-1]
        return "".join(sorted(input))
    else:
        return input

    if reverse:
        out.reverse()
    return out


def reverse(input: Any) -> Any:
    return sort(input, True)


def striptags(input: Any) -> Any:
    out = _iterate(striptags, input)
    if out is not None:
        return out
    return _TAGS.sub("", to_string(input))


def title(input: Any) -> Any:
    out = _iterate(title, input)
    if out is not None:
        return out
    return _WORD.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), to_string(input))


def uniq(input: Any) -> Any:
    if not isinstance(input, (list, tuple)):
        return ""
    out: List[Any] = []
    for item in input:
        if item not in out:
            out.append(item)
    return out


def url_encode(input: Any) -> Any:
    out = _iterate(url_encode, input)
    if out is not None:
        return out
    return quote(to_string(input), safe=_URL_SAFE)


def url_decode(input: Any) -> Any:
    out = _iterate(url_decode, input)
    if out is not None:
        return out
    return unquote(to_string(input))


BUILTIN_FILTERS: Dict[str, Callable[..., Any]] = {
    "addslashes": addslashes,
    "capitalize": capitalize,
    "default": default,
    "e": escape,
    "escape": escape,
    "first": first,
    "groupBy": group_by,
    "join": join,
    "json": json,
    "last": last,
    "length": length,
    "lower": lower,
    "replace": replace,
    "reverse": reverse,
    "sort": sort,
    "striptags": striptags,
    "title": title,
    "uniq": uniq,
    "upper": upper,
    "url_encode": url_encode,
    "url_decode": url_decode,
}

SAFE_FILTERS: Dict[str, Callable[..., Any]] = {
    "raw": safe,
    "safe": safe,
}


def register_builtin_filters(registry: FilterRegistry) -> None:
    """Регистрирует встроенные фильтры в реестре."""
    for name, func in BUILTIN_FILTERS.items():
        registry.register(name, func)
    for name, func in SAFE_FILTERS.items():
        registry.register(name, func, safe=True)


__all__ = ["BUILTIN_FILTERS", "SAFE_FILTERS", "register_builtin_filters"]
