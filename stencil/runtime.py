"""
Рантайм рендеринга.

Содержит кадр рендеринга (контекст, окружающая область видимости,
буфер вывода) и помощники, которыми пользуются вычислитель выражений
и скомпилированные теги:
- безопасная навигация по путям (``try_get_path``);
- приведение значений к строке при выводе;
- арифметика и сравнения, не бросающие исключений на несовместимых типах.
"""

from __future__ import annotations

import copy
import math
from collections import ChainMap
from collections.abc import Iterable, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .environment import Environment


class _Missing:
    """Маркер отсутствующего значения (аналог undefined)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class Frame:
    """
    Кадр рендеринга одного шаблона или вызова макроса.

    Attributes:
        env: Окружение (источник фильтров, глобалов и расширений)
        context: Изменяемый контекст рендеринга (``_ctx``)
        scope: Локальная окружающая область (параметры макросов)
        output: Буфер вывода
    """

    __slots__ = ("env", "context", "scope", "output")

    def __init__(
        self,
        env: Optional[Environment],
        context: Dict[str, Any],
        scope: Optional[Mapping] = None,
    ):
        self.env = env
        self.context = context
        self.scope = scope if scope is not None else {}
        self.output: List[str] = []

    @property
    def ambient(self) -> Mapping:
        """Окружающая область: параметры макросов, затем глобалы окружения."""
        if self.env is None:
            return self.scope
        return ChainMap(self.scope, self.env.globals)

    def write(self, text: str) -> None:
        self.output.append(text)

    def capture(self, instruction: Callable[[Frame], None]) -> str:
        """Выполняет инструкцию в отдельный буфер и возвращает её вывод."""
        saved = self.output
        self.output = []
        try:
            instruction(self)
            return "".join(self.output)
        finally:
            self.output = saved

    def getvalue(self) -> str:
        return "".join(self.output)


# ============================================================================
# Безопасная навигация
# ============================================================================

def get_member(value: Any, key: Any) -> Any:
    """
    Возвращает ``value[key]`` / ``value.key`` или MISSING.

    Словари проверяются по ключу (и по его строковому виду), списки
    и строки по целочисленному индексу; ``length`` у последовательностей
    возвращает длину. Dunder-атрибуты недоступны.
    """
    if value is None or value is MISSING:
        return MISSING

    if isinstance(value, Mapping):
        if key in value:
            return value[key]
        if not isinstance(key, str) and str(key) in value:
            return value[str(key)]
        return MISSING

    if isinstance(value, (list, tuple, str)):
        if key == "length":
            return len(value)
        index = _as_index(key)
        if index is None:
            return MISSING
        try:
            return value[index]
        except IndexError:
            return MISSING

    if not isinstance(key, str) or key.startswith("__"):
        return MISSING
    return getattr(value, key, MISSING)


def _as_index(key: Any) -> Optional[int]:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, float) and key.is_integer():
        return int(key)
    if isinstance(key, str):
        try:
            return int(key)
        except ValueError:
            return None
    return None


def _walk(root: Mapping, segments: Sequence[str]) -> Any:
    value: Any = root
    for segment in segments:
        value = get_member(value, segment)
        if value is MISSING or value is None:
            return MISSING
    return value


def try_get_path(context: Mapping, ambient: Mapping, segments: Sequence[str]) -> Any:
    """
    Разрешает путь ``p0.p1...pn``.

    Предпочитается путь от контекста рендеринга, если каждое звено
    определено и не None; иначе тот же путь от окружающей области;
    иначе MISSING.
    """
    value = _walk(context, segments)
    if value is not MISSING:
        return value
    return _walk(ambient, segments)


def lookup_callable(context: Mapping, ambient: Mapping, name: str) -> Any:
    """Функция из контекста, затем из окружающей области, иначе пустышка."""
    if name in context:
        return context[name]
    if name in ambient:
        return ambient[name]
    return empty_function


def empty_function(*args: Any, **kwargs: Any) -> str:
    return ""


def call_value(callee: Any, args: Sequence[Any]) -> Any:
    """Вызывает значение; не вызываемые значения дают пустую строку."""
    if not callable(callee):
        return ""
    return callee(*args)


# ============================================================================
# Приведение типов
# ============================================================================

def to_string(value: Any) -> str:
    """Строковое представление значения при выводе в шаблон."""
    if value is None or value is MISSING:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, (list, tuple)):
        return ",".join(to_string(item) for item in value)
    return str(value)


def format_number(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def to_number(value: Any) -> Any:
    """Числовое значение операнда арифметики (NaN для нечисловых)."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if value is None or value is MISSING:
        return 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def truthy(value: Any) -> bool:
    return bool(value)


def add(left: Any, right: Any) -> Any:
    """Сложение: строковая конкатенация, если хотя бы один операнд не число."""
    if _numeric_operand(left) and _numeric_operand(right):
        return to_number(left) + to_number(right)
    return to_string(left) + to_string(right)


def _numeric_operand(value: Any) -> bool:
    return value is None or isinstance(value, (bool, int, float))


def subtract(left: Any, right: Any) -> Any:
    return to_number(left) - to_number(right)


def multiply(left: Any, right: Any) -> Any:
    return to_number(left) * to_number(right)


def divide(left: Any, right: Any) -> Any:
    a, b = to_number(left), to_number(right)
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def modulo(left: Any, right: Any) -> Any:
    a, b = to_number(left), to_number(right)
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    result = math.fmod(a, b)
    if isinstance(a, int) and isinstance(b, int):
        return int(result)
    return result


ARITHMETIC: Dict[str, Callable[[Any, Any], Any]] = {
    "+": add,
    "-": subtract,
    "*": multiply,
    "/": divide,
    "%": modulo,
}


def loose_equals(left: Any, right: Any) -> bool:
    if isinstance(left, str) and is_number(right) or is_number(left) and isinstance(right, str):
        return to_number(left) == to_number(right)
    return left == right


def strict_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if is_number(left) != is_number(right):
        return False
    return left == right


def contains(item: Any, container: Any) -> bool:
    """Оператор ``in``: принадлежность элемента контейнеру."""
    if container is None or container is MISSING:
        return False
    if isinstance(container, str):
        return to_string(item) in container
    try:
        return item in container
    except TypeError:
        return False


def _ordered(op: str, left: Any, right: Any) -> bool:
    if not (isinstance(left, str) and isinstance(right, str)):
        left, right = to_number(left), to_number(right)
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    return left >= right


def compare(op: str, left: Any, right: Any) -> bool:
    """
    Сравнение значений.

    Строки сравниваются лексикографически, остальное приводится к числам;
    несравнимые значения дают False вместо исключения.
    """
    if op == "==":
        return loose_equals(left, right)
    if op == "!=":
        return not loose_equals(left, right)
    if op == "===":
        return strict_equals(left, right)
    if op == "!==":
        return not strict_equals(left, right)
    if op == "in":
        return contains(left, right)
    return _ordered(op, left, right)


# ============================================================================
# Итерация и присваивание
# ============================================================================

def iterate_items(value: Any) -> List[Tuple[Any, Any]]:
    """Пары (ключ, значение) для цикла ``for``."""
    if not value:
        return []
    if isinstance(value, Mapping):
        return list(value.items())
    if isinstance(value, (str, list, tuple)):
        return list(enumerate(value))
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        return list(enumerate(value))
    return []


def _writable(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    if value is None or value is MISSING or isinstance(value, (str, int, float, tuple)):
        return {}
    return copy.copy(value)


def _store(container: Any, key: Any, value: Any) -> None:
    if isinstance(container, MutableMapping):
        container[key] = value
        return
    if isinstance(container, list):
        index = _as_index(key)
        if index is not None and index < 0:
            index += len(container)
        if index is None or index < 0:
            # У списка нет именованных ключей и позиций левее начала
            return
        if index >= len(container):
            container.extend([None] * (index - len(container) + 1))
        container[index] = value
        return
    setattr(container, str(key), value)


def assign_path(context: Dict[str, Any], root: str, keys: Sequence[Any], value: Any) -> None:
    """
    Присваивает значение по пути ``root.k1.k2`` в контексте.

    Контейнеры на пути копируются перед изменением, поэтому объекты,
    переданные вызывающей стороной, не мутируются.
    """
    if not keys:
        context[root] = value
        return

    container = _writable(context.get(root))
    context[root] = container
    for key in keys[:-1]:
        child = _writable(get_member(container, key))
        _store(container, key, child)
        container = child
    _store(container, keys[-1], value)


__all__ = [
    "MISSING",
    "Frame",
    "get_member",
    "try_get_path",
    "lookup_callable",
    "empty_function",
    "call_value",
    "to_string",
    "format_number",
    "to_number",
    "is_number",
    "truthy",
    "ARITHMETIC",
    "compare",
    "contains",
    "iterate_items",
    "assign_path",
]
