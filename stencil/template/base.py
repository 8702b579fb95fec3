"""
Базовые интерфейсы тегов шаблонизатора.

Тег состоит из двух хуков:
- ``parse`` проверяет и преобразует поток токенов своих аргументов,
  устанавливая обработчики на парсере выражения;
- ``compile`` превращает разобранные аргументы и содержимое
  в инструкцию рендеринга.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from .expression import TokenParser
from .nodes import ParsedTemplate, TagNode, TemplateNode
from .types import CompileFn, Instruction

if TYPE_CHECKING:
    from ..config import Options
    from ..environment import Environment


class TemplateTag(ABC):
    """
    Базовый интерфейс тега.

    Attributes:
        name: Имя тега в шаблоне
        ends: Требует ли тег закрывающего ``end<name>``
        block: Является ли тег блочным (регистрируется в карте блоков
               документа и переносится в дочерние шаблоны при наследовании)
    """

    name: str = ""
    ends: bool = False
    block: bool = False

    @abstractmethod
    def parse(
        self,
        args: Optional[str],
        line: int,
        parser: TokenParser,
        stack: List[TagNode],
        options: Options,
        env: Environment,
    ) -> bool:
        """
        Подготавливает разбор аргументов тега.

        Args:
            args: Исходный текст аргументов (None, если их нет)
            line: Номер строки тега
            parser: Парсер выражения для аргументов
            stack: Стек открытых тегов
            options: Опции компиляции
            env: Окружение

        Returns:
            False, если тег недопустим в текущем месте
        """
        pass

    @abstractmethod
    def compile(
        self,
        compiler: CompileFn,
        args: List[Any],
        content: List[TemplateNode],
        parents: List[ParsedTemplate],
        options: Options,
        block_name: Optional[str],
    ) -> Optional[Instruction]:
        """
        Компилирует тег в инструкцию рендеринга.

        Returns:
            Инструкция или None, если тег ничего не выводит
        """
        pass


class FunctionTag(TemplateTag):
    """Тег, собранный из пары функций (регистрация через ``set_tag``)."""

    def __init__(self, name: str, parse: Callable[..., bool], compile: Callable[..., Optional[Instruction]],
                 ends: bool = False, block: bool = False):
        self.name = name
        self.ends = ends
        self.block = block
        self._parse = parse
        self._compile = compile

    def parse(self, args, line, parser, stack, options, env) -> bool:
        return self._parse(args, line, parser, stack, options, env)

    def compile(self, compiler, args, content, parents, options, block_name):
        return self._compile(compiler, args, content, parents, options, block_name)


__all__ = ["TemplateTag", "FunctionTag"]
