"""
Резолвер наследования шаблонов (``extends``).

Строит цепочку предков документа с обнаружением циклов, затем,
начиная с самого дальнего предка, подставляет в его дерево блоки
более близких документов. Разобранные документы не изменяются:
переписанные узлы создаются заново.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Dict, List, Tuple

from ..errors import ExtendsCycleError, TemplateSyntaxError
from .nodes import ParsedTemplate, TagNode, TemplateNode

if TYPE_CHECKING:
    from ..config import Options
    from ..environment import Environment

logger = logging.getLogger(__name__)


class InheritanceResolver:
    """
    Резолвер цепочки ``extends``.

    Handles:
    - поиск и разбор предков (через кэш окружения);
    - обнаружение циклических цепочек по посещённым путям;
    - подстановку блоков от дальнего предка к ближнему.
    """

    def __init__(self, env: Environment):
        self.env = env

    def resolve(self, document: ParsedTemplate, options: Options) -> Tuple[List[TemplateNode], List[ParsedTemplate]]:
        """
        Возвращает итоговое дерево для рендеринга и цепочку предков.

        Args:
            document: Разобранный документ
            options: Опции компиляции документа

        Returns:
            (узлы верхнего уровня, предки от ближнего к дальнему)

        Raises:
            TemplateSyntaxError: Если у документа с ``extends`` нет имени файла
            ExtendsCycleError: При циклической цепочке
        """
        parents = self.get_parents(document, options)
        if not parents:
            return document.tokens, parents

        tokens = parents[-1].tokens
        for nearer in reversed(parents[:-1]):
            tokens = self.import_non_blocks(nearer.blocks, self.remap_blocks(nearer.blocks, tokens))
        tokens = self.import_non_blocks(document.blocks, self.remap_blocks(document.blocks, tokens))
        return tokens, parents

    def get_parents(self, document: ParsedTemplate, options: Options) -> List[ParsedTemplate]:
        parents: List[ParsedTemplate] = []
        parent_name = document.parent
        if not parent_name:
            return parents

        if not options.filename:
            raise TemplateSyntaxError(
                f'Cannot extend "{parent_name}" because current template has no filename'
            )

        loader = self.env.get_loader(options)
        visited: List[str] = [options.filename]
        parent_file = options.filename
        while parent_name:
            parent_file = loader.resolve(parent_name, parent_file)
            if parent_file in visited:
                raise ExtendsCycleError(path=parent_file, chain=visited + [parent_file])
            visited.append(parent_file)

            logger.debug(f"Resolved parent template {parent_file}")
            cached = self.env.cache_get(parent_file, options)
            if cached is not None:
                parent = cached.document
            else:
                parent = self.env.load_document(parent_file, options.merged(resolve_from=None))
            parents.append(parent)
            parent_name = parent.parent

        return parents

    def remap_blocks(self, blocks: Dict[str, TagNode], tokens: List[TemplateNode]) -> List[TemplateNode]:
        """Заменяет узлы ``block`` одноимёнными блоками из ``blocks`` (рекурсивно)."""
        result: List[TemplateNode] = []
        for token in tokens:
            if isinstance(token, TagNode):
                if token.name == "block":
                    token = blocks.get(token.block_name, token)
                if token.content:
                    token = replace(token, content=self.remap_blocks(blocks, token.content))
            result.append(token)
        return result

    def import_non_blocks(self, blocks: Dict[str, TagNode], tokens: List[TemplateNode]) -> List[TemplateNode]:
        """Добавляет в начало блочные теги документа, кроме самих block (set, macro, import)."""
        extra: List[TemplateNode] = [block for block in blocks.values() if block.name != "block"]
        return extra + tokens


__all__ = ["InheritanceResolver"]
