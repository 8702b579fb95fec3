"""
Компилятор дерева шаблона в инструкции рендеринга.

Каждый узел превращается в замыкание ``Instruction(frame)``, которое
пишет свой вывод в кадр. Текст исполняемого кода не генерируется.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

from ..errors import ExpressionSyntaxError, TemplateSyntaxError
from ..runtime import Frame, to_string
from .evaluator import evaluate
from .nodes import Expr, OutputNode, ParsedTemplate, TagNode, TemplateNode, TextNode
from .types import Instruction

if TYPE_CHECKING:
    from ..config import Options


def _text(text: str) -> Instruction:
    def render(frame: Frame) -> None:
        frame.write(text)
    return render


def _output(expr: Expr) -> Instruction:
    def render(frame: Frame) -> None:
        frame.write(to_string(evaluate(expr, frame)))
    return render


def sequence(instructions: Sequence[Instruction]) -> Instruction:
    """Объединяет инструкции в одну, выполняющую их по порядку."""
    items = tuple(instructions)
    if len(items) == 1:
        return items[0]

    def render(frame: Frame) -> None:
        for instruction in items:
            instruction(frame)
    return render


class TemplateCompiler:
    """Понижает узлы шаблона до инструкций."""

    def compile(
        self,
        nodes: List[TemplateNode],
        parents: List[ParsedTemplate],
        options: Options,
        block_name: Optional[str] = None,
    ) -> Instruction:
        instructions: List[Instruction] = []
        for node in nodes:
            instruction = self.compile_node(node, parents, options, block_name)
            if instruction is not None:
                instructions.append(instruction)
        return sequence(instructions)

    def compile_node(self, node: TemplateNode, parents: List[ParsedTemplate],
                     options: Options, block_name: Optional[str]) -> Optional[Instruction]:
        if isinstance(node, TextNode):
            return _text(node.text) if node.text else None

        if isinstance(node, OutputNode):
            return _output(node.expr)

        if isinstance(node, TagNode):
            try:
                return node.tag.compile(self.compile, node.args, node.content, parents, options, block_name)
            except ExpressionSyntaxError as e:
                raise e.with_source(node.source).with_location(node.line, node.filename) from e
            except TemplateSyntaxError as e:
                raise e.with_location(node.line, node.filename) from e

        raise TypeError(f"Unknown template node: {type(node).__name__}")


__all__ = ["TemplateCompiler", "sequence"]
