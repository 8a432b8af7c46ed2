"""
Expression tree nodes.

Immutable node classes produced by the parser and consumed by the
evaluator. str() of any node renders it back as template source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple, Union

from .position import Position


@dataclass(frozen=True)
class Expression:
    """Base class for all expression nodes."""
    pass


@dataclass(frozen=True)
class TextNode(Expression):
    """
    Literal text outside a hole.

    Rendered verbatim into the output line.
    """
    value: str
    position: Position = Position.EMPTY

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ConstantNode(Expression):
    """
    Literal or already computed value.

    Number and string literals become constants; the evaluator also wraps
    piped values in constants.
    """
    value: Any
    position: Position = Position.EMPTY

    def __str__(self) -> str:
        if isinstance(self.value, str):
            escaped = self.value.replace("'", "''")
            return f"'{escaped}'"
        return str(self.value)


@dataclass(frozen=True)
class PropertyNode(Expression):
    """Named value lookup: {name}"""
    name: str
    position: Position = Position.EMPTY

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FunctionCallNode(Expression):
    """Function call: name(arg, ...)"""
    name: str
    arguments: Tuple[Expression, ...] = ()
    position: Position = Position.EMPTY

    def with_piped_argument(self, argument: Expression) -> FunctionCallNode:
        """Returns a copy of the call with ``argument`` prepended."""
        return FunctionCallNode(self.name, (argument,) + self.arguments, self.position)

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(a) for a in self.arguments)})"


@dataclass(frozen=True)
class PipeNode(Expression):
    """
    Pipe: left | right

    The value of ``left`` becomes the first argument of ``right``.
    Chains are left-associative: a | b | c == (a | b) | c
    """
    left: Expression
    right: Expression
    position: Position = Position.EMPTY

    def __str__(self) -> str:
        return f"{self.left} | {self.right}"


@dataclass(frozen=True)
class TemplateNode(Expression):
    """One template line: text and holes, concatenated on output."""
    parts: Tuple[Expression, ...]
    position: Position = Position.EMPTY

    def __str__(self) -> str:
        return "".join(
            str(part) if isinstance(part, TextNode) else f"{{{part}}}"
            for part in self.parts
        )


@dataclass(frozen=True)
class MultiTemplateNode(Expression):
    """Whole parsed input: one TemplateNode per line."""
    parts: Tuple[TemplateNode, ...]

    def __str__(self) -> str:
        return "\n".join(str(part) for part in self.parts)


# Node kinds allowed as hole content
HoleExpression = Union[ConstantNode, PropertyNode, FunctionCallNode, PipeNode]


__all__ = [
    "Expression",
    "TextNode",
    "ConstantNode",
    "PropertyNode",
    "FunctionCallNode",
    "PipeNode",
    "TemplateNode",
    "MultiTemplateNode",
    "HoleExpression",
]
