"""
Error hierarchy.

All expected template problems inherit from HafrUserError and carry the
position of the offending input so that front-ends can point at it.

Programming errors and bugs should NOT inherit from HafrUserError;
they propagate with full tracebacks.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from .position import Position


class HafrUserError(Exception):
    """Base class for all user-facing errors."""
    pass


class TemplateError(HafrUserError):
    """
    Template problem tied to a location in the source text.

    Attributes:
        message: Human readable description
        position: Where the problem was detected (may be Position.EMPTY)
    """

    kind = "template"

    def __init__(self, message: str, position: Position = Position.EMPTY):
        super().__init__(message)
        self.message = message
        self.position = position

    def describe(self) -> str:
        if self.position.has_value:
            return f"{self.message} (at line {self.position.line}, column {self.position.column})"
        return self.message


# ---- Parse time ----

class TemplateSyntaxError(TemplateError):
    """Template text could not be compiled."""
    kind = "syntax"


class LexerError(TemplateSyntaxError):
    """Lexical analysis failed."""
    kind = "lexical"


class ParserError(TemplateSyntaxError):
    """Token sequence does not match the grammar."""
    kind = "syntax"


# ---- Evaluation time ----

class TemplateEvaluationError(TemplateError):
    """Compiled template could not be evaluated."""
    kind = "evaluation"


class UnknownPropertyError(TemplateEvaluationError):
    kind = "unknown-property"

    def __init__(self, name: str, available: Sequence[str], position: Position):
        super().__init__(
            f"Unknown property '{name}'. Available properties: {', '.join(available)}",
            position,
        )
        self.name = name
        self.available: List[str] = list(available)


class UnknownFunctionError(TemplateEvaluationError):
    kind = "unknown-function"

    def __init__(self, name: str, available: Sequence[str], position: Position):
        super().__init__(
            f"Unknown function '{name}'. Available functions: {', '.join(available)}",
            position,
        )
        self.name = name
        self.available: List[str] = list(available)


class FunctionInvocationError(TemplateEvaluationError):
    """A registered function rejected its arguments or failed internally."""
    kind = "invocation"

    def __init__(self, function: str, cause: BaseException, position: Position):
        super().__init__(
            f"An error occurred while calling function '{function}': {cause}",
            position,
        )
        self.function = function
        self.cause = cause


class UnsupportedPipeTargetError(TemplateEvaluationError):
    kind = "unsupported-pipe"

    def __init__(self, target: str, position: Position):
        super().__init__(
            f"Cannot pipe into '{target}': expected a function call or function name",
            position,
        )
        self.target = target


class FunctionArgumentError(ValueError):
    """Arguments do not fit a function's signature (count or operand shape)."""
    pass


def caret_line(text: str, position: Position) -> Optional[str]:
    """
    Renders the source line containing ``position`` with a caret under it.

    Returns None when the position carries no location or lies outside the text.
    """
    if not position.has_value:
        return None
    lines = re.split(r"\r?\n", text)
    if position.line > len(lines):
        return None
    source = lines[position.line - 1]
    return f"{source}\n{' ' * (position.column - 1)}^"


__all__ = [
    "HafrUserError",
    "TemplateError",
    "TemplateSyntaxError",
    "LexerError",
    "ParserError",
    "TemplateEvaluationError",
    "UnknownPropertyError",
    "UnknownFunctionError",
    "FunctionInvocationError",
    "UnsupportedPipeTargetError",
    "FunctionArgumentError",
    "caret_line",
]
