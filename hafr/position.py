"""
Source positions.

Every token and syntax node carries the location of its first character
so that errors can point back into the template text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Position:
    """
    Location in template text.

    Attributes:
        offset: Absolute offset (0-based)
        line: Line number (1-based)
        column: Column number (1-based)
    """
    offset: int
    line: int
    column: int

    EMPTY: ClassVar["Position"]

    @property
    def has_value(self) -> bool:
        return self.line > 0

    def advance(self, char: str) -> Position:
        """Position of the character following ``char``."""
        if char == "\n":
            return Position(self.offset + 1, self.line + 1, 1)
        return Position(self.offset + 1, self.line, self.column + 1)

    def __str__(self) -> str:
        if not self.has_value:
            return "(empty)"
        return f"{self.line}:{self.column}"


Position.EMPTY = Position(0, 0, 0)
START = Position(0, 1, 1)

__all__ = ["Position", "START"]
