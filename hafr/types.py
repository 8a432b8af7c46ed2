from __future__ import annotations

from dataclasses import dataclass


# -----------------------------
@dataclass(frozen=True)
class RenderOptions:
    # Placeholders for values that would otherwise render as nothing
    null_text: str = "<null>"
    empty_text: str = "<empty>"
    # Joins the elements of a sequence value
    sequence_separator: str = " "


__all__ = ["RenderOptions"]
