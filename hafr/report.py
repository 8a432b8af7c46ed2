"""
Structured render reports.

Renders a template and describes the outcome as a serializable model:
either the output lines or the error with its kind and position.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from .errors import TemplateError, TemplateSyntaxError
from .evaluator import TemplateEvaluator
from .parser import parse_template
from .position import Position


class PositionInfo(BaseModel):
    offset: int
    line: int
    column: int

    @classmethod
    def from_position(cls, position: Position) -> Optional[PositionInfo]:
        if not position.has_value:
            return None
        return cls(offset=position.offset, line=position.line, column=position.column)


class ErrorInfo(BaseModel):
    stage: str                 # "parse" | "evaluate"
    kind: str
    message: str
    position: Optional[PositionInfo] = None


class RenderReport(BaseModel):
    ok: bool
    lines: List[str] = []
    error: Optional[ErrorInfo] = None


def build_report(text: str, values: Any, evaluator: Optional[TemplateEvaluator] = None) -> RenderReport:
    """
    Parses and evaluates ``text`` against ``values`` (a mapping or a model object).

    Template errors are captured in the report; any other exception propagates.
    """
    evaluator = evaluator or TemplateEvaluator()
    try:
        template = parse_template(text)
        if isinstance(values, Mapping):
            lines = list(evaluator.evaluate_properties(template, values))
        else:
            lines = list(evaluator.evaluate_model(template, values))
    except TemplateError as e:
        stage = "parse" if isinstance(e, TemplateSyntaxError) else "evaluate"
        return RenderReport(
            ok=False,
            error=ErrorInfo(
                stage=stage,
                kind=e.kind,
                message=e.message,
                position=PositionInfo.from_position(e.position),
            ),
        )
    return RenderReport(ok=True, lines=lines)


__all__ = ["PositionInfo", "ErrorInfo", "RenderReport", "build_report"]
