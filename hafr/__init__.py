"""
hafr: expression templates.

    >>> template = parse_template("{firstName | take(1) | upper}{lastName | lower}")
    >>> list(evaluate_properties(template, {"firstName": "tore", "lastName": "Kristiansen"}))
    ['Tkristiansen']
"""

from __future__ import annotations

from typing import Any, List, Optional

from .errors import (
    FunctionArgumentError,
    FunctionInvocationError,
    HafrUserError,
    LexerError,
    ParserError,
    TemplateError,
    TemplateEvaluationError,
    TemplateSyntaxError,
    UnknownFunctionError,
    UnknownPropertyError,
    UnsupportedPipeTargetError,
)
from .evaluator import TemplateEvaluator, evaluate_model, evaluate_properties
from .functions import (
    FunctionRegistry,
    TemplateFunction,
    builtin_functions,
    default_registry,
    register_function,
)
from .nodes import MultiTemplateNode
from .parser import ParseResult, parse_template, try_parse
from .position import Position
from .sources import MappingSource, ModelSource, NamedValueSource, as_source
from .types import RenderOptions


def render(text: str, values: Any, functions: Optional[FunctionRegistry] = None) -> List[str]:
    """
    Parses and evaluates a template in one go.

    Args:
        text: Template text
        values: Mapping of named values or a model object
        functions: Function table (process-wide default when omitted)

    Returns:
        Output lines

    Raises:
        TemplateSyntaxError: If the template does not parse
        TemplateEvaluationError: If a line fails to evaluate
    """
    template = parse_template(text)
    return list(TemplateEvaluator(functions).evaluate_source(template, as_source(values)))


__all__ = [
    # parsing
    "parse_template",
    "try_parse",
    "ParseResult",
    "MultiTemplateNode",
    "Position",
    # evaluation
    "TemplateEvaluator",
    "evaluate_model",
    "evaluate_properties",
    "render",
    "RenderOptions",
    # sources
    "NamedValueSource",
    "MappingSource",
    "ModelSource",
    "as_source",
    # functions
    "TemplateFunction",
    "FunctionRegistry",
    "builtin_functions",
    "default_registry",
    "register_function",
    # errors
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
]
