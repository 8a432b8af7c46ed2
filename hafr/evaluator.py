"""
Template evaluator.

Walks the expression tree against a named-value source, resolving
properties and invoking functions, and renders one output string per
template line.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping, Optional

from .errors import (
    FunctionInvocationError,
    TemplateEvaluationError,
    UnknownFunctionError,
    UnknownPropertyError,
    UnsupportedPipeTargetError,
)
from .functions import FunctionRegistry, default_registry
from .nodes import (
    ConstantNode,
    Expression,
    FunctionCallNode,
    MultiTemplateNode,
    PipeNode,
    PropertyNode,
    TemplateNode,
    TextNode,
)
from .sources import NOT_FOUND, MappingSource, ModelSource, NamedValueSource
from .types import RenderOptions

logger = logging.getLogger(__name__)


class TemplateEvaluator:
    """
    Evaluator of parsed templates.

    Holds no per-call state, so one instance (and one parsed template)
    can serve many evaluations, including concurrent ones.
    """

    def __init__(self, functions: Optional[FunctionRegistry] = None, options: Optional[RenderOptions] = None):
        """
        Args:
            functions: Function table; the process-wide default when omitted
            options: Output rendering options
        """
        self.functions = functions if functions is not None else default_registry()
        self.options = options or RenderOptions()

    # ---- Entry points ----

    def evaluate_model(self, template: MultiTemplateNode, model: Any) -> Iterator[str]:
        """
        Evaluates against the public members of ``model``.

        Returns:
            Lazy iterator with one output string per template line

        Raises:
            TypeError: If model is None
        """
        return self.evaluate_source(template, ModelSource(model))

    def evaluate_properties(self, template: MultiTemplateNode, values: Mapping[str, Any]) -> Iterator[str]:
        """
        Evaluates against an explicit name -> value mapping.

        Returns:
            Lazy iterator with one output string per template line

        Raises:
            TypeError: If values is None
            ValueError: If two names differ only by letter case
        """
        if values is None:
            raise TypeError("values must not be None")
        return self.evaluate_source(template, MappingSource(values))

    def evaluate_source(self, template: MultiTemplateNode, source: NamedValueSource) -> Iterator[str]:
        if template is None:
            raise TypeError("template must not be None")
        return self._iterate_lines(template, source)

    def _iterate_lines(self, template: MultiTemplateNode, source: NamedValueSource) -> Iterator[str]:
        for line in template.parts:
            yield self.evaluate_template(line, source)

    def evaluate_template(self, template: TemplateNode, source: NamedValueSource) -> str:
        """Evaluates one line and concatenates the rendered parts."""
        output = []
        for part in template.parts:
            if isinstance(part, TextNode):
                output.append(part.value)
            else:
                output.append(self.render_value(self.evaluate(part, source)))
        return "".join(output)

    # ---- Expression dispatch ----

    def evaluate(self, expression: Expression, source: NamedValueSource) -> Any:
        """
        Computes the value of a single expression.

        Raises:
            TemplateEvaluationError: On unknown names, failed calls and
                unsupported pipe targets
        """
        if isinstance(expression, TextNode):
            return expression.value
        elif isinstance(expression, ConstantNode):
            return expression.value
        elif isinstance(expression, PropertyNode):
            return self._evaluate_property(expression, source)
        elif isinstance(expression, FunctionCallNode):
            return self._evaluate_call(expression, source)
        elif isinstance(expression, PipeNode):
            return self._evaluate_pipe(expression, source)
        elif isinstance(expression, TemplateNode):
            return self.evaluate_template(expression, source)
        elif isinstance(expression, MultiTemplateNode):
            raise TemplateEvaluationError("Multi-line templates can only be evaluated at the top level")
        else:
            raise TypeError(f"Unknown expression type: {type(expression).__name__}")

    def _evaluate_property(self, prop: PropertyNode, source: NamedValueSource) -> Any:
        value = source.lookup(prop.name)
        if value is NOT_FOUND:
            raise UnknownPropertyError(prop.name, source.names(), prop.position)
        return value

    def _evaluate_call(self, call: FunctionCallNode, source: NamedValueSource) -> Any:
        arguments = [self.evaluate(argument, source) for argument in call.arguments]

        function = self.functions.get(call.name)
        if function is None:
            raise UnknownFunctionError(call.name, self.functions.names(), call.position)

        try:
            return function.invoke(arguments)
        except Exception as e:
            logger.debug("Function '%s' failed: %r", call.name, e)
            raise FunctionInvocationError(call.name, e, call.position) from e

    def _evaluate_pipe(self, pipe: PipeNode, source: NamedValueSource) -> Any:
        value = self.evaluate(pipe.left, source)

        target = pipe.right
        if isinstance(target, PropertyNode):
            # A bare name on the right is a call without explicit arguments
            target = FunctionCallNode(target.name, (), target.position)
        elif not isinstance(target, FunctionCallNode):
            raise UnsupportedPipeTargetError(str(target), pipe.position)

        piped = ConstantNode(value, pipe.left.position)
        return self._evaluate_call(target.with_piped_argument(piped), source)

    # ---- Output ----

    def render_value(self, value: Any) -> str:
        """
        Renders a hole value for output.

        None and empty values become placeholders; sequences are joined.
        """
        if value is None:
            return self.options.null_text
        if isinstance(value, str):
            return value or self.options.empty_text
        if isinstance(value, (list, tuple)):
            if not value:
                return self.options.empty_text
            return self.options.sequence_separator.join(str(item) for item in value)
        return str(value)


def evaluate_model(template: MultiTemplateNode, model: Any, functions: Optional[FunctionRegistry] = None) -> Iterator[str]:
    """Evaluates ``template`` against the members of ``model``."""
    return TemplateEvaluator(functions).evaluate_model(template, model)


def evaluate_properties(
    template: MultiTemplateNode,
    values: Mapping[str, Any],
    functions: Optional[FunctionRegistry] = None,
) -> Iterator[str]:
    """Evaluates ``template`` against an explicit mapping."""
    return TemplateEvaluator(functions).evaluate_properties(template, values)


__all__ = ["TemplateEvaluator", "evaluate_model", "evaluate_properties"]
