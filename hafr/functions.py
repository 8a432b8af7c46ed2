"""
Function library for template pipelines.

Every function accepts a string or a sequence of strings as its first
operand and dispatches on the actual shape at call time. Names are
resolved case-insensitively.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import FunctionArgumentError

logger = logging.getLogger(__name__)

PARAMETER_COUNT_MISMATCH = "Parameter count mismatch."
NOT_SUPPORTED = "Method not supported for these argument types."


def is_sequence(value: Any) -> bool:
    """True for a list or tuple made of strings only."""
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


def _fits(value: Any, kind: type) -> bool:
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


def elementwise(transform: Callable[..., str]) -> Callable[..., List[str]]:
    """Lifts a string transform to a sequence transform applied to every element."""
    def apply(values: Sequence[str], *args: Any) -> List[str]:
        return [transform(value, *args) for value in values]
    return apply


@dataclass(frozen=True)
class TemplateFunction:
    """
    Function callable from a template.

    Attributes:
        name: Display name
        parameters: Kinds of the arguments after the operand (str or int)
        on_string: Implementation for a single string operand
        on_sequence: Implementation for a sequence operand
    """
    name: str
    parameters: Tuple[type, ...]
    on_string: Callable[..., Any]
    on_sequence: Callable[..., Any]

    def invoke(self, arguments: Sequence[Any]) -> Any:
        """
        Calls the function with the operand as first argument.

        Raises:
            FunctionArgumentError: On wrong argument count or unsupported
                operand/argument types
        """
        if len(arguments) != len(self.parameters) + 1:
            raise FunctionArgumentError(PARAMETER_COUNT_MISMATCH)

        operand, *rest = arguments
        for value, kind in zip(rest, self.parameters):
            if not _fits(value, kind):
                raise FunctionArgumentError(NOT_SUPPORTED)

        if isinstance(operand, str):
            return self.on_string(operand, *rest)
        if is_sequence(operand):
            return self.on_sequence(list(operand), *rest)

        raise FunctionArgumentError(NOT_SUPPORTED)


class FunctionRegistry:
    """
    Case-insensitive, insertion-ordered function table.

    Lookups are lock-free; registration is serialized so that it may run
    alongside evaluation, though it is intended to happen at startup.
    """

    def __init__(self):
        self._functions: Dict[str, TemplateFunction] = {}
        self._lock = threading.Lock()

    def add(self, function: TemplateFunction) -> TemplateFunction:
        """
        Adds a function, replacing any function registered under the same name.

        Returns:
            The added function
        """
        with self._lock:
            functions = dict(self._functions)
            functions[function.name.casefold()] = function
            self._functions = functions
        logger.debug("Registered template function '%s'", function.name)
        return function

    def register(
        self,
        name: str,
        on_string: Callable[..., Any],
        on_sequence: Optional[Callable[..., Any]] = None,
        parameters: Tuple[type, ...] = (),
    ) -> TemplateFunction:
        """
        Registers a function by its parts.

        Args:
            name: Function name (matched case-insensitively)
            on_string: Implementation for a string operand
            on_sequence: Implementation for a sequence operand;
                defaults to applying on_string to every element
            parameters: Kinds of the extra arguments, e.g. (str,) or (int,)
        """
        if not name:
            raise ValueError("Function name must not be empty")
        return self.add(TemplateFunction(
            name=name,
            parameters=tuple(parameters),
            on_string=on_string,
            on_sequence=on_sequence or elementwise(on_string),
        ))

    def get(self, name: str) -> Optional[TemplateFunction]:
        return self._functions.get(name.casefold())

    def names(self) -> List[str]:
        return [function.name for function in self._functions.values()]

    def copy(self) -> FunctionRegistry:
        clone = FunctionRegistry()
        clone._functions = dict(self._functions)
        return clone

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._functions

    def __len__(self) -> int:
        return len(self._functions)


# ---- Builtin implementations ----

def _check_count(count: int) -> int:
    if count < 0:
        raise ValueError(f"Count must be non-negative, got {count}")
    return count


def _split(value: str, separator: str) -> List[str]:
    parts = value.split(separator) if separator else [value]
    return [part.strip() for part in parts if part.strip()]


def _split_all(values: Sequence[str], separator: str) -> List[str]:
    return [part for value in values for part in _split(value, separator)]


def _replace(value: str, old: str, new: str) -> str:
    if not old:
        raise ValueError("Value to replace must not be empty")
    return value.replace(old, new)


def _head(value, count: int):
    return value[:_check_count(count)]


def _tail(value, count: int):
    return value[_check_count(count):]


def builtin_functions() -> FunctionRegistry:
    """Creates a new registry holding the standard function set."""
    registry = FunctionRegistry()

    registry.register("split", _split, _split_all, parameters=(str,))
    registry.register("join", lambda value, _: value, lambda values, sep: sep.join(values), parameters=(str,))
    registry.register("skip", _tail, _tail, parameters=(int,))
    registry.register("take", _head, _head, parameters=(int,))
    registry.register("substr", _head, parameters=(int,))
    registry.register("replace", _replace, parameters=(str, str))
    registry.register("reverse", lambda value: value[::-1], lambda values: values[::-1])
    registry.register("upper", str.upper)
    registry.register("lower", str.lower)
    registry.register("trim", str.strip)
    registry.register("truncate", _head, parameters=(int,))

    return registry


_DEFAULT_REGISTRY = builtin_functions()


def default_registry() -> FunctionRegistry:
    """Process-wide registry used when an evaluator is created without one."""
    return _DEFAULT_REGISTRY


def register_function(
    name: str,
    on_string: Callable[..., Any],
    on_sequence: Optional[Callable[..., Any]] = None,
    parameters: Tuple[type, ...] = (),
) -> TemplateFunction:
    """Registers a function on the process-wide registry."""
    return _DEFAULT_REGISTRY.register(name, on_string, on_sequence, parameters)


__all__ = [
    "TemplateFunction",
    "FunctionRegistry",
    "builtin_functions",
    "default_registry",
    "register_function",
    "elementwise",
    "is_sequence",
    "PARAMETER_COUNT_MISMATCH",
    "NOT_SUPPORTED",
]
