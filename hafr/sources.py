"""
Named-value sources.

The evaluator resolves property names through a NamedValueSource. Two
implementations exist: an explicit mapping and a model object whose
public members are reflected once per type.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Set, Tuple

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class _NotFound:
    """Marker for a missing name (None is a legitimate value)."""

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND: Any = _NotFound()


class NamedValueSource(ABC):
    """Read-only, case-insensitive name -> value lookup."""

    @abstractmethod
    def lookup(self, name: str) -> Any:
        """Returns the value for ``name`` or NOT_FOUND."""
        pass

    @abstractmethod
    def names(self) -> List[str]:
        """Known names in their original spelling."""
        pass


class _CaseInsensitiveSource(NamedValueSource):

    def __init__(self, values: Dict[str, Tuple[str, Any]]):
        # casefolded name -> (original name, value)
        self._values = values

    def lookup(self, name: str) -> Any:
        entry = self._values.get(name.casefold())
        if entry is None:
            return NOT_FOUND
        return entry[1]

    def names(self) -> List[str]:
        return [original for original, _ in self._values.values()]


class MappingSource(_CaseInsensitiveSource):
    """
    Explicit name -> value mapping.

    None values are kept as-is. Keys that differ only by letter case are
    rejected since they could not be told apart.
    """

    def __init__(self, values: Mapping[str, Any]):
        folded: Dict[str, Tuple[str, Any]] = {}
        for name, value in values.items():
            key = str(name).casefold()
            if key in folded:
                raise ValueError(
                    f"Duplicate property name '{name}' (conflicts with '{folded[key][0]}'; names are case-insensitive)"
                )
            folded[key] = (str(name), value)
        super().__init__(folded)


# ---- Model reflection ----

_MEMBER_CACHE: Dict[type, Tuple[str, ...]] = {}
_MEMBER_CACHE_LOCK = threading.Lock()


def _is_public(name: str) -> bool:
    return not name.startswith("_")


def _class_var_names(model_type: type) -> Set[str]:
    names: Set[str] = set()
    for klass in model_type.__mro__:
        for name, annotation in inspect.get_annotations(klass).items():
            if "ClassVar" in str(annotation):
                names.add(name)
    return names


def _is_data_attribute(member: Any) -> bool:
    # methods, properties, static/class methods and nested classes are not data
    return not callable(member) and not hasattr(type(member), "__get__")


def _reflect_members(model_type: type) -> Tuple[str, ...]:
    """
    Collects public readable member names declared by a type.

    Order: declared fields first (pydantic, dataclass, namedtuple,
    class annotations), then __slots__, plain class attributes and
    properties, following the MRO from the base class down.
    ClassVar-annotated attributes are not members.
    """
    names: List[str] = []

    def add(name: str) -> None:
        if _is_public(name) and name not in names:
            names.append(name)

    is_pydantic = isinstance(model_type, type) and issubclass(model_type, BaseModel)
    class_vars = _class_var_names(model_type)

    if is_pydantic:
        for name in model_type.model_fields:
            add(name)
        for name in model_type.model_computed_fields:
            add(name)
    elif dataclasses.is_dataclass(model_type):
        for field in dataclasses.fields(model_type):
            add(field.name)
    elif issubclass(model_type, tuple) and hasattr(model_type, "_fields"):
        for name in model_type._fields:
            add(name)
    else:
        for klass in reversed(model_type.__mro__):
            for name in inspect.get_annotations(klass):
                if name not in class_vars:
                    add(name)

    for klass in reversed(model_type.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            add(name)

    if not is_pydantic:
        for klass in reversed(model_type.__mro__):
            if klass is object:
                continue
            for name, member in klass.__dict__.items():
                if name not in class_vars and _is_data_attribute(member):
                    add(name)

    for klass in reversed(model_type.__mro__):
        # BaseModel's own properties (model_extra, ...) are not data members
        if klass in BaseModel.__mro__:
            continue
        for name, member in klass.__dict__.items():
            if isinstance(member, property) and member.fget is not None:
                add(name)

    return tuple(names)


def model_members(model_type: type) -> Tuple[str, ...]:
    """
    Member names of ``model_type``, reflected on first use and cached.

    Safe under concurrent first use: all threads end up with the single
    cached entry.
    """
    members = _MEMBER_CACHE.get(model_type)
    if members is not None:
        return members

    with _MEMBER_CACHE_LOCK:
        members = _MEMBER_CACHE.get(model_type)
        if members is None:
            members = _reflect_members(model_type)
            _MEMBER_CACHE[model_type] = members
            logger.debug("Reflected %d member(s) of %s", len(members), model_type.__qualname__)
    return members


class ModelSource(_CaseInsensitiveSource):
    """
    Public members of a model object.

    Missing and None members are normalized to an empty string. Public
    instance attributes not declared on the type are included as well,
    as are the extra fields of a pydantic model that allows them.
    """

    def __init__(self, model: Any):
        if model is None:
            raise TypeError("model must not be None")

        names = list(model_members(type(model)))
        if isinstance(model, BaseModel):
            instance_names = model.model_extra or {}
        else:
            instance_names = getattr(model, "__dict__", {})
        for name in instance_names:
            if _is_public(name) and name not in names:
                names.append(name)

        values: Dict[str, Tuple[str, Any]] = {}
        for name in names:
            key = name.casefold()
            if key in values:
                continue
            value = getattr(model, name, None)
            values[key] = (name, "" if value is None else value)

        super().__init__(values)
        self.model = model


def as_source(values: Any) -> NamedValueSource:
    """
    Adapts supported inputs to a NamedValueSource.

    - a NamedValueSource is returned unchanged
    - a Mapping becomes a MappingSource
    - any other object becomes a ModelSource
    """
    if values is None:
        raise TypeError("values must not be None")
    if isinstance(values, NamedValueSource):
        return values
    if isinstance(values, Mapping):
        return MappingSource(values)
    return ModelSource(values)


__all__ = [
    "NamedValueSource",
    "MappingSource",
    "ModelSource",
    "NOT_FOUND",
    "as_source",
    "model_members",
]
