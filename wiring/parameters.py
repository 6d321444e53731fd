"""
wiring - Parameter Classification

Turns raw recipe arguments into typed, resolvable parameters and merges them
with the parameters a signature declares.

A raw argument is either a tagged value (``Reference``, ``OptionalReference``,
``LoadedReference``, ``LiteralValue``) or anything else. Strings keep the
marker syntax used by array configuration:

    "@mailer"   required reference to the service "mailer"
    "@?mailer"  optional reference, None when "mailer" is unknown
    "@!mailer"  the cached "mailer" if it is already built

Usage:
    params = classify_all(["@logger", 3])
    bound = merge_arguments(introspector.describe(func), params)
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from core.errors import InvalidArgumentError

REFERENCE_PREFIX = "@"
OPTIONAL_REFERENCE_PREFIX = "@?"
LOADED_REFERENCE_PREFIX = "@!"

ArgumentKey = Union[int, str]


class ParameterKind(Enum):
    """How a parameter obtains its value."""

    LITERAL = "literal"
    REQUIRED_OBJECT = "required-object-type"
    OPTIONAL_OBJECT = "optional-object-type"
    REQUIRED_REFERENCE = "required-reference"
    OPTIONAL_REFERENCE = "optional-reference"
    LOADED_REFERENCE = "loaded-only-reference"


@dataclass(frozen=True)
class Reference:
    """Required reference to a service identifier."""

    service_id: str

    def __str__(self) -> str:
        return REFERENCE_PREFIX + self.service_id


@dataclass(frozen=True)
class OptionalReference:
    """Reference that resolves to None when the identifier is unknown."""

    service_id: str

    def __str__(self) -> str:
        return OPTIONAL_REFERENCE_PREFIX + self.service_id


@dataclass(frozen=True)
class LoadedReference:
    """Reference satisfied only by an already built service."""

    service_id: str

    def __str__(self) -> str:
        return LOADED_REFERENCE_PREFIX + self.service_id


@dataclass(frozen=True)
class LiteralValue:
    """Passes ``value`` through untouched, even a string starting with '@'."""

    value: Any


@dataclass(frozen=True)
class ParameterDescriptor:
    """One introspected parameter of a constructor or method."""

    name: str
    kind: ParameterKind
    # Reference name of the declared class for object kinds, else the default
    value: Any = None
    has_default: bool = False
    default: Any = None
    keyword_only: bool = False

    def to_parameter(self) -> "ResolvedParameter":
        if self.kind is ParameterKind.OPTIONAL_OBJECT:
            return ResolvedParameter(self.kind, self.value, fallback=self.default)
        return ResolvedParameter(self.kind, self.value)


@dataclass(frozen=True)
class ResolvedParameter:
    """A parameter whose kind is known but whose value is not resolved yet."""

    kind: ParameterKind
    value: Any
    fallback: Any = None

    @property
    def is_reference(self) -> bool:
        return self.kind in (
            ParameterKind.REQUIRED_REFERENCE,
            ParameterKind.OPTIONAL_REFERENCE,
            ParameterKind.LOADED_REFERENCE,
        )


@dataclass(frozen=True)
class BoundArgument:
    """A resolvable parameter and how it is passed: by position or keyword."""

    parameter: ResolvedParameter
    keyword: Optional[str] = None


def classify(raw: Any) -> ResolvedParameter:
    """Classify a single raw argument."""
    if isinstance(raw, LiteralValue):
        return ResolvedParameter(ParameterKind.LITERAL, raw.value)
    if isinstance(raw, Reference):
        return ResolvedParameter(ParameterKind.REQUIRED_REFERENCE, raw.service_id)
    if isinstance(raw, OptionalReference):
        return ResolvedParameter(ParameterKind.OPTIONAL_REFERENCE, raw.service_id)
    if isinstance(raw, LoadedReference):
        return ResolvedParameter(ParameterKind.LOADED_REFERENCE, raw.service_id)

    if isinstance(raw, str) and raw.startswith(REFERENCE_PREFIX):
        if raw.startswith(LOADED_REFERENCE_PREFIX):
            return ResolvedParameter(ParameterKind.LOADED_REFERENCE, raw[2:])
        if raw.startswith(OPTIONAL_REFERENCE_PREFIX):
            return ResolvedParameter(ParameterKind.OPTIONAL_REFERENCE, raw[2:])
        return ResolvedParameter(ParameterKind.REQUIRED_REFERENCE, raw[1:])

    return ResolvedParameter(ParameterKind.LITERAL, raw)


def classify_all(
    raw_arguments: Union[Sequence[Any], Mapping, None],
) -> Dict[ArgumentKey, ResolvedParameter]:
    """
    Classify every raw argument, keeping its key.

    Sequences are keyed by position; mappings keep their own keys, which may
    be positions (ints) or parameter names (strings).
    """
    if raw_arguments is None:
        return {}
    if isinstance(raw_arguments, Mapping):
        return {key: classify(value) for key, value in raw_arguments.items()}
    if isinstance(raw_arguments, (list, tuple)):
        return {index: classify(value) for index, value in enumerate(raw_arguments)}
    raise InvalidArgumentError(
        f"Arguments must be a list, tuple or mapping, got {type(raw_arguments).__name__}"
    )


def merge_arguments(
    descriptors: Optional[List[ParameterDescriptor]],
    explicit: Dict[ArgumentKey, ResolvedParameter],
) -> List[BoundArgument]:
    """
    Merge introspected descriptors with explicitly supplied parameters.

    An explicit parameter given at a descriptor's position, or under its
    name, replaces the descriptor entirely. Without descriptors the explicit
    parameters are passed as given: positional keys by position, string keys
    by keyword.
    """
    bound: List[BoundArgument] = []

    if descriptors:
        for position, descriptor in enumerate(descriptors):
            if position in explicit:
                parameter = explicit[position]
            elif descriptor.name in explicit:
                parameter = explicit[descriptor.name]
            else:
                parameter = descriptor.to_parameter()
            keyword = descriptor.name if descriptor.keyword_only else None
            bound.append(BoundArgument(parameter, keyword))
        return bound

    positional = sorted(
        ((key, parameter) for key, parameter in explicit.items() if not isinstance(key, str)),
        key=lambda item: item[0],
    )
    bound.extend(BoundArgument(parameter) for _, parameter in positional)
    bound.extend(
        BoundArgument(parameter, key)
        for key, parameter in explicit.items()
        if isinstance(key, str)
    )
    return bound
