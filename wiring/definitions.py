"""
wiring - Service Definitions

Immutable build recipes and the registry that owns them.

A recipe is given either as a class (object or dotted path) or as a mapping:

    {
        "class": "app.mail.Mailer",
        "arguments": ["@transport", "noreply@example.org"],
        "properties": {"retries": 3},
        "calls": [
            "connect",
            {"set_logger": ["@logger"]},
            ("set_peer", ["@!peer"]),
        ],
    }
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Tuple, Union

from core.errors import ContainerError
from wiring.introspection import reference_name

RawArguments = Union[Tuple[Any, ...], Mapping]

DEFINITION_OPTIONS = ("arguments", "properties", "calls")


@dataclass(frozen=True)
class Call:
    """A method to invoke after construction, with its raw arguments."""

    method: str
    arguments: RawArguments = ()


@dataclass(frozen=True)
class Definition:
    """How to build one service."""

    service_id: str
    target: Union[type, str]
    arguments: RawArguments = ()
    properties: Tuple[Tuple[str, Any], ...] = ()
    calls: Tuple[Call, ...] = field(default_factory=tuple)

    @property
    def class_name(self) -> str:
        return reference_name(self.target)


def _freeze_arguments(service_id: str, option: str, raw: Any) -> RawArguments:
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        return MappingProxyType(dict(raw))
    if isinstance(raw, (list, tuple)):
        return tuple(raw)
    raise ContainerError(
        f"Definition option {option} of service {service_id} must be a list or a mapping",
        service_id=service_id,
    )


def _parse_call(service_id: str, entry: Any) -> Call:
    if isinstance(entry, Call):
        return entry
    if isinstance(entry, str):
        return Call(entry)
    if isinstance(entry, Mapping) and len(entry) == 1:
        method, arguments = next(iter(entry.items()))
        if isinstance(method, str):
            return Call(method, _freeze_arguments(service_id, "calls", arguments))
    if isinstance(entry, tuple) and len(entry) == 2 and isinstance(entry[0], str):
        return Call(entry[0], _freeze_arguments(service_id, "calls", entry[1]))
    raise ContainerError(
        f"Call {entry!r} of service {service_id} must be a method name, "
        "a single-entry mapping or a (method, arguments) pair",
        service_id=service_id,
    )


def _parse_calls(service_id: str, raw: Any) -> Tuple[Call, ...]:
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        return tuple(
            Call(method, _freeze_arguments(service_id, "calls", arguments))
            for method, arguments in raw.items()
        )
    if isinstance(raw, (list, tuple)):
        return tuple(_parse_call(service_id, entry) for entry in raw)
    raise ContainerError(
        f"Definition option calls of service {service_id} must be a list or a mapping",
        service_id=service_id,
    )


def parse_definition(service_id: str, raw: Any) -> Definition:
    """
    Validate a raw recipe and turn it into a ``Definition``.

    Raises:
        ContainerError: If the recipe has no class or a malformed option
    """
    if isinstance(raw, Definition):
        return raw
    if isinstance(raw, (str, type)):
        raw = {"class": raw}
    if not isinstance(raw, Mapping):
        raise ContainerError(
            "Definition must be a mapping or a class",
            service_id=service_id,
        )
    target = raw.get("class")
    if not target or not isinstance(target, (str, type)):
        raise ContainerError(
            f"Definition of service {service_id} must contain a class",
            service_id=service_id,
        )

    properties = raw.get("properties") or {}
    if not isinstance(properties, Mapping):
        raise ContainerError(
            f"Definition option properties of service {service_id} must be a mapping",
            service_id=service_id,
        )

    return Definition(
        service_id=service_id,
        target=target,
        arguments=_freeze_arguments(service_id, "arguments", raw.get("arguments")),
        properties=tuple(properties.items()),
        calls=_parse_calls(service_id, raw.get("calls")),
    )


class DefinitionRegistry:
    """Service identifier -> ``Definition``."""

    def __init__(self) -> None:
        self._definitions: Dict[str, Definition] = {}

    def add(self, definition: Definition) -> bool:
        """Store a definition; returns True when it replaced an earlier one."""
        replaced = definition.service_id in self._definitions
        self._definitions[definition.service_id] = definition
        return replaced

    def get(self, service_id: str) -> Definition:
        try:
            return self._definitions[service_id]
        except KeyError:
            raise ContainerError(
                f"There is no definition for service {service_id}",
                service_id=service_id,
            ) from None

    def ids(self) -> List[str]:
        return list(self._definitions)

    def __contains__(self, service_id: object) -> bool:
        return service_id in self._definitions

    def __iter__(self) -> Iterator[Definition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)
