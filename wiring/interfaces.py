"""
wiring - Container Contracts

Small, focused protocols the container implements or depends on.
"""
from __future__ import annotations

from typing import Any, Callable, List, Protocol, runtime_checkable

from wiring.parameters import ParameterDescriptor


@runtime_checkable
class IServiceLocator(Protocol):
    """
    Generic "find a service by identifier" contract.

    ``get`` raises ``ServiceNotFoundError`` (a ``LookupError``) for unknown
    identifiers and lets every other failure through unchanged; ``has``
    returning True means ``get`` will not raise ``ServiceNotFoundError`` for
    that identifier.
    """

    def get(self, service_id: Any) -> Any: ...

    def has(self, service_id: Any) -> bool: ...


@runtime_checkable
class ISignatureIntrospector(Protocol):
    """Turns callables and classes into parameter descriptors."""

    def describe(self, target: Callable[..., Any]) -> List[ParameterDescriptor]: ...

    def describe_constructor(self, cls: type) -> List[ParameterDescriptor]: ...

    def class_references(self, cls: type) -> List[str]: ...
