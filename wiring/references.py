"""
wiring - Reference Index

Maps a class or interface name to the service identifiers whose class is or
extends it. Lookups are deterministic: the first registered identifier wins.
"""
from __future__ import annotations

from typing import Dict, List, Union

from core.errors import ServiceNotFoundError
from wiring.interfaces import ISignatureIntrospector
from wiring.introspection import reference_name


class ReferenceIndex:
    """Reference name -> service identifiers, plus cached class ancestry."""

    def __init__(self, introspector: ISignatureIntrospector):
        self._introspector = introspector
        self._references: Dict[str, List[str]] = {}
        self._class_references: Dict[str, List[str]] = {}

    def record_reference(self, service_id: str, name: Union[str, type]) -> None:
        """Append ``service_id`` to the implementers of ``name``."""
        self._references.setdefault(reference_name(name), []).append(service_id)

    def class_references_for(self, cls: type) -> List[str]:
        """Return ``[class, *ancestors]`` reference names, computed once per class."""
        key = reference_name(cls)
        if key not in self._class_references:
            self._class_references[key] = self._introspector.class_references(cls)
        return self._class_references[key]

    def record_class(self, service_id: str, cls: type) -> List[str]:
        """Register ``service_id`` under every reference of ``cls``."""
        names = self.class_references_for(cls)
        for name in names:
            self.record_reference(service_id, name)
        return names

    def has(self, name: Union[str, type]) -> bool:
        return reference_name(name) in self._references

    def resolve(self, name: Union[str, type]) -> str:
        """Return the first identifier registered for ``name``."""
        key = reference_name(name)
        service_ids = self._references.get(key)
        if not service_ids:
            raise ServiceNotFoundError(
                f"There is no services that referenced with class {key}",
                service_id=key,
            )
        return service_ids[0]

    def implementers(self, name: Union[str, type]) -> List[str]:
        """All identifiers registered for ``name``, in registration order."""
        return list(self._references.get(reference_name(name), ()))
