"""
wiring - Runtime State

The write-once service cache and the set of services under construction.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from core.errors import CircularDependencyError, ContainerError

_PENDING = object()


class ServiceCache:
    """Service identifier -> built instance. Entries are never replaced."""

    def __init__(self) -> None:
        self._services: Dict[str, Any] = {}

    def add(self, service_id: str, service: Any) -> None:
        if service_id in self._services:
            raise ContainerError(
                f"Can not redeclare already registered service with name {service_id}",
                service_id=service_id,
            )
        self._services[service_id] = service

    def get(self, service_id: str) -> Any:
        return self._services[service_id]

    def ids(self) -> List[str]:
        return list(self._services)

    def __contains__(self, service_id: object) -> bool:
        return service_id in self._services

    def __len__(self) -> int:
        return len(self._services)


class LoadingSet:
    """
    Identifiers currently being built, in the order their builds started.

    Each entry may carry the instance once it exists but before it is cached,
    so calls delivered mid-build can reach it.
    """

    def __init__(self) -> None:
        self._loading: Dict[str, Any] = {}

    @contextmanager
    def acquire(self, service_id: str) -> Iterator[None]:
        """
        Mark ``service_id`` as loading for the duration of the block.

        The entry is released on every exit path, so a failed build can be
        retried instead of being reported as circular.

        Raises:
            CircularDependencyError: If ``service_id`` is already loading
        """
        if service_id in self._loading:
            raise CircularDependencyError(self._loading)
        self._loading[service_id] = _PENDING
        try:
            yield
        finally:
            self._loading.pop(service_id, None)

    def attach(self, service_id: str, instance: Any) -> None:
        """Record the freshly constructed instance of a loading service."""
        if service_id not in self._loading:
            raise ContainerError(
                f"Service {service_id} is not loading",
                service_id=service_id,
            )
        self._loading[service_id] = instance

    def has_instance(self, service_id: str) -> bool:
        return self._loading.get(service_id, _PENDING) is not _PENDING

    def instance(self, service_id: str) -> Any:
        return self._loading[service_id]

    def ids(self) -> List[str]:
        return list(self._loading)

    def __contains__(self, service_id: object) -> bool:
        return service_id in self._loading

    def __len__(self) -> int:
        return len(self._loading)
