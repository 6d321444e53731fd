"""
wiring - Named Container Registry

Keeps containers by name. Applications that want an explicit object create
their own ``ContainerRegistry`` and pass it around; ``get_instance`` serves
the single process-wide registry, created once on first use and kept for the
lifetime of the process.

Usage:
    registry = ContainerRegistry()
    api = registry.get("api")
    assert registry.get("api") is api

    default = get_instance()
"""
from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional

from config import get_config
from core.errors import ContainerError
from wiring.container import Container

# Process-wide registry
_registry: Optional["ContainerRegistry"] = None
_registry_lock = threading.Lock()


class ContainerRegistry:
    """Name -> ``Container``, with containers created lazily on first request."""

    def __init__(self, factory: Callable[[], Container] = Container):
        self._factory = factory
        self._containers: Dict[str, Container] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Container:
        """Return the container called ``name``, creating it if needed."""
        with self._lock:
            if name not in self._containers:
                self._containers[name] = self._factory()
            return self._containers[name]

    def register(self, name: str, container: Container) -> None:
        """Add an existing container under ``name``."""
        with self._lock:
            if name in self._containers:
                raise ContainerError(f"Container {name} is already registered")
            self._containers[name] = container

    def has(self, name: str) -> bool:
        return name in self._containers

    def names(self) -> List[str]:
        return list(self._containers)


def get_registry() -> ContainerRegistry:
    """Get or create the process-wide registry."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ContainerRegistry()
    return _registry


def get_instance(name: Optional[str] = None) -> Container:
    """
    Return the named container from the process-wide registry.

    Args:
        name: Container name, ``WIRING_DEFAULT_INSTANCE`` ("default") when omitted
    """
    return get_registry().get(name or get_config().container.default_instance)
