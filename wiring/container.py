"""
wiring - Service Container

Public lookup surface of the container: registration of definitions,
instances and references, and lookup of services by identifier or class.

Usage:
    container = Container()
    container.set_services({
        "logger": "app.logging.ConsoleLogger",
        "app": {"class": "app.App", "arguments": ["@logger"]},
    })

    app = container.get("app")
    assert container.get("logger") is app.logger
"""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Union

from config import get_config
from core.errors import ContainerError, ServiceNotFoundError
from observability.logging import ContainerLogger
from wiring.builder import InstanceBuilder
from wiring.definitions import Definition, DefinitionRegistry, RawArguments, parse_definition
from wiring.delayed import DelayedCall, DelayedCallQueue
from wiring.interfaces import IServiceLocator, ISignatureIntrospector
from wiring.introspection import InspectIntrospector, locate_class, reference_name
from wiring.references import ReferenceIndex
from wiring.state import LoadingSet, ServiceCache

ServiceId = Union[str, type]

# Reserved configuration key: reference name -> service id(s)
REFERENCES_KEY = "_references"


class Container(IServiceLocator):
    """
    Inversion-of-control container.

    Services are singletons: each identifier is built at most once and the
    instance is kept for the lifetime of the container. The container
    registers itself as ``"container"``.
    """

    SERVICE_ID = "container"

    def __init__(
        self,
        autowire: Optional[bool] = None,
        full_reference: Optional[bool] = None,
        strict_definitions: Optional[bool] = None,
        introspector: Optional[ISignatureIntrospector] = None,
    ) -> None:
        settings = get_config().container
        self.autowire = settings.autowire if autowire is None else bool(autowire)
        self.full_reference = settings.full_reference if full_reference is None else bool(full_reference)
        self.strict_definitions = (
            settings.strict_definitions if strict_definitions is None else bool(strict_definitions)
        )

        self._introspector = introspector or InspectIntrospector()
        self._definitions = DefinitionRegistry()
        self._references = ReferenceIndex(self._introspector)
        self._services = ServiceCache()
        self._loading = LoadingSet()
        self._delayed = DelayedCallQueue()
        self._events = ContainerLogger()
        self._builder = InstanceBuilder(
            container=self,
            definitions=self._definitions,
            references=self._references,
            services=self._services,
            loading=self._loading,
            delayed=self._delayed,
            introspector=self._introspector,
            events=self._events,
        )

        self._services.add(self.SERVICE_ID, self)
        self._references.record_class(self.SERVICE_ID, type(self))

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_autowire(self, autowire: bool) -> None:
        """Resolve constructor arguments from type hints when building."""
        self.autowire = bool(autowire)

    def set_full_reference(self, full_reference: bool) -> None:
        """Index each definition under its class and every ancestor."""
        self.full_reference = bool(full_reference)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set_config(self, config: Mapping) -> None:
        """
        Register a configuration mapping of service definitions.

        The reserved ``_references`` key maps reference names to a service
        id or a list of ids, registered through ``add_reference``.
        """
        if not isinstance(config, Mapping):
            raise ContainerError("Configuration must be a mapping")
        services = dict(config)
        references = services.pop(REFERENCES_KEY, None) or {}
        if not isinstance(references, Mapping):
            raise ContainerError(f"Configuration key {REFERENCES_KEY} must be a mapping")

        self.set_services(services)
        for name, service_ids in references.items():
            if isinstance(service_ids, str):
                service_ids = [service_ids]
            for service_id in service_ids:
                self.add_reference(service_id, name)

    def set_services(self, definitions: Mapping) -> None:
        """Register every ``id -> definition`` entry of ``definitions``."""
        if not isinstance(definitions, Mapping):
            raise ContainerError("Service definitions must be a mapping")
        for service_id, definition in definitions.items():
            self.add_definition(service_id, definition)

    def add_definition(self, service_id: str, definition: Any) -> Definition:
        """
        Register the recipe of ``service_id``.

        An identifier that is already built can not be redefined. Redefining
        an unbuilt identifier replaces the earlier recipe, unless strict
        definitions are enabled.
        """
        parsed = parse_definition(service_id, definition)
        if parsed.service_id != service_id:
            parsed = dataclasses.replace(parsed, service_id=service_id)

        if service_id in self._services:
            raise ContainerError(
                f"Can not redefine already built service {service_id}",
                service_id=service_id,
            )
        if service_id in self._definitions:
            if self.strict_definitions:
                raise ContainerError(
                    f"Service {service_id} is already defined",
                    service_id=service_id,
                )
            self._events.definition_replaced(service_id, parsed.class_name)

        self._definitions.add(parsed)
        self._events.definition_added(service_id, parsed.class_name)

        if self.full_reference:
            self._add_references(service_id, parsed.target)
        return parsed

    def _add_references(self, service_id: str, target: Union[type, str]) -> None:
        if isinstance(target, str):
            try:
                target = locate_class(target)
            except ContainerError:
                # Unknown classes are only indexed by their own name
                self._references.record_reference(service_id, target)
                return
        self._references.record_class(service_id, target)

    def add_reference(self, service_id: str, name: ServiceId) -> None:
        """Make ``service_id`` resolvable through the class or name ``name``."""
        self._references.record_reference(service_id, name)

    def set(self, service_id: str, service: Any) -> None:
        """
        Register an already built service.

        Raises:
            ContainerError: If ``service_id`` is already built
        """
        self._services.add(service_id, service)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, service_id: ServiceId) -> Any:
        """
        Return the service ``service_id``, building it on first request.

        ``service_id`` may also be a class or reference name, in which case
        the first service registered for it is returned.

        Raises:
            ServiceNotFoundError: If nothing is known under ``service_id``
        """
        service_id = reference_name(service_id)
        if service_id in self._services:
            return self._services.get(service_id)

        if service_id not in self._definitions and self._references.has(service_id):
            service_id = self._references.resolve(service_id)
            if service_id in self._services:
                return self._services.get(service_id)

        if service_id not in self._definitions:
            raise ServiceNotFoundError(
                f"There is no service with id {service_id}",
                service_id=service_id,
            )
        return self._builder.build(service_id)

    def get_by_reference(self, name: ServiceId) -> Any:
        """Return the first service registered for a class or interface."""
        return self.get(self._references.resolve(name))

    def has(self, service_id: ServiceId) -> bool:
        service_id = reference_name(service_id)
        return (
            service_id in self._services
            or service_id in self._definitions
            or self._references.has(service_id)
        )

    def has_reference(self, name: ServiceId) -> bool:
        return self._references.has(name)

    def loaded(self, service_id: str) -> bool:
        """True if ``service_id`` is already built."""
        return service_id in self._services

    def implementers(self, name: ServiceId) -> List[str]:
        """Service ids registered for a class or interface, first one wins."""
        return self._references.implementers(name)

    def pending_calls(self, service_id: str) -> List[DelayedCall]:
        """Calls waiting for ``service_id`` to be built."""
        return self._delayed.pending(service_id)

    # ------------------------------------------------------------------
    # Ad hoc construction
    # ------------------------------------------------------------------

    def invoke(self, target: Callable[..., Any], arguments: RawArguments = ()) -> Any:
        """
        Call ``target`` with arguments auto-wired from its signature.

        Raises:
            InvalidArgumentError: If ``target`` is not callable
        """
        return self._builder.invoke(target, arguments)

    def construct(self, target: Union[type, str], arguments: RawArguments = ()) -> Any:
        """Create a fresh, unregistered instance without auto-wiring."""
        cls = self._builder.resolve_class(target)
        return self._builder.make(cls, arguments, autowire=False)
