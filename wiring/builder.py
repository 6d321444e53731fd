"""
wiring - Instance Builder

Assembles services from their definitions: resolves constructor arguments,
instantiates, assigns properties, invokes calls, caches the result and then
delivers the calls that were waiting for it.

Build order for one service:

    1. enter the loading set (re-entry is a circular dependency)
    2. resolve constructor arguments and instantiate
    3. assign properties in declaration order
    4. invoke calls in declaration order, deferring those that need an
       unbuilt service through a loaded-only reference
    5. cache the instance
    6. deliver delayed calls waiting for this service; a failing call does
       not keep the others from running
    7. leave the loading set (also on failure)
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from core.errors import (
    ContainerError,
    ErrorContext,
    InvalidArgumentError,
    ServiceNotFoundError,
    WiringError,
)
from observability.logging import ContainerLogger
from observability.tracing import create_span
from wiring.definitions import DefinitionRegistry, Definition, RawArguments
from wiring.delayed import DelayedCall, DelayedCallQueue
from wiring.interfaces import ISignatureIntrospector
from wiring.introspection import locate_class
from wiring.parameters import (
    BoundArgument,
    ParameterDescriptor,
    ParameterKind,
    ResolvedParameter,
    classify_all,
    merge_arguments,
)
from wiring.references import ReferenceIndex
from wiring.state import LoadingSet, ServiceCache

if TYPE_CHECKING:
    from wiring.container import Container


class InstanceBuilder:
    """Builds services for a ``Container`` and owns the per-class signature cache."""

    def __init__(
        self,
        container: "Container",
        definitions: DefinitionRegistry,
        references: ReferenceIndex,
        services: ServiceCache,
        loading: LoadingSet,
        delayed: DelayedCallQueue,
        introspector: ISignatureIntrospector,
        events: Optional[ContainerLogger] = None,
    ):
        self._container = container
        self._definitions = definitions
        self._references = references
        self._services = services
        self._loading = loading
        self._delayed = delayed
        self._introspector = introspector
        self._events = events or ContainerLogger()
        self._constructors: Dict[type, List[ParameterDescriptor]] = {}

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def build(self, service_id: str) -> Any:
        """
        Build, cache and return the service ``service_id``.

        Once the instance is cached it stays cached; a delayed call that
        fails on delivery is reported after every other waiting call ran.

        Raises:
            CircularDependencyError: If ``service_id`` is already being built
            ContainerError: If the definition cannot be assembled or a
                delayed call waiting for it fails
            ServiceNotFoundError: If a required dependency is unknown
        """
        definition = self._definitions.get(service_id)

        with self._loading.acquire(service_id):
            self._events.start_build(service_id, definition.class_name, len(self._loading))
            with create_span(
                "wiring.build",
                attributes={"service.id": service_id, "service.class": definition.class_name},
            ):
                try:
                    instance = self._assemble(definition)
                except Exception as e:
                    self._delayed.discard_caller(service_id)
                    self._events.build_failed(service_id, e)
                    self._attach_context(e, service_id)
                    raise

                self._services.add(service_id, instance)
                try:
                    delivered = self.process_delayed_calls(service_id)
                except WiringError as e:
                    self._attach_context(e, service_id)
                    raise
                self._events.end_build(service_id, delivered)
                return instance

    def _attach_context(self, error: Exception, service_id: str) -> None:
        # The innermost build that saw the error keeps its context
        if isinstance(error, WiringError) and error.context is None:
            error.context = ErrorContext.from_current_span(
                "build",
                "builder",
                service_id=service_id,
                metadata={"loading": self._loading.ids()},
            )

    def _assemble(self, definition: Definition) -> Any:
        service_id = definition.service_id
        cls = self.resolve_class(definition.target)
        instance = self.make(cls, definition.arguments, self._container.autowire)
        self._loading.attach(service_id, instance)

        for name, value in definition.properties:
            try:
                setattr(instance, name, value)
            except AttributeError as e:
                raise ContainerError(
                    f"Can not set property {name} of service {service_id}",
                    service_id=service_id,
                    cause=e,
                ) from e

        for call in definition.calls:
            self.call(service_id, instance, call.method, call.arguments)

        return instance

    def resolve_class(self, target: Union[type, str]) -> type:
        if isinstance(target, type):
            return target
        return locate_class(target)

    def make(self, cls: type, raw_arguments: RawArguments = (), autowire: bool = True) -> Any:
        """Instantiate ``cls`` with resolved constructor arguments."""
        descriptors = self.constructor_dependencies(cls) if autowire else None
        args, kwargs = self.resolve_arguments(
            merge_arguments(descriptors, classify_all(raw_arguments))
        )
        return cls(*args, **kwargs)

    def constructor_dependencies(self, cls: type) -> List[ParameterDescriptor]:
        if cls not in self._constructors:
            self._constructors[cls] = self._introspector.describe_constructor(cls)
        return self._constructors[cls]

    # ------------------------------------------------------------------
    # Arguments
    # ------------------------------------------------------------------

    def resolve_arguments(
        self,
        bound: List[BoundArgument],
    ) -> Tuple[List[Any], Dict[str, Any]]:
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for argument in bound:
            value = self.make_argument(argument.parameter)
            if argument.keyword is None:
                args.append(value)
            else:
                kwargs[argument.keyword] = value
        return args, kwargs

    def make_argument(self, parameter: ResolvedParameter) -> Any:
        """Turn a classified parameter into the value passed to the callee."""
        kind = parameter.kind
        value = parameter.value
        container = self._container

        if kind is ParameterKind.LITERAL:
            return value

        if kind is ParameterKind.REQUIRED_REFERENCE:
            if container.has(value):
                return container.get(value)
            raise ServiceNotFoundError(
                f"There is no service with id {value} found",
                service_id=value,
            )

        if kind is ParameterKind.LOADED_REFERENCE:
            return container.get(value) if container.loaded(value) else None

        if kind is ParameterKind.OPTIONAL_REFERENCE:
            return container.get(value) if container.has(value) else None

        if kind is ParameterKind.REQUIRED_OBJECT:
            if self._references.has(value):
                return container.get_by_reference(value)
            raise ServiceNotFoundError(
                f"There is no referenced classes of {value} found",
                service_id=value,
            )

        if kind is ParameterKind.OPTIONAL_OBJECT:
            if self._references.has(value):
                return container.get_by_reference(value)
            return parameter.fallback

        return None

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def call(
        self,
        service_id: str,
        instance: Any,
        method: str,
        raw_arguments: RawArguments = (),
    ) -> bool:
        """
        Invoke ``instance.method`` with resolved arguments.

        Returns False when the call was deferred because a loaded-only
        reference points at a service that is not built yet.
        """
        parameters = classify_all(raw_arguments)
        for parameter in parameters.values():
            if (
                parameter.kind is ParameterKind.LOADED_REFERENCE
                and not self._container.loaded(parameter.value)
            ):
                self._delayed.add(DelayedCall(
                    waiting_for=parameter.value,
                    caller_id=service_id,
                    method=method,
                    arguments=raw_arguments,
                ))
                self._events.call_deferred(service_id, method, parameter.value)
                return False

        function = getattr(instance, method, None)
        if function is None or not callable(function):
            raise ContainerError(
                f"Service {service_id} has no callable method {method}",
                service_id=service_id,
            )

        args, kwargs = self.resolve_arguments(
            merge_arguments(self._introspector.describe(function), parameters)
        )
        function(*args, **kwargs)
        return True

    def process_delayed_calls(self, service_id: str) -> int:
        """
        Deliver the calls waiting for ``service_id``; returns how many ran.

        Every waiting call gets its turn. A call that raises is dropped and
        the first such failure is raised once the queue is drained, as a
        ``ContainerError`` naming the caller.
        """
        if service_id not in self._services:
            raise ContainerError(
                f"Service {service_id} not loaded, processing delayed calls is impossible",
                service_id=service_id,
            )

        delivered = 0
        failures: List[Tuple[DelayedCall, Exception]] = []
        for delayed in self._delayed.pop(service_id):
            try:
                caller = self._caller_instance(delayed.caller_id)
                ran = self.call(delayed.caller_id, caller, delayed.method, delayed.arguments)
            except Exception as e:
                self._events.delayed_call_failed(delayed.caller_id, delayed.method, service_id, e)
                failures.append((delayed, e))
                continue
            if ran:
                delivered += 1
                self._events.delayed_call_delivered(delayed.caller_id, delayed.method, service_id)

        if failures:
            delayed, cause = failures[0]
            raise ContainerError(
                f"Delayed call {delayed.caller_id}.{delayed.method} waiting for "
                f"{service_id} failed",
                service_id=delayed.caller_id,
                cause=cause,
            ) from cause
        return delivered

    def _caller_instance(self, caller_id: str) -> Any:
        if caller_id in self._services:
            return self._services.get(caller_id)
        if self._loading.has_instance(caller_id):
            return self._loading.instance(caller_id)
        raise ContainerError(
            f"Service {caller_id} not loaded, its delayed calls can not be delivered",
            service_id=caller_id,
        )

    # ------------------------------------------------------------------
    # Ad hoc invocation
    # ------------------------------------------------------------------

    def invoke(self, target: Any, raw_arguments: RawArguments = ()) -> Any:
        """Call ``target`` with auto-wired arguments, outside the managed graph."""
        if not callable(target):
            raise InvalidArgumentError(
                f"Invoked target must be callable, got {type(target).__name__}"
            )
        args, kwargs = self.resolve_arguments(
            merge_arguments(self._introspector.describe(target), classify_all(raw_arguments))
        )
        return target(*args, **kwargs)
