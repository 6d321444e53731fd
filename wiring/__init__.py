"""
wiring - Inversion of Control Container

Builds object graphs from declarative recipes. Each service is described by
a class, constructor arguments, properties assigned after construction and
methods called after construction. Dependencies are resolved from
constructor signatures, explicit references, or both.

Reference markers accepted in any string argument:

    "@id"    required reference, built on demand
    "@?id"   optional reference, None when unknown
    "@!id"   loaded-only reference: the built service, or a call deferred
             until it is built

Usage:
    from wiring import Container, Reference

    container = Container()
    container.set_services({
        "logger": ConsoleLogger,
        "mailer": {
            "class": "app.mail.Mailer",
            "arguments": {"sender": "noreply@example.org"},
            "calls": [{"set_logger": [Reference("logger")]}],
        },
    })

    mailer = container.get("mailer")
    logger = container.get_by_reference(Logger)
"""

from wiring.parameters import (
    ParameterKind,
    ParameterDescriptor,
    ResolvedParameter,
    BoundArgument,
    Reference,
    OptionalReference,
    LoadedReference,
    LiteralValue,
    classify,
    classify_all,
    merge_arguments,
)
from wiring.introspection import (
    InspectIntrospector,
    locate_class,
    reference_name,
)
from wiring.interfaces import (
    IServiceLocator,
    ISignatureIntrospector,
)
from wiring.definitions import (
    Call,
    Definition,
    DefinitionRegistry,
    parse_definition,
)
from wiring.references import ReferenceIndex
from wiring.state import ServiceCache, LoadingSet
from wiring.delayed import DelayedCall, DelayedCallQueue
from wiring.builder import InstanceBuilder
from wiring.container import Container
from wiring.registry import ContainerRegistry, get_registry, get_instance

__all__ = [
    # Parameters
    "ParameterKind",
    "ParameterDescriptor",
    "ResolvedParameter",
    "BoundArgument",
    "Reference",
    "OptionalReference",
    "LoadedReference",
    "LiteralValue",
    "classify",
    "classify_all",
    "merge_arguments",
    # Introspection
    "InspectIntrospector",
    "locate_class",
    "reference_name",
    # Contracts
    "IServiceLocator",
    "ISignatureIntrospector",
    # Definitions
    "Call",
    "Definition",
    "DefinitionRegistry",
    "parse_definition",
    # Engine
    "ReferenceIndex",
    "ServiceCache",
    "LoadingSet",
    "DelayedCall",
    "DelayedCallQueue",
    "InstanceBuilder",
    # Container
    "Container",
    "ContainerRegistry",
    "get_registry",
    "get_instance",
]
