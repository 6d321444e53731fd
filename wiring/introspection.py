"""
wiring - Signature Introspection

Default ``ISignatureIntrospector`` built on ``inspect`` and ``typing``, plus
the helpers that name classes and import them back from dotted paths.

A class is referred to by its dotted name, ``module.QualName``. Parameters
annotated with a class outside the standard value types become object
dependencies; everything else is a plain value.
"""
from __future__ import annotations

import builtins
import importlib
import inspect
from abc import ABC
from enum import Enum
from types import UnionType
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Protocol,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from core.errors import ContainerError, InvalidArgumentError
from wiring.parameters import ParameterDescriptor, ParameterKind

_IGNORED_BASES = (object, Generic, Protocol, ABC)

# Classes from these modules are values, never services
_VALUE_MODULES = frozenset({
    "builtins",
    "typing",
    "types",
    "collections",
    "collections.abc",
    "datetime",
    "decimal",
    "fractions",
    "pathlib",
    "re",
    "uuid",
})


def reference_name(target: Union[str, type]) -> str:
    """Return the reference name of a class, or a name unchanged."""
    if isinstance(target, str):
        return target
    if inspect.isclass(target):
        return f"{target.__module__}.{target.__qualname__}"
    raise InvalidArgumentError(
        f"Expected a class or a class name, got {type(target).__name__}"
    )


def locate_class(path: str) -> type:
    """
    Import a class from its dotted path.

    Module prefixes are tried from the longest down so nested classes
    (``package.module.Outer.Inner``) resolve. A single name is looked up in
    ``builtins``.
    """
    if not isinstance(path, str) or not path:
        raise ContainerError(f"Class path must be a non-empty string, got {path!r}")

    parts = path.split(".")
    if len(parts) == 1:
        candidate = getattr(builtins, path, None)
        if inspect.isclass(candidate):
            return candidate
        raise ContainerError(f"Class {path} cannot be located")

    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only a missing prefix means "try a shorter one"
            if e.name and (module_name == e.name or module_name.startswith(e.name + ".")):
                continue
            raise

        target: Any = module
        try:
            for attribute in parts[split:]:
                target = getattr(target, attribute)
        except AttributeError as e:
            raise ContainerError(f"Class {path} cannot be located", cause=e) from e

        if not inspect.isclass(target):
            raise ContainerError(f"{path} is not a class")
        return target

    raise ContainerError(f"Class {path} cannot be located")


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Split ``Optional[X]`` / ``X | None`` into ``(X, True)``."""
    origin = get_origin(annotation)
    if origin is Union or origin is UnionType:
        members = get_args(annotation)
        non_null = [member for member in members if member is not type(None)]
        nullable = len(non_null) != len(members)
        if len(non_null) == 1:
            return non_null[0], nullable
        return annotation, nullable
    return annotation, False


def _is_injectable(annotation: Any) -> bool:
    if not inspect.isclass(annotation):
        return False
    if annotation.__module__ in _VALUE_MODULES:
        return False
    return not issubclass(annotation, Enum)


def _type_hints(target: Any) -> Dict[str, Any]:
    """Resolve hints in the namespace the function was defined in."""
    func = target
    if not (inspect.isfunction(func) or inspect.ismethod(func)) and hasattr(func, "__call__"):
        func = func.__call__
    func = getattr(func, "__func__", func)
    try:
        return get_type_hints(func)
    except Exception:
        return {}


class InspectIntrospector:
    """Describes signatures with ``inspect.signature`` and ``get_type_hints``."""

    def describe(self, target: Callable[..., Any]) -> List[ParameterDescriptor]:
        if inspect.isclass(target):
            return self.describe_constructor(target)
        try:
            signature = inspect.signature(target)
        except (TypeError, ValueError):
            return []
        return self._descriptors(signature.parameters.values(), _type_hints(target))

    def describe_constructor(self, cls: type) -> List[ParameterDescriptor]:
        init = cls.__init__
        if init is object.__init__:
            return []
        try:
            signature = inspect.signature(init)
        except (TypeError, ValueError):
            return []

        # First parameter is the instance
        parameters = list(signature.parameters.values())[1:]
        return self._descriptors(parameters, _type_hints(init))

    def class_references(self, cls: type) -> List[str]:
        return [
            reference_name(base)
            for base in inspect.getmro(cls)
            if base not in _IGNORED_BASES
        ]

    def _descriptors(
        self,
        parameters: Iterable[inspect.Parameter],
        hints: Dict[str, Any],
    ) -> List[ParameterDescriptor]:
        descriptors: List[ParameterDescriptor] = []
        for param in parameters:
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                break

            has_default = param.default is not param.empty
            default = param.default if has_default else None
            annotation = hints.get(param.name, param.annotation)
            if annotation is param.empty:
                annotation = None
            declared, nullable = _unwrap_optional(annotation)

            if _is_injectable(declared):
                optional = nullable or has_default
                kind = ParameterKind.OPTIONAL_OBJECT if optional else ParameterKind.REQUIRED_OBJECT
                value = reference_name(declared)
            else:
                kind = ParameterKind.LITERAL
                value = default

            descriptors.append(ParameterDescriptor(
                name=param.name,
                kind=kind,
                value=value,
                has_default=has_default,
                default=default,
                keyword_only=param.kind is param.KEYWORD_ONLY,
            ))
        return descriptors
