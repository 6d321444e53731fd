"""
wiring - Core Module

Foundational pieces shared by the container engine and the code built on it:
- Unified error handling

Usage:
    from core import ServiceNotFoundError, WiringError

    try:
        mailer = container.get("mailer")
    except ServiceNotFoundError:
        mailer = None
"""

from core.errors import (
    WiringError,
    ContainerError,
    ServiceNotFoundError,
    CircularDependencyError,
    InvalidArgumentError,
    ErrorContext,
    ErrorSeverity,
)

__all__ = [
    # Error handling
    "WiringError",
    "ContainerError",
    "ServiceNotFoundError",
    "CircularDependencyError",
    "InvalidArgumentError",
    "ErrorContext",
    "ErrorSeverity",
]
