"""
wiring - Observability Package

Tracing and structured logging for the container engine.

Components:
- tracing: OpenTelemetry spans around service construction
- logging: Structlog integration with trace context propagation

Usage:
    from observability import setup_observability, get_logger

    # Initialize at application startup
    setup_observability(tracing_enabled=True, log_level="DEBUG")

    logger = get_logger(__name__)
"""
from .tracing import (
    setup_tracing,
    get_tracer,
    get_tracer_provider,
    create_span,
    span_decorator,
    TracingConfig,
    shutdown_tracing,
)
from .logging import (
    setup_logging,
    get_logger,
    LoggingConfig,
    LogContext,
    ContainerLogger,
    bind_context,
    unbind_context,
    clear_context,
    shutdown_logging,
)

__all__ = [
    # Tracing
    "setup_tracing",
    "get_tracer",
    "get_tracer_provider",
    "create_span",
    "span_decorator",
    "TracingConfig",
    "shutdown_tracing",
    # Logging
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "LogContext",
    "ContainerLogger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "shutdown_logging",
    # Combined setup
    "setup_observability",
    "shutdown_observability",
]


def setup_observability(
    service_name: str = "wiring",
    otlp_endpoint: str = "http://localhost:4317",
    tracing_enabled: bool = False,
    sample_rate: float = 1.0,
    log_level: str = "INFO",
    json_logs: bool = True,
    environment: str = "development",
) -> None:
    """
    Initialize tracing and logging in one call.

    Args:
        service_name: Name of the service for telemetry
        otlp_endpoint: OTLP collector endpoint (gRPC)
        tracing_enabled: Export spans over OTLP
        sample_rate: Trace sampling rate (0.0-1.0)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render logs as JSON instead of console lines
        environment: Deployment environment
    """
    setup_tracing(TracingConfig(
        service_name=service_name,
        otlp_endpoint=otlp_endpoint,
        enabled=tracing_enabled,
        sample_rate=sample_rate,
        environment=environment,
    ))

    setup_logging(LoggingConfig(
        service_name=service_name,
        level=log_level,
        json_format=json_logs,
        environment=environment,
    ))


def shutdown_observability() -> None:
    """Flush tracing and logging."""
    shutdown_tracing()
    shutdown_logging()
