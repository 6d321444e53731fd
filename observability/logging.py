"""
wiring - Structured Logging with Trace Context

Integrates structlog with OpenTelemetry trace context propagation,
ensuring all log messages include trace_id and span_id for correlation
with distributed traces.

Features:
- Structured JSON logging for log aggregation (ELK, Loki)
- Automatic trace context injection (trace_id, span_id)
- Configurable log levels and output formats
- Contextual enrichment through contextvars

Usage:
    from observability.logging import setup_logging, get_logger

    # Setup at startup
    setup_logging(LoggingConfig(level="DEBUG", json_format=False))

    # Get logger
    logger = get_logger(__name__)
    logger.info("Service built", service_id="mailer")
"""
from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from opentelemetry import trace
from structlog.types import EventDict, WrappedLogger

# Global state
_configured: bool = False


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    service_name: str = "wiring"
    level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    json_format: bool = field(
        default_factory=lambda: os.getenv("LOG_FORMAT", "json").lower() == "json"
    )
    enable_trace_context: bool = True
    log_to_console: bool = True
    log_to_file: bool = field(
        default_factory=lambda: os.getenv("LOG_TO_FILE", "false").lower() == "true"
    )
    log_file_path: Path = field(
        default_factory=lambda: Path(os.getenv("LOG_FILE", "./logs/wiring.log"))
    )
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    include_timestamp: bool = True
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )


def add_trace_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Structlog processor that adds OpenTelemetry trace context to log events.

    Adds trace_id and span_id from the current span context, enabling
    correlation between logs and traces in observability backends.
    """
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def add_service_context(
    service_name: str,
    environment: str,
) -> structlog.types.Processor:
    """Create a processor that adds service context to all log events."""

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["service"] = service_name
        event_dict["environment"] = environment
        return event_dict

    return processor


def add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ISO8601 timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure structlog with OpenTelemetry trace context integration.

    Calling it again after a successful setup is a no-op.

    Args:
        config: Logging configuration. Uses defaults if not provided.
    """
    global _configured

    if _configured:
        return

    config = config or LoggingConfig()

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context(config.service_name, config.environment),
    ]

    if config.include_timestamp:
        processors.append(add_timestamp)

    if config.enable_trace_context:
        processors.append(add_trace_context)

    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ])

    if config.json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_stdlib_logging(config)

    _configured = True


def _configure_stdlib_logging(config: LoggingConfig) -> None:
    """Attach handlers to the package logger."""
    level = getattr(logging, config.level, logging.INFO)
    handlers: list[logging.Handler] = []

    if config.log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        if config.json_format:
            console_handler.setFormatter(_JsonFormatter())
        else:
            console_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        handlers.append(console_handler)

    if config.log_to_file:
        from logging.handlers import RotatingFileHandler

        config.log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            config.log_file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(_JsonFormatter())
        handlers.append(file_handler)

    # Only the package logger is touched; the host application owns the root logger.
    package_logger = logging.getLogger("wiring")
    package_logger.setLevel(level)

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    for handler in handlers:
        package_logger.addHandler(handler)


class _JsonFormatter(logging.Formatter):
    """JSON formatter for stdlib logging."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        try:
            # structlog already rendered the event as JSON
            payload = json.loads(message)
        except ValueError:
            payload = {"message": message}

        if not isinstance(payload, dict):
            payload = {"message": message}

        payload.setdefault(
            "timestamp", datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        )
        payload.setdefault("level", record.levelname.lower())
        payload.setdefault("logger", record.name)

        if record.exc_info:
            payload["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(payload, default=str)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger instance.

    Args:
        name: Logger name, typically __name__

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("Building service", service_id="mailer")
    """
    if not _configured:
        setup_logging()

    return structlog.get_logger(name)


def shutdown_logging() -> None:
    """Flush and close package log handlers."""
    global _configured

    for handler in logging.getLogger("wiring").handlers:
        handler.flush()
        handler.close()

    _configured = False


class LogContext:
    """
    Context manager for adding contextual information to all logs.

    Example:
        >>> with LogContext(request_id="abc123"):
        ...     container.get("mailer")
        ...     # All logs include request_id
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())


def bind_context(**kwargs: Any) -> None:
    """Bind contextual variables to all subsequent log messages."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove contextual variables from log context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound contextual variables."""
    structlog.contextvars.clear_contextvars()


class ContainerLogger:
    """
    Logger specialized for container assembly events.

    Events go through the stdlib logger ``name`` with whatever structlog
    configuration is current when they are emitted. Creating one never
    configures logging; that is left to ``setup_logging`` or the host
    application.
    """

    def __init__(self, name: str = "wiring.container"):
        self._logger = structlog.wrap_logger(
            logging.getLogger(name),
            wrapper_class=structlog.stdlib.BoundLogger,
        )

    def definition_added(self, service_id: str, class_name: str) -> None:
        self._logger.debug(
            "Definition registered",
            service_id=service_id,
            class_name=class_name,
            component="registry",
        )

    def definition_replaced(self, service_id: str, class_name: str) -> None:
        self._logger.warning(
            "Definition replaced before first build",
            service_id=service_id,
            class_name=class_name,
            component="registry",
        )

    def start_build(self, service_id: str, class_name: str, depth: int) -> None:
        self._logger.debug(
            "Building service",
            service_id=service_id,
            class_name=class_name,
            depth=depth,
            component="builder",
        )

    def end_build(self, service_id: str, delayed_calls: int) -> None:
        self._logger.debug(
            "Service built",
            service_id=service_id,
            delayed_calls=delayed_calls,
            component="builder",
        )

    def build_failed(self, service_id: str, error: BaseException) -> None:
        self._logger.error(
            "Service build failed",
            service_id=service_id,
            error=str(error),
            error_type=type(error).__name__,
            component="builder",
        )

    def call_deferred(self, service_id: str, method: str, waiting_for: str) -> None:
        self._logger.debug(
            "Call deferred until service is loaded",
            service_id=service_id,
            method=method,
            waiting_for=waiting_for,
            component="delayed",
        )

    def delayed_call_delivered(self, service_id: str, method: str, loaded: str) -> None:
        self._logger.debug(
            "Delayed call delivered",
            service_id=service_id,
            method=method,
            loaded=loaded,
            component="delayed",
        )

    def delayed_call_failed(
        self,
        service_id: str,
        method: str,
        loaded: str,
        error: BaseException,
    ) -> None:
        self._logger.error(
            "Delayed call failed",
            service_id=service_id,
            method=method,
            loaded=loaded,
            error=str(error),
            error_type=type(error).__name__,
            component="delayed",
        )
