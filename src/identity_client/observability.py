"""Structured logging and tracing for the identity client.

structlog for logs, OpenTelemetry for spans. Named apart from
:mod:`identity_client.core.telemetry`, which deals with the server-side
telemetry headers.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import TextIO

    from .config import LoggerOptions

LOGGER_NAME = "identity-client"

# Module-level tracer and logger
_tracer: trace.Tracer | None = None
_logger: structlog.BoundLogger | None = None


def get_tracer() -> trace.Tracer:
    """Get or create the client tracer."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(LOGGER_NAME)
    return _tracer


def get_logger() -> structlog.BoundLogger:
    """Get or create the client logger."""
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(LOGGER_NAME)
    return _logger


def _processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(options: LoggerOptions) -> None:
    """Configure structlog and the tracer process-wide.

    Args:
        options: Logger options.
    """
    global _tracer, _logger

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(
            _log_level_to_int(options.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if options.tracing_enabled:
        _tracer = trace.get_tracer(options.service_name)
    else:
        _tracer = trace.NoOpTracer()
    _logger = structlog.get_logger(options.service_name)


def create_logger(
    options: LoggerOptions,
    *,
    file: TextIO | None = None,
) -> structlog.BoundLogger:
    """Create a logger honouring one client's level without touching global config.

    Args:
        options: Logger options from the resolved client configuration.
        file: Output stream. Defaults to ``options.log_stream``, then stdout.

    Returns:
        A JSON-rendering bound logger.
    """
    return structlog.wrap_logger(
        structlog.PrintLogger(file if file is not None else options.log_stream),
        processors=_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(
            _log_level_to_int(options.log_level)
        ),
        context_class=dict,
        service=options.service_name,
    )


def _log_level_to_int(level: str) -> int:
    """Convert log level string to integer."""
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Context manager for tracing an operation.

    Args:
        name: Name of the operation.
        attributes: Optional span attributes.

    Yields:
        The active span.
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
