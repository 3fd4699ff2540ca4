"""structlog setup for the API process.

structlog events and stdlib records (uvicorn, SQLAlchemy, alembic) share one
processor chain and are written to stdout, rendered for a terminal or as one
JSON object per line. Events logged inside a span carry its trace and span ids,
so a ``favorite_deleted`` line can be matched to the request that caused it.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, Literal

import structlog
from opentelemetry import trace

# Third-party loggers held at WARNING whatever the root level is
QUIET_LOGGERS = (
    "sqlalchemy.engine",  # statement echo is DATABASE_ECHO's job
    "httpx",
    "aiosqlite",
    "opentelemetry.exporter.otlp.proto.http",
    "uvicorn.access",  # AccessLoggingMiddleware logs requests
)


def _add_otel_context(
    logger: logging.Logger, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Copy the current span's trace and span ids onto the event."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def configure_logging(*, log_level: str = "INFO", log_format: Literal["console", "json"] = "console") -> None:
    """
    Route structlog and stdlib logging through a single stdout handler.

    Args:
        log_level: Root log level name, case-insensitive
        log_format: ``console`` for humans, ``json`` for log collectors
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_otel_context,
    ]
    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
