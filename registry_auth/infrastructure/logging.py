"""structlog setup shared by the API server and the CLI.

Application events and foreign records (uvicorn, httpx) go through the same
processor chain, so every line carries the organization and, inside a
request, the correlation ID.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import Processor

from registry_auth.core.config import Settings, get_settings
from registry_auth.infrastructure.logging_processors import (
    MetricsProcessor,
    add_request_context,
    add_service_context,
    format_exception_info,
    sanitize_sensitive_data,
    set_log_severity,
)

# httpx logs one INFO line per upstream GraphQL page
UPSTREAM_LOGGERS = ("httpx", "httpcore")
SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def setup_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_context,
        add_request_context,
        structlog.processors.add_log_level,
        set_log_severity,
        format_exception_info,
        structlog.processors.TimeStamper(fmt="iso"),
        # Must run after every processor that adds fields
        sanitize_sensitive_data,
        MetricsProcessor(),
    ]

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.rich_traceback,
        )

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in SERVER_LOGGERS + UPSTREAM_LOGGERS:
        foreign = logging.getLogger(name)
        foreign.handlers.clear()
        foreign.addHandler(handler)
        foreign.propagate = False
        if name in UPSTREAM_LOGGERS:
            foreign.setLevel(level if level <= logging.DEBUG else max(level, logging.WARNING))
        else:
            foreign.setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
