"""Structured logging configuration using structlog.

- JSON output in production mode
- Colored console output in development mode
- Correlation IDs so every log line of one sync cycle can be grouped

Usage:
    from odds_aggregator.monitoring import configure_logging, get_logger

    configure_logging("production")
    log = get_logger()
    log.info("provider_request_completed", provider="primary", event_count=12)
"""

import logging
import sys
import uuid

import structlog

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def configure_logging(mode: str = "development", level: int = logging.INFO) -> None:
    """Configure structlog for the application.

    Args:
        mode: "production" for JSON lines, anything else for colored console
        level: stdlib logging level for the root handler
    """
    if mode == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context.

    Args:
        correlation_id: Identifier to bind; a short random one is generated
            when omitted.

    Returns:
        The bound correlation ID
    """
    correlation_id = correlation_id or uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    return correlation_id


def unbind_correlation_id() -> None:
    """Remove correlation ID from context."""
    structlog.contextvars.unbind_contextvars("correlation_id")


def current_correlation_id() -> str | None:
    """Correlation ID bound in the current context, if any."""
    return structlog.contextvars.get_contextvars().get("correlation_id")
