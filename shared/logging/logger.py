"""
Logger Implementation
=====================

Configures structlog for structured logging with:
- JSON output in production
- Colored console output in development
- Service name stamped on every entry
- Request context binding

Version: 0.1.0
"""

import datetime
import functools
import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger


SENSITIVE_KEYS = frozenset(
    {
        "password",
        "api_key",
        "secret",
        "token",
        "authorization",
        "private_key",
        "access_key",
    }
)


def _add_service_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
    *,
    service_name: str,
) -> dict[str, Any]:
    """Add service-level context to all log entries."""
    event_dict.setdefault("service", service_name)
    event_dict.setdefault("version", "0.1.0")
    return event_dict


def _add_timestamp(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add ISO timestamp to log entries."""
    event_dict["timestamp"] = datetime.datetime.now(datetime.UTC).isoformat()
    return event_dict


def _censor_value(key: str, value: Any) -> Any:
    if any(s in key.lower() for s in SENSITIVE_KEYS):
        return "***REDACTED***"
    if isinstance(value, dict):
        return {k: _censor_value(k, v) for k, v in value.items()}
    return value


def _censor_secrets(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Censor credentials that end up in log context (account metadata, settings dumps)."""
    return {key: _censor_value(key, value) for key, value in event_dict.items()}


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    service_name: str = "cirrus",
) -> None:
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output JSON format (True for production)
        service_name: Name of the service for context
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # SQL echo is controlled by the engine, keep the driver loggers quiet
    for noisy_logger in ["asyncio", "asyncpg", "sqlalchemy.pool", "uvicorn.access"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        _add_timestamp,
        functools.partial(_add_service_context, service_name=service_name),
        _censor_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        shared_processors.append(structlog.dev.set_exc_info)
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.RichTracebackFormatter(
                show_locals=False,
                max_frames=10,
            ),
        )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_handler = logging.StreamHandler(sys.stdout)
    root_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(root_handler)


def get_logger(name: str | None = None) -> "BoundLogger":
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        BoundLogger: Structured logger with context binding support

    Example:
        logger = get_logger(__name__)
        logger.info("exemption_granted", resource_id=12, rule_id=4)
    """
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """
    Bind context variables to all subsequent logs in this async context.

    Example:
        bind_context(request_path="/api/v1/compliance/summary")
        logger.info("event")  # Will include request_path
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
