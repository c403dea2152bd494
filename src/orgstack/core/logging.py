"""Structured logging for orgstack.

All modules log through structlog with snake_case event names
(``org_created``, ``transaction_rolled_back``). Events carry external IDs
only; API key material is redacted before rendering.

Usage:
    from orgstack.core.logging import LogContext, get_logger, setup_logging

    setup_logging()
    logger = get_logger(__name__)

    with LogContext(operation="create_org"):
        logger.info("org_created", org_extl_id=org.external_id)
"""
# ruff: noqa: ARG001  # Processor signatures required by structlog API

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor

from orgstack.config.settings import Settings, get_settings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Event keys whose values must never reach a log sink
_REDACTED_KEYS = frozenset({"api_key", "key", "ciphertext", "encryption_key"})
_REDACTED = "[REDACTED]"


def add_environment_info(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Tag every event with the deployment environment."""
    event_dict["environment"] = get_settings().ENVIRONMENT
    return event_dict


def redact_secrets(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Replace API key material with a placeholder."""
    for key in _REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = _REDACTED
    return event_dict


def _processors(add_timestamp: bool, json_format: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_environment_info,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))
    if json_format:
        processors.append(structlog.processors.format_exc_info)
    return processors


def setup_logging(
    log_level: LogLevel | None = None,
    json_format: bool | None = None,
    add_timestamp: bool = True,
    settings: Settings | None = None,
) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Override log level (default from settings)
        json_format: Use JSON output (default: True in production, False elsewhere)
        add_timestamp: Include an ISO timestamp in log entries
        settings: Settings to read defaults from (default: cached settings)
    """
    settings = settings or get_settings()
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    if json_format is None:
        json_format = settings.ENVIRONMENT == "production"

    shared = _processors(add_timestamp, json_format)
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    # structlog events are rendered by the stdlib handler below, same as foreign records
    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + shared
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    # Statement echo is controlled by Settings.DEBUG on the engine, not by log level
    for name in ("sqlalchemy", "aiosqlite", "asyncpg"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


class LogContext:
    """Bind key/values to every event logged inside the block.

    Example:
        with LogContext(operation="delete_org"):
            logger.info("org_deleted", org_extl_id=extl_id)
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.unbind_contextvars(*self.context)


def log_exception(
    logger: structlog.stdlib.BoundLogger,
    exc: BaseException,
    **kwargs: Any,
) -> None:
    """Log a handled failure at warning level.

    Provisioning errors also carry their kind (validation, not_exist, ...).
    """
    kind = getattr(exc, "kind", None)
    logger.warning(
        "exception_occurred",
        error_type=type(exc).__name__,
        error_kind=getattr(kind, "value", None),
        error_message=str(exc),
        **kwargs,
    )
