"""
Observability Infrastructure

Structured logging for the production engine. Every engine call runs under
an operation id so the log lines of one request can be correlated.
"""

import contextvars
import logging
import sys
import uuid
from typing import Any

import structlog

from .config import EngineSettings, settings

# Context variable for correlation tracking
operation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "operation_id", default=""
)


class OperationIdProcessor:
    """Structlog processor to add the current operation ID to all log entries."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        operation_id = operation_id_var.get("")
        if operation_id:
            event_dict["operation_id"] = operation_id
        return event_dict


def setup_structured_logging(config: EngineSettings | None = None) -> None:
    """Configure structured logging with JSON or console output."""
    config = config or settings
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        OperationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
    ]

    if config.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=config.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_operation_id(operation_id: str | None = None) -> str:
    """Set the operation ID used to correlate log entries."""
    if operation_id is None:
        operation_id = str(uuid.uuid4())

    operation_id_var.set(operation_id)
    return operation_id


def get_operation_id() -> str:
    """Get current operation ID."""
    return operation_id_var.get("")
