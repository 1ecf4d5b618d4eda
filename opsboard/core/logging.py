"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__));
Logfire captures and enriches these records once configured.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", location_id="loc-1", week_start="2024-05-06")
"""

import logging

import logfire

from opsboard.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Telemetry is only shipped when a token is present; without one spans and
    logs stay local.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="opsboard",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("leaderboard_service.get_leaderboard"):
            # Your service logic here
            pass
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (location_id, tenant_id, operation_type, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_location_context(
    logger: logging.Logger,
    level: str,
    message: str,
    location_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with location context.

    Usage:
        log_with_location_context(logger, "info", "Streak extended", location_id="loc-1", current_streak=4)
    """
    context = {"location_id": location_id, **extra} if location_id else extra
    log_with_context(logger, level, message, **context)
