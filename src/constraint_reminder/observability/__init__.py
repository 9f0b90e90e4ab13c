"""Observability helpers."""

from constraint_reminder.observability.logging import (
    LoggingConfig,
    configure_logging,
    session_scope,
    setup_logging,
)

__all__ = ["LoggingConfig", "configure_logging", "session_scope", "setup_logging"]
