"""Structured logging setup: structlog processors rendered through stdlib logging."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO, Final

import structlog

_DEFAULT_LOGGER_NAME: Final[str] = "constraint_reminder"


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Renderer and threshold for activation-core decision logs."""

    level: int | str = "INFO"
    json_mode: bool = False
    logger_name: str = _DEFAULT_LOGGER_NAME
    stream: IO[str] | None = None


def setup_logging(logging_config: Mapping[str, object] | None = None) -> logging.Logger:
    """Configure logging from a ``[logging]`` mapping and return the package logger."""

    cfg = dict(logging_config or {})
    raw_level = cfg.get("level", "INFO")
    level: int | str = raw_level if isinstance(raw_level, (int, str)) else "INFO"
    return configure_logging(LoggingConfig(level=level, json_mode=bool(cfg.get("json", False))))


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Route structlog events through a single stderr handler on the package logger."""

    level = _parse_log_level(config.level)
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if config.json_mode
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(config.stream if config.stream is not None else sys.stderr)
    handler.setFormatter(formatter)

    logger = logging.getLogger(config.logger_name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


@contextmanager
def session_scope(session_id: str) -> Iterator[None]:
    """Bind ``session_id`` to every event logged inside the block."""

    with structlog.contextvars.bound_contextvars(session_id=session_id):
        yield


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


__all__ = ["LoggingConfig", "configure_logging", "session_scope", "setup_logging"]
