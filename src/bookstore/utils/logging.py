"""Logging configuration for the bookstore service.

Standard library logging owns the sinks (console plus rotating files under
LOG_DIR); structlog renders on top of it, as JSON in production and staging
and as a coloured console view everywhere else.

Request handlers bind ``method`` and ``path`` with :func:`add_context`; every
log line emitted while serving that request carries them.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

from bookstore.utils.settings import environment

LOG_FILE = "bookstore.log"
ERROR_LOG_FILE = "bookstore_error.log"

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Libraries that are chatty at DEBUG/INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "protean", "sqlalchemy.engine", "uvicorn.access")

# Values under these keys never reach a log sink
_REDACTED_KEYS = frozenset({"password", "new_password", "current_password", "authorization", "secret_key"})


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", _LEVELS.get(environment(), "INFO"))


def _rotating(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(log_dir: Path | None = None) -> None:
    """Route the root logger to stdout, the main log file and the error log."""
    level = get_log_level()
    log_dir = log_dir or Path(os.getenv("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating(log_dir / LOG_FILE, level),
        _rotating(log_dir / ERROR_LOG_FILE, logging.ERROR),
    ]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def redact_secrets(logger, method_name, event_dict):
    """structlog processor that masks credentials passed as log fields."""
    for key in _REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _renderer():
    if environment() in ("production", "staging"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
    )


def setup_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            _renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: Path | None = None) -> None:
    setup_stdlib_logging(log_dir)
    setup_structlog()
    structlog.get_logger(__name__).info("Logging configured", environment=environment(), level=get_log_level())


def add_context(**kwargs: Any) -> None:
    """Bind fields to every log line emitted from the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
