"""Logging configuration for the Retail domain.

Customers are identified by their mobile number, so every log line passes
through ``mask_customer_numbers`` before it is rendered: only the last four
digits of a customer id or mobile number ever reach a handler.

Handlers are plain ``logging`` ones. The console is always attached, and the
rotating ``<prefix>.log`` / ``<prefix>_error.log`` pair is added when a log
directory is configured (``LOG_DIR``, defaulting to ``logs`` outside tests).
"""

import logging
import logging.handlers
import os
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog

_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Event keys whose values are customer mobile numbers
MASKED_KEYS = frozenset({"customer_id", "mobile_number"})
_VISIBLE_DIGITS = 4

_MAX_LOG_BYTES = 10 * 1024 * 1024
_LOG_BACKUPS = 5

_QUIET_LOGGERS = ("protean", "asyncio", "httpx")


def current_env() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def get_log_level(level: str | None = None) -> str:
    """Resolve the log level: explicit argument, then LOG_LEVEL, then the environment default."""
    if level:
        return level.upper()
    return os.getenv("LOG_LEVEL", _LEVELS_BY_ENV.get(current_env(), "INFO")).upper()


def resolve_log_dir(log_dir: str | None = None) -> Path | None:
    """Directory for rotating log files, or ``None`` when only the console is wanted.

    Tests log to the console alone unless ``LOG_DIR`` says otherwise; an empty
    ``LOG_DIR`` turns file logging off everywhere.
    """
    if log_dir is None:
        log_dir = os.getenv("LOG_DIR", "" if current_env() == "test" else "logs")
    return Path(log_dir) if log_dir else None


def mask_number(value: Any) -> Any:
    """``"9876543210"`` -> ``"******3210"``. Values that are not digit strings pass through."""
    text = str(value)
    if not text.isdigit() or len(text) <= _VISIBLE_DIGITS:
        return value
    return "*" * (len(text) - _VISIBLE_DIGITS) + text[-_VISIBLE_DIGITS:]


def mask_customer_numbers(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]):
    """structlog processor that masks customer mobile numbers in the event and bound context."""
    for key in MASKED_KEYS & event_dict.keys():
        event_dict[key] = mask_number(event_dict[key])
    return event_dict


def _rotating_handler(path: Path, level: int | str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(
    level: str | None = None, log_dir: str | None = None, log_file_prefix: str = "retail"
) -> list[logging.Handler]:
    log_level = get_log_level(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    handlers: list[logging.Handler] = [console_handler]

    directory = resolve_log_dir(log_dir)
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(directory / f"{log_file_prefix}.log", log_level))
        handlers.append(_rotating_handler(directory / f"{log_file_prefix}_error.log", logging.ERROR))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = handlers

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handlers


def setup_structlog() -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        mask_customer_numbers,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if current_env() in ("production", "staging"):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str | None = None, log_dir: str | None = None, log_file_prefix: str = "retail") -> None:
    """Configure stdlib handlers and structlog for the application."""
    setup_stdlib_logging(level=level, log_dir=log_dir, log_file_prefix=log_file_prefix)
    setup_structlog()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(**kwargs: Any) -> None:
    """Bind values that appear on every subsequent log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


@contextmanager
def request_log_context(**kwargs: Any) -> Iterator[None]:
    """Start a fresh log context for one request and drop it when the request ends."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.clear_contextvars()
