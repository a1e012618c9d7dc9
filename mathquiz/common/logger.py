"""
Application Logger

Logging for the quiz service. Every module logs through a child of
``app_logger``; game sessions log through a ``LoggerAdapter`` carrying the
session and player identifiers, which the JSON formatter lifts into each
record.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

APP_LOGGER_NAME = "mathquiz"

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Extra attribute holding structured context on a log record
CONTEXT_ATTRIBUTE = "context"

T = TypeVar('T')

__all__ = [
    'configure_logger',
    'LoggerAdapter',
    'JsonFormatter',
    'with_context',
    'app_logger',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """
    Render each record as one JSON line.

    Context passed as ``extra={"context": {...}}`` (which ``LoggerAdapter``
    does for every message) is merged into the top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_object: Dict[str, Any] = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage()
        }

        context = getattr(record, CONTEXT_ATTRIBUTE, None)
        if isinstance(context, dict):
            log_object.update(context)

        if record.exc_info and record.exc_info[0] is not None:
            log_object["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(log_object, default=str)


def configure_logger(
    name: str = APP_LOGGER_NAME,
    level: Union[str, int] = logging.INFO,
    use_json: bool = False,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure the handlers of a logger, replacing any it already has.

    Args:
        name: Logger name
        level: Log level name or number
        use_json: Write JSON lines instead of the plain text format
        log_file: Also write to this file; parent directories are created
        console_output: Write to stdout

    Returns:
        Configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter() if use_json else logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that attaches a fixed context to every record."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get('extra') or {})
        context = dict(self.extra)
        context.update(extra.get(CONTEXT_ATTRIBUTE) or {})
        extra[CONTEXT_ATTRIBUTE] = context
        kwargs['extra'] = extra
        return msg, kwargs

    def with_context(self, **context) -> 'LoggerAdapter':
        """New adapter with this adapter's context plus ``context``."""
        return LoggerAdapter(self.logger, {**self.extra, **context})


def with_context(name: Optional[str] = None, **context) -> LoggerAdapter:
    """
    Create a logger adapter with context.

    Args:
        name: Optional logger name, a child of the application logger
        context: Values attached to every record, e.g. session_id

    Returns:
        Logger adapter with context
    """
    logger = app_logger.getChild(name) if name else app_logger
    return LoggerAdapter(logger, context)


# Handlers are installed by configure_logger when the application starts
app_logger = logging.getLogger(APP_LOGGER_NAME)


def log_execution_time(
    logger: Optional[logging.Logger] = None
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator logging how long a coroutine function took.

    Success is logged at debug level, failure at error level with the
    exception re-raised.

    Args:
        logger: Logger to use, app_logger by default
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            target = logger or app_logger
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                target.error(
                    f"{func.__qualname__} failed after {time.perf_counter() - start_time:.3f} seconds: {e}"
                )
                raise
            target.debug(f"{func.__qualname__} executed in {time.perf_counter() - start_time:.3f} seconds")
            return result

        return wrapper
    return decorator
