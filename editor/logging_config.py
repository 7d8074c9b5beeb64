"""Logging for the editor process.

The terminal owns stdout and the screen, so log records go to stderr or,
when one is configured, to a log file.
"""

import logging
import os
import sys
import time
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import Callable, Generator, Optional, TypeVar

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d: %(message)s"

# Libraries whose INFO chatter drowns out the client's own records
QUIET_LOGGERS = ("asyncio",)

T = TypeVar("T")


def resolve_level(level: Optional[str] = None) -> int:
    """Map a level name (or LOG_LEVEL, or INFO) to a logging level; unknown names mean INFO."""
    name = (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Optional[str] = None, log_file: Optional[str | Path] = None) -> None:
    """Route all records to stderr, or append them to ``log_file``.

    Calling it again replaces the previous handlers, so a level or file read
    from configuration can take over from the command-line defaults.
    """
    log_level = resolve_level(level)

    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            DEBUG_LOG_FORMAT if log_level <= logging.DEBUG else LOG_FORMAT,
            datefmt="%H:%M:%S",
        )
    )

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str, level: int = logging.DEBUG
) -> Generator[None, None, None]:
    """Log how long the enclosed block took, whether or not it raised."""
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.log(level, "%s completed in %.1fms", operation, (time.perf_counter() - start) * 1000)


def timed(
    operation: Optional[str] = None, level: int = logging.DEBUG
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of ``log_timing`` for coroutine methods."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = logging.getLogger(func.__module__)
        name = operation or func.__name__

        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            with log_timing(logger, name, level):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
