"""
Logging setup for ffjob.

Console output goes through Rich; a plain-text file log can be added for
debugging long encodes. Library modules only ever call ``get_logger(__name__)``
and leave handler configuration to the application (the CLI calls
``setup_logger()``).
"""

import logging
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar, cast

from rich.console import Console
from rich.logging import RichHandler

F = TypeVar("F", bound=Callable[..., Any])

ROOT_LOGGER_NAME = "ffjob"

FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _console_handler(console: Console, level: int, verbose: bool) -> logging.Handler:
    handler = RichHandler(
        console=console,
        level=level,
        markup=True,
        rich_tracebacks=True,
        show_path=verbose,
        omit_repeated_times=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    return handler


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        name: Logger to configure; child loggers of it inherit the handlers
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Also write a plain-text log here (truncated on start)
        verbose: Force DEBUG and show source locations
        console: Rich console for output (a new stderr console if None)

    Returns:
        The configured logger
    """
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(_console_handler(console or Console(stderr=True), log_level, verbose))
    if log_file:
        logger.addHandler(_file_handler(log_file, log_level))

    # Handlers live here only; the root logger would print everything twice
    logger.propagate = False
    return logger


def log_performance(logger: Optional[logging.Logger] = None) -> Callable[[F], F]:
    """
    Decorator that logs how long a coroutine function took.

    Failures are logged with their duration and re-raised.

    Args:
        logger: Logger to report to (the package logger if None)
    """
    log = logger or logging.getLogger(ROOT_LOGGER_NAME)

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except BaseException as e:
                elapsed = time.perf_counter() - started
                log.error(f"[red]{func.__name__}[/red] failed after {elapsed:.2f}s: {e!r}")
                raise

            elapsed = time.perf_counter() - started
            log.info(f"[cyan]{func.__name__}[/cyan] completed in {elapsed:.2f}s")
            return result

        return cast(F, wrapper)

    return decorator


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Return a logger in the ``ffjob`` namespace.

    Pass ``__name__``; ``ffjob.job.base`` and friends inherit the handlers
    installed on ``ffjob`` by ``setup_logger()``.
    """
    return logging.getLogger(name)
