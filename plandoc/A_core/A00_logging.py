# plandoc/A_core/A00_logging.py
"""
Centralized logging configuration for the plandoc parsing pipeline.

Provides consistent logging across all layers with:
- Colored console output keyed by log level
- Optional rotating file logs per run
- A context manager that times a named operation
- A timing decorator for hot functions
- A step logger for the multi-stage document pipeline

Usage:
    from A_core.A00_logging import get_logger, LogContext

    logger = get_logger(__name__)

    with LogContext(logger, "PDF recovery ladder"):
        ...
"""

from __future__ import annotations

import functools
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Generator, Optional, TypeVar, Union

F = TypeVar("F", bound=Callable[..., Any])

ROOT_LOGGER_NAME = "plandoc"
DEFAULT_LOG_DIR = Path("logs")
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_SIZE = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 3

COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
    "RESET": "\033[0m",
    "DIM": "\033[2m",
}


class ColoredFormatter(logging.Formatter):
    """Console formatter that tints the level name when writing to a TTY."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ) -> None:
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)
        # Work on a copy so file handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = COLORS.get(record.levelname, COLORS["RESET"])
        record.levelname = f"{color}{record.levelname}{COLORS['RESET']}"
        record.name = f"{COLORS['DIM']}{record.name}{COLORS['RESET']}"
        return super().format(record)


class PipelineLogger:
    """
    Singleton manager for the plandoc logger hierarchy.

    Attributes:
        _instance: Singleton instance.
        _initialized: Whether default attributes were set.
    """

    _instance: Optional["PipelineLogger"] = None
    _initialized: bool = False

    def __new__(cls) -> "PipelineLogger":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if PipelineLogger._initialized:
            return

        self._log_dir: Path = DEFAULT_LOG_DIR
        self._log_level: int = DEFAULT_LOG_LEVEL
        self._run_id: Optional[str] = None

        PipelineLogger._initialized = True

    def configure(
        self,
        log_dir: Optional[Union[str, Path]] = None,
        log_level: int = DEFAULT_LOG_LEVEL,
        run_id: Optional[str] = None,
        enable_file_logging: bool = False,
        enable_console_logging: bool = True,
    ) -> None:
        """
        Configure handlers on the ``plandoc`` root logger.

        Args:
            log_dir: Directory for log files. Created if missing.
            log_level: Minimum level captured by every handler.
            run_id: Identifier embedded in the log file name.
            enable_file_logging: Write a rotating per-run log file.
            enable_console_logging: Write colored output to stdout.
        """
        self._log_level = log_level
        self._run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
        if log_dir:
            self._log_dir = Path(log_dir)

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(log_level)
        root_logger.handlers.clear()

        if enable_console_logging:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(log_level)
            console_handler.setFormatter(
                ColoredFormatter(fmt="%(levelname)-8s | %(message)s", datefmt=DEFAULT_DATE_FORMAT)
            )
            root_logger.addHandler(console_handler)

        if enable_file_logging:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                self._log_dir / f"plandoc_{self._run_id}.log",
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT))
            root_logger.addHandler(file_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """Return a logger nested under the ``plandoc`` namespace."""
        if not name.startswith(ROOT_LOGGER_NAME):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    @property
    def run_id(self) -> Optional[str]:
        return self._run_id


_logger_manager = PipelineLogger()


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    log_level: int = DEFAULT_LOG_LEVEL,
    run_id: Optional[str] = None,
    enable_file_logging: bool = False,
    enable_console_logging: bool = True,
) -> None:
    """
    Configure the pipeline logging system. Call once at application startup.

    Example:
        >>> configure_logging(log_level=logging.DEBUG, enable_file_logging=True)
    """
    _logger_manager.configure(
        log_dir=log_dir,
        log_level=log_level,
        run_id=run_id,
        enable_file_logging=enable_file_logging,
        enable_console_logging=enable_console_logging,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Text extraction started")
    """
    return _logger_manager.get_logger(name)


@contextmanager
def LogContext(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
) -> Generator[None, None, None]:
    """
    Log start/end of an operation with elapsed time.

    Failures are logged and re-raised unchanged.

    Example:
        >>> with LogContext(logger, "structure analysis"):
        ...     sections = analyzer.analyze(text)
    """
    start_time = time.perf_counter()
    logger.log(level, f"Starting: {operation}")
    try:
        yield
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        logger.warning(f"Failed: {operation} ({elapsed:.2f}s) - {type(e).__name__}: {e}")
        raise
    else:
        elapsed = time.perf_counter() - start_time
        logger.log(level, f"Completed: {operation} ({elapsed:.2f}s)")


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
) -> Callable[[F], F]:
    """Decorator that logs how long the wrapped function took."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log = logger or get_logger(func.__module__)
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                log.debug(f"{func.__name__} failed after {elapsed:.3f}s: {e}")
                raise
            elapsed = time.perf_counter() - start_time
            log.log(level, f"{func.__name__} completed in {elapsed:.3f}s")
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


class StepLogger:
    """
    Numbered progress logging for a fixed sequence of pipeline steps.

    Attributes:
        logger: Underlying logger instance.
        total_steps: Number of steps announced up front.
        current_step: Index of the step currently running.
    """

    def __init__(self, logger: logging.Logger, total_steps: int, prefix: str = "") -> None:
        self.logger = logger
        self.total_steps = total_steps
        self.current_step = 0
        self.prefix = prefix
        self._step_start_time: Optional[float] = None

    def step(self, description: str) -> "StepLogger":
        """Start the next step and log its description."""
        self.current_step += 1
        self._step_start_time = time.perf_counter()
        msg = f"[{self.current_step}/{self.total_steps}] {description}"
        if self.prefix:
            msg = f"{self.prefix} {msg}"
        self.logger.debug(msg)
        return self

    def complete(self, summary: Optional[str] = None) -> float:
        """Finish the current step; returns elapsed seconds."""
        elapsed = 0.0
        if self._step_start_time:
            elapsed = time.perf_counter() - self._step_start_time
        if summary:
            self.logger.debug(f"  {summary} ({elapsed:.2f}s)")
        return elapsed


__all__ = [
    "ROOT_LOGGER_NAME",
    "ColoredFormatter",
    "PipelineLogger",
    "configure_logging",
    "get_logger",
    "LogContext",
    "timed",
    "StepLogger",
]
