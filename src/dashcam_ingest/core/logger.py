"""Logging setup for dashcam_ingest.

All modules log through children of the ``dashcam_ingest`` logger. Console
output goes through Rich on stderr so it never mixes with command output
written to stdout; an optional rotating file log keeps a history of
detection and extraction runs.

Example:
    >>> from dashcam_ingest.core.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Detected vendor %s", "BlackVue")

    >>> from dashcam_ingest.core.logger import configure_logging
    >>> configure_logging(level="DEBUG", file_output=False)
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER_NAME = "dashcam_ingest"
LOG_FILE_NAME = "dashcam_ingest.log"

DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "dashcam_ingest" / "logs"
DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = "[%(asctime)s] %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

CONSOLE_THEME = Theme(
    {
        "logging.level.debug": "dim cyan",
        "logging.level.info": "green",
        "logging.level.warning": "yellow",
        "logging.level.error": "bold red",
        "logging.level.critical": "bold white on red",
    }
)

_log_dir: Path = DEFAULT_LOG_DIR
_log_level: int = DEFAULT_LOG_LEVEL
_initialized: bool = False
_console: Console | None = None


def _resolve_level(level: int | str) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else DEFAULT_LOG_LEVEL
    return level


def _get_console() -> Console:
    global _console
    if _console is None:
        _console = Console(theme=CONSOLE_THEME, stderr=True)
    return _console


def _create_file_handler() -> RotatingFileHandler:
    """Create a size-rotated file handler in the current log directory."""
    _log_dir.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(_log_dir / LOG_FILE_NAME),
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT))
    handler.setLevel(_log_level)
    return handler


def _create_console_handler() -> RichHandler:
    handler = RichHandler(
        console=_get_console(),
        show_time=False,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(_log_level)
    return handler


def configure_logging(
    level: int | str = DEFAULT_LOG_LEVEL,
    log_dir: Path | None = None,
    console_output: bool = True,
    file_output: bool = False,
) -> None:
    """Configure the ``dashcam_ingest`` logger.

    Can be called again to reconfigure; existing handlers are replaced.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or numeric level.
        log_dir: Directory for the rotating log file.
        console_output: Attach a Rich handler writing to stderr.
        file_output: Attach a rotating file handler.
    """
    global _log_dir, _log_level, _initialized

    _log_level = _resolve_level(level)
    if log_dir is not None:
        _log_dir = log_dir

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(_log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if console_output:
        root_logger.addHandler(_create_console_handler())
    if file_output:
        root_logger.addHandler(_create_file_handler())

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``dashcam_ingest`` namespace.

    Logging is configured with defaults (console only, WARNING) on first
    use if the application has not configured it yet.

    Args:
        name: Logger name, typically ``__name__``.

    Returns:
        The named child logger.
    """
    if not _initialized:
        configure_logging()

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: int | str) -> None:
    """Change the level of the root logger and all of its handlers."""
    global _log_level

    _log_level = _resolve_level(level)
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(_log_level)
    for handler in root_logger.handlers:
        handler.setLevel(_log_level)


def get_log_file_path() -> Path:
    """Get the path of the rotating log file."""
    return _log_dir / LOG_FILE_NAME


__all__ = [
    "DEFAULT_LOG_DIR",
    "DEFAULT_LOG_LEVEL",
    "ROOT_LOGGER_NAME",
    "configure_logging",
    "get_log_file_path",
    "get_logger",
    "set_log_level",
]
