"""Root logger setup.

Log records go to three places:
- ``<log_dir>/info.log``: INFO and above, with logger name and line number
- ``<log_dir>/error.log``: ERROR and above, same layout
- stdout: the configured level, short layout
"""

import logging
import sys
from pathlib import Path

import structlog

from wishgen.core.config import Settings, get_settings

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Replace the root logger's handlers with file and console handlers.

    Safe to call more than once: earlier handlers are closed first, so
    repeated app creation (tests, reloads) does not duplicate output.

    Args:
        settings: Source of ``log_dir`` and ``log_level``. Falls back to
            the global settings.

    Returns:
        The root logger.
    """
    settings = settings or get_settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)

    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))

    root.addHandler(_file_handler(settings.log_dir / "info.log", logging.INFO))
    root.addHandler(_file_handler(settings.log_dir / "error.log", logging.ERROR))
    root.addHandler(console)

    return root


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger for key/value event logging."""
    return structlog.get_logger(name)
