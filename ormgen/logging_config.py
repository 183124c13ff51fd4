"""Logging setup for ormgen.

Modules obtain loggers through `get_logger(__name__)`. Handlers are
attached once, to the package root logger, by `setup_logging()`.
"""

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "ormgen"
DEFAULT_LEVEL = "WARNING"
LOG_LEVEL_ENV = "ORMGEN_LOG_LEVEL"

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configured = False


def _resolve_level(level: str | int | None) -> int:
    """Turn a level name or number into a logging level."""
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LEVEL)
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Invalid log level: {level}")
    return resolved


def setup_logging(
    level: str | int | None = None,
    log_file: str | Path | None = None,
    force: bool = False,
) -> logging.Logger:
    """Configure the package logger.

    Console output goes to stderr through rich so it never mixes with
    generated code printed on stdout.

    Args:
        level: Level name or number. Defaults to $ORMGEN_LOG_LEVEL or WARNING.
        log_file: Optional file that receives plain-text log records.
        force: Replace handlers installed by an earlier call.

    Returns:
        The configured package root logger.
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _configured and not force:
        if level is not None:
            root.setLevel(_resolve_level(level))
        return root

    resolved_level = _resolve_level(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(resolved_level)
    root.propagate = False

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        root.addHandler(file_handler)

    _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger in the ormgen hierarchy."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
