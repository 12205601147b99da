# logger.py
import logging
from pathlib import Path
from typing import Literal, Optional

from config import CONFIG_MODEL

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logger(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    file_mode: Literal["w", "a"] = "w",
) -> logging.Logger:
    """
    Route the root logger to the simulation log file.

    Calling it again (e.g. from ``main`` once a YAML config is loaded) replaces
    the handlers installed at import time.

    Args:
        level: Logging level name (defaults to CONFIG_MODEL.logging_level)
        log_file: Log file path (defaults to CONFIG_MODEL.log_file)
        log_format: Record format (defaults to CONFIG_MODEL.log_format)
        file_mode: 'w' starts a fresh log per run, 'a' appends

    Returns:
        The configured root logger
    """
    level_name = (level or CONFIG_MODEL.logging_level).upper()
    target = Path(log_file or CONFIG_MODEL.log_file)
    target.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=_LEVELS.get(level_name, logging.DEBUG),
        format=log_format or CONFIG_MODEL.log_format,
        filename=str(target),
        filemode=file_mode,
        force=True,
    )
    return logging.getLogger()


def log(message: str, level: LogLevel = "DEBUG") -> None:
    """Log ``message`` on the root logger; unknown level names fall back to DEBUG."""
    logging.log(_LEVELS.get(level.upper(), logging.DEBUG), message)


logger = setup_logger()
