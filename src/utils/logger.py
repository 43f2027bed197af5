"""Logging configuration."""
import logging
import sys
from pathlib import Path
from typing import Optional
from src.config.settings import settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level_name: Optional[str]) -> int:
    """Map a level name like 'debug' or 'INFO' to a logging level (INFO if unknown)."""
    level = logging.getLevelName((level_name or "").upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(
    name: str = "reactlyve",
    level: int = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Setup and configure a logger.

    Console output goes to stdout; the file handler records INFO and
    above regardless of the console level, so worker runs can be audited
    after the fact.

    Args:
        name: Logger name
        level: Logging level (defaults to settings.LOG_LEVEL)
        log_file: Path to log file (defaults to settings.LOG_FILE; empty disables it)

    Returns:
        Configured logger instance
    """
    logger_instance = logging.getLogger(name)

    if level is None:
        level = resolve_level(settings.LOG_LEVEL)
    logger_instance.setLevel(level)

    # Avoid adding duplicate handlers
    if logger_instance.handlers:
        return logger_instance

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    logger_instance.addHandler(console_handler)

    if log_file is None:
        log_file = settings.LOG_FILE

    if log_file:
        file_path = Path(log_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(file_path)
        file_handler.setLevel(max(level, logging.INFO))
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger_instance.addHandler(file_handler)

    # Prevent propagation to root logger
    logger_instance.propagate = False

    return logger_instance


def get_logger(name: str = "reactlyve") -> logging.Logger:
    """Get an existing logger or create a new one."""
    logger_instance = logging.getLogger(name)
    if not logger_instance.handlers:
        return setup_logger(name)
    return logger_instance


# Default logger instance
logger = setup_logger()
