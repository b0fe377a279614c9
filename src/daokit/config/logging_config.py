"""
Logging Configuration for daokit

Provides structured logging with:
- Timestamps
- Console output on stderr (stdout carries payloads and exports)
- File rotation (1 file per day)
- Separate error log
"""

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional


# Log formats
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_dir() -> Path:
    """Log directory: ``DAOKIT_LOG_DIR`` or ``./logs``, created on first use."""
    log_dir = Path(os.getenv("DAOKIT_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
    detailed: bool = False,
    to_file: bool = True,
) -> logging.Logger:
    """
    Setup a logger with console and file handlers.

    Args:
        name: Logger name (``daokit`` configures every library module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name (defaults to name.log)
        console: Whether to log to stderr
        detailed: Whether to use detailed format (includes file/line)
        to_file: Whether to add the rotating file handlers

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("daokit", level=logging.DEBUG)
        >>> logger.info("Predicted address %s", predicted)
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    log_format = DETAILED_FORMAT if detailed else SIMPLE_FORMAT
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            formatter if detailed else logging.Formatter(CONSOLE_FORMAT)
        )
        logger.addHandler(console_handler)

    if not to_file:
        return logger

    log_dir = get_log_dir()
    if log_file is None:
        log_file = f"{name}.log"

    file_handler = TimedRotatingFileHandler(
        log_dir / log_file,
        when="midnight",
        interval=1,
        backupCount=30,  # Keep 30 days of logs
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Separate error log
    error_handler = RotatingFileHandler(
        log_dir / f"{name}_errors.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(error_handler)

    return logger


def get_command_logger(command: str, debug: bool = False, to_file: bool = True) -> logging.Logger:
    """Configure the ``daokit`` logger tree for one command invocation.

    Library modules log through ``logging.getLogger(__name__)`` and propagate
    to the ``daokit`` logger configured here; the per-command file keeps an
    audit trail of what was sent.
    """
    level = logging.DEBUG if debug else logging.INFO
    return setup_logger(
        "daokit",
        level=level,
        log_file=f"daokit_{command.replace('-', '_')}.log",
        detailed=debug,
        to_file=to_file,
    )
