"""
Logging Configuration Module.

Centralized logging for the extraction pipeline. All module loggers live
under the ``invoice_pipeline`` namespace so the CLI can tune verbosity for
the whole package at once; console output is colored with colorama and an
optional rotating log file can be enabled from settings.yaml.

Usage:
    from invoice_pipeline.utils.logger import setup_logger, get_logger

    # Initialize logging (call once at startup)
    setup_logger()

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("Acquiring text from invoice.pdf")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style

colorama.init()

ROOT_LOGGER_NAME = "invoice_pipeline"


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds a per-level color to console log output.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Red (bold)
    """

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }
    RESET = Style.RESET_ALL

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, '')
        message = super().format(record)
        return f"{color}{message}{self.RESET}"


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    colorize: bool = True
) -> logging.Logger:
    """
    Configure the package logger.

    Should be called once at application startup. Loggers obtained through
    get_logger() inherit this configuration. Calling it again replaces the
    handlers instead of stacking them.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Custom log format string.
        date_format: Custom date format string.
        log_file: Path to log file. If None, file logging is disabled.
        max_bytes: Maximum log file size before rotation.
        backup_count: Number of backup files to keep.
        colorize: Whether to colorize console output.

    Returns:
        Configured package logger.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/pipeline.log")
    """
    if log_format is None:
        log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    if date_format is None:
        date_format = "%Y-%m-%d %H:%M:%S"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(numeric_level)
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    if colorize:
        console_handler.setFormatter(ColoredFormatter(log_format, datefmt=date_format))
    else:
        console_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    package_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        package_logger.addHandler(file_handler)

    package_logger.propagate = False

    package_logger.debug("Logging initialized")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, nested under the package namespace.

    Args:
        name: Name for the logger, typically __name__.

    Returns:
        Logger instance.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger_from_config(level: Optional[str] = None) -> logging.Logger:
    """
    Initialize logging using settings from the configuration file.

    Args:
        level: Optional level overriding ``logging.level`` (used by the
               CLI's --debug and --quiet flags).

    Returns:
        Configured package logger.
    """
    from config import get_config

    log_file = None
    if get_config("logging.file.enabled", False):
        log_file = get_config("logging.file.path")

    return setup_logger(
        level=level or get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True),
    )
