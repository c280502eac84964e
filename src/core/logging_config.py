"""
Logging configuration for production use.

Provides structured logging with file and console output.
Integrates with config for environment-specific log levels.
"""

import logging
import logging.handlers
from typing import Iterable, List, Optional

from .config import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Top-level packages whose loggers share the application handlers
APP_LOGGER_NAMES = ("src", "backend", "llm")


def setup_logging(logger_name: str = "regulator_sentinel", level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a logger instance.
    
    Args:
        logger_name: Name of the logger (typically the package name)
        level: Optional level override (defaults to config.log_level)
    
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    
    # Don't add handlers if logger already configured
    if logger.handlers:
        return logger
    
    level = level or config.log_level
    logger.setLevel(level)
    
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    
    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    # File handler (size rotated)
    log_file = config.logs_dir / f"{logger_name}.log"
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    
    return logger


def setup_application_logging(
    names: Iterable[str] = APP_LOGGER_NAMES, level: Optional[str] = None
) -> List[logging.Logger]:
    """Configure every application package logger in one call."""
    return [setup_logging(name, level) for name in names]
