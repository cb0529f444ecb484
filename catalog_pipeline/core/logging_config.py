"""
Logging configuration for the cleaning and aggregation pipeline.
"""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import settings

# Log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str, level: Optional[str] = None, log_dir: Optional[str] = None) -> logging.Logger:
    """
    Set up a logger with a console handler and, when a log directory is
    configured, a rotating file handler.

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); defaults to settings.LOG_LEVEL
        log_dir: Directory for log files; defaults to settings.LOG_DIR

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper())
    logger.setLevel(log_level)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    directory = log_dir or settings.LOG_DIR
    if directory:
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path / f"{name.replace('.', '_')}.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger
