"""Logging configuration and utilities."""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path

from ..config.settings import BackupConfig

PACKAGE_LOGGER = "drive_backup"

# Chatty third-party loggers kept at WARNING unless running verbose
_NOISY_LOGGERS = ("urllib3", "requests")


def setup_logging(
    config: BackupConfig,
    verbose: bool = False,
    log_to_console: bool = True,
    logger_name: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """Configure the package logger from the backup settings.

    Level, log file and rotation limits come from ``config``; ``verbose``
    forces DEBUG and lets the HTTP stack log too.

    Returns:
        Configured logger
    """
    level = logging.DEBUG if verbose else getattr(logging, config.log_level)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if config.log_file:
        log_file = Path(config.log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger


class TimedOperation:
    """Context manager for timing operations and logging results."""

    def __init__(self, logger: logging.Logger, operation_name: str, log_level: str = "INFO"):
        """Initialize timed operation.

        Args:
            logger: Logger to use
            operation_name: Name of the operation
            log_level: Log level for timing messages
        """
        self.logger = logger
        self.operation_name = operation_name
        self.log_level = getattr(logging, log_level.upper())
        self.start_time = None
        self.duration = 0.0

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.log(self.log_level, f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            self.duration = (datetime.now() - self.start_time).total_seconds()
            if exc_type is None:
                self.logger.log(self.log_level, f"Completed {self.operation_name} in {self.duration:.2f}s")
            else:
                self.logger.error(f"Failed {self.operation_name} after {self.duration:.2f}s: {exc_val}")
