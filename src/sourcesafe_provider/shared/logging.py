"""
Shared logging utilities.

This module contains the logging setup used by the provider and its CLI.
"""

import getpass
import logging
import os
import platform
import socket
import stat
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FILE_ENV = "SS_LOG_FILE_PATH"

LEVEL_MAP = {
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class CustomFormatter(logging.Formatter):
    """Custom formatter that includes username and hostname in log messages."""

    def __init__(self):
        super().__init__(
            '%(asctime)s - %(levelname)s - [%(username)s@%(hostname)s] - [%(filename)s:%(lineno)d] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.username = getpass.getuser()
        self.hostname = socket.gethostname()

    def format(self, record):
        record.username = self.username
        record.hostname = self.hostname
        return super().format(record)


class ReadOnlyRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that sets rotated files to read-only."""

    def doRollover(self):
        super().doRollover()
        if self.backupCount > 0:
            rotated_file = f"{self.baseFilename}.1"
            if os.path.exists(rotated_file):
                try:
                    if os.name == 'nt' or platform.system().lower().startswith('win'):
                        os.chmod(rotated_file, stat.S_IREAD)
                    else:
                        os.chmod(rotated_file, 0o444)
                except OSError as e:
                    logging.getLogger(__name__).warning(f"Could not set rotated log file to read-only: {e}")


def resolve_log_file(log_file_path: Optional[str] = None) -> str:
    """Pick the log file: explicit path, then SS_LOG_FILE_PATH, then a dated default."""
    if log_file_path:
        return log_file_path
    env_log_file = os.getenv(LOG_FILE_ENV)
    if env_log_file:
        return env_log_file
    return f"sourcesafe-provider-{datetime.now().strftime('%Y%m%d')}.log"


def setup_logging(verbose: bool = False, log_level: str = "INFO", log_file_path: Optional[str] = None) -> logging.Logger:
    """Setup logging configuration.

    Args:
        verbose (bool): Enable verbose logging (overrides log_level)
        log_level (str): Logging level (ERROR, WARNING, INFO, DEBUG)
        log_file_path (str): Custom log file path (optional, overrides environment variable)

    Returns:
        logging.Logger: Configured logger instance
    """
    if verbose:
        actual_level = logging.DEBUG
    else:
        actual_level = LEVEL_MAP.get(log_level.upper(), logging.INFO)

    log_file = resolve_log_file(log_file_path)

    log_path = Path(log_file)
    if log_path.parent != Path('.'):
        log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = ReadOnlyRotatingFileHandler(
        log_file, maxBytes=1_048_576, backupCount=5, encoding='utf-8', mode='a'
    )
    file_handler.setFormatter(CustomFormatter())

    logging.basicConfig(
        level=actual_level,
        handlers=[file_handler],
        force=True
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized. Log file: {log_file}")
    logger.info(f"Log level set to: {logging.getLevelName(actual_level)}")
    return logger
