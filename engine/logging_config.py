"""Logging configuration module for the timer engine.

This module provides centralized logging configuration so the engine,
the timer domain and the notifier thread all log consistently.
"""

import logging
import os
import re
from inspect import getmodulename

from engine.engine_config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(module_name)s] %(message)s"


class CustomLogRecord(logging.LogRecord):
    """Log record carrying the short module name of its origin."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.module_name = getmodulename(self.pathname) or self.module


def _prepare_log_file(log_file: str, max_size_bytes: int) -> str:
    """Normalize the log file path, create it, and trim it to its size cap.

    Args:
        log_file: Configured log file path
        max_size_bytes: Size above which the oldest content is dropped

    Returns:
        Absolute path of the log file
    """
    log_file = os.path.expanduser(log_file.strip())

    # Collapse repeated slashes
    log_file = re.sub(r"/+", "/", log_file)

    if not os.path.isabs(log_file):
        log_file = os.path.join(os.getcwd(), log_file)

    log_dir = os.path.dirname(log_file)
    os.makedirs(log_dir, exist_ok=True)

    if not os.path.exists(log_file):
        open(log_file, "w").close()

    if os.path.getsize(log_file) > max_size_bytes:
        with open(log_file, "r+") as f:
            data = f.read()
            f.seek(0)
            f.write(data[len(data) - max_size_bytes :])
            f.truncate()

    return log_file


def configure_logging(logging_config: LoggingConfig):
    """Configure logging based on the provided logging configuration.

    Args:
        logging_config: Configuration object containing logging settings.
    """
    log_level = logging.getLevelName(logging_config.log_level.upper())
    log_file_max_size = logging_config.log_file_max_size * 1024 * 1024

    logging.setLogRecordFactory(CustomLogRecord)
    handlers = []

    if logging_config.log_file:
        log_file = _prepare_log_file(logging_config.log_file, log_file_max_size)
        handlers.append(logging.FileHandler(log_file))

    if not logging_config.disable_console_logging:
        handlers.append(logging.StreamHandler())

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name, level in (logging_config.loggers or {}).items():
        logging.getLogger(name).setLevel(logging.getLevelName(level.upper()))
