"""
Unified logging setup.

Console output goes through rich; a rotating log file is added when
BUBBLE_LOG_DIR is set.
"""
from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
import typing as t

from rich.logging import RichHandler

LOG_FILE_NAME = "bubblelife.log"
MAX_FILE_SIZE = 10 * 1024 * 1024
BACKUP_COUNT = 5


class LoggerManager:
    """Configures the root logger once and hands out named loggers."""

    def __init__(self) -> None:
        self._loggers: dict[str, logging.Logger] = {}
        self._setup_root_logger()

    def _setup_root_logger(self) -> None:
        log_level = os.getenv("BUBBLE_LOG_LEVEL", "INFO").upper()
        logs_dir = os.getenv("BUBBLE_LOG_DIR")

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level, logging.INFO))

        # Replace only the handlers we installed earlier
        for handler in list(root_logger.handlers):
            if getattr(handler, "_bubble_handler", False):
                root_logger.removeHandler(handler)

        console_handler = RichHandler(rich_tracebacks=True, show_path=False)
        console_handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
        console_handler._bubble_handler = True
        root_logger.addHandler(console_handler)

        if logs_dir:
            Path(logs_dir).mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                Path(logs_dir) / LOG_FILE_NAME,
                maxBytes=MAX_FILE_SIZE,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
                )
            )
            file_handler._bubble_handler = True
            root_logger.addHandler(file_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """Get logger with specified name"""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]


_logger_manager: t.Optional[LoggerManager] = None


def get_logger(name: str) -> logging.Logger:
    """Convenience function to get a logger, configuring logging on first use."""
    global _logger_manager

    if _logger_manager is None:
        _logger_manager = LoggerManager()

    return _logger_manager.get_logger(name)

