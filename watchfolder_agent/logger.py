"""
Logging setup for Watch Folder Agent.

Console output is human-readable. The optional log file holds one JSON
object per line; diagnostic events carry their ``event_id`` so a cycle's
entries can be picked out of the file.
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from pythonjsonlogger.json import JsonFormatter

ROOT_LOGGER_NAME = "watchfolder_agent"
LOG_FILE_NAME = "watchfolder-agent.log"
LOG_RETENTION_DAYS = 7

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class AgentJsonFormatter(JsonFormatter):
    """JSON formatter for the agent log file."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s %(levelname)s %(name)s %(message)s',
            datefmt=DATE_FORMAT,
            rename_fields={'asctime': 'timestamp', 'levelname': 'level'}
        )

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['component'] = 'watchfolder-agent'
        log_record['pid'] = record.process


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_dir: Path, level: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)

    # Daily rotation
    handler = TimedRotatingFileHandler(
        filename=log_dir / LOG_FILE_NAME,
        when='midnight',
        backupCount=LOG_RETENTION_DAYS,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(AgentJsonFormatter())
    return handler


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    log_level: str = "INFO",
    console: bool = True
) -> logging.Logger:
    """Attach handlers to the package logger.

    Module loggers obtained with get_logger(__name__) propagate to it.
    Calling again replaces the previous handlers.

    Args:
        log_dir: Directory for the JSON log file; no file when None
        log_level: Logging level name
        console: Log to stdout

    Returns:
        The package logger
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        logger.addHandler(_console_handler(level))

    if log_dir:
        logger.addHandler(_file_handler(Path(log_dir).expanduser(), level))

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    return logging.getLogger(name)
