"""
Logging setup for treewatch
"""
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional, TextIO

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Record attributes set through ``extra=`` that JSON output carries along
CONTEXT_FIELDS = ('path', 'event_kind', 'signal')

# Third-party loggers kept at WARNING
QUIET_LOGGERS = ('watchdog',)


class JsonFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class ColorFormatter(logging.Formatter):
    """Console formatter coloring the level name"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[41m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        # Other handlers share the record
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def make_formatter(log_format: str) -> logging.Formatter:
    """Formatter for ``text``, ``json`` or ``color``; unknown names fall back to text"""
    log_format = log_format.lower()
    if log_format == 'json':
        return JsonFormatter()
    if log_format == 'color':
        return ColorFormatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: str = "text",
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the root logger for a treewatch process

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Rotating log file; console only when None
        log_format: text, json or color (files never get color codes)
        max_file_size: Bytes before the log file rotates
        backup_count: Rotated files to keep
        stream: Console stream, stdout by default

    Returns:
        The root logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setFormatter(make_formatter(log_format))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=log_path,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(make_formatter('json' if log_format.lower() == 'json' else 'text'))
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    target = f" and {log_file}" if log_file else ""
    root_logger.debug(f"Logging at {logging.getLevelName(level)} ({log_format}) to console{target}")
    return root_logger


def get_logger(name: str = None) -> logging.Logger:
    return logging.getLogger(name)


def log_exception(logger: logging.Logger, exception: BaseException,
                  message: str = "Exception occurred", extra: Optional[Dict] = None):
    """
    Log an exception at ERROR with its traceback

    Args:
        logger: Logger to write to
        exception: The caught exception
        message: Message logged above the traceback
        extra: Record attributes, e.g. ``{'path': ...}``
    """
    exc_info = (type(exception), exception, exception.__traceback__)
    logger.error(message, exc_info=exc_info, extra=extra)
