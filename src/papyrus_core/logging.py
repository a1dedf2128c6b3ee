"""
Logging configuration and utilities for papyrus-core
"""
import inspect
import logging
import logging.config
import sys
from pathlib import Path
from typing import Optional
import json
import os
import time
from functools import wraps


LOGGER_NAME = 'papyrus_core'

_STANDARD_RECORD_KEYS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage',
    'exc_info', 'exc_text', 'stack_info', 'taskName', 'message', 'asctime',
}


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_format: bool = False,
) -> logging.Logger:
    """
    Set up logging configuration for papyrus-core.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file to write logs to
        json_format: Use JSON format for structured logging

    Returns:
        Configured logger instance
    """
    formatter = {'()': JsonFormatter} if json_format else {
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    }

    logging_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': formatter,
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': level,
                'formatter': 'standard',
                'stream': sys.stdout,
            },
        },
        'loggers': {
            LOGGER_NAME: {
                'level': level,
                'handlers': ['console'],
                'propagate': False,
            },
        },
    }

    # Add file handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logging_config['handlers']['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': level,
            'formatter': 'standard',
            'filename': str(log_file),
            'maxBytes': 10 * 1024 * 1024,  # 10MB
            'backupCount': 5,
        }
        logging_config['loggers'][LOGGER_NAME]['handlers'].append('file')

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger(LOGGER_NAME)
    logger.info(f"Logging initialized with level: {level}")
    if log_file:
        logger.info(f"Log file: {log_file}")

    return logger


class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def _log_outcome(logger: logging.Logger, name: str, start_time: float, error: Optional[Exception] = None) -> None:
    duration = time.time() - start_time
    extra = {
        'operation': name,
        'duration': duration,
        'duration_ms': round(duration * 1000, 2),
        'success': error is None,
    }
    if error is None:
        logger.info(f"Function '{name}' completed successfully", extra=extra)
    else:
        extra['error'] = str(error)
        extra['error_type'] = type(error).__name__
        logger.error(f"Function '{name}' failed", extra=extra)


def timed_operation(operation_name: str = None):
    """Decorator to time function or coroutine execution."""
    def decorator(func):
        name = operation_name or f"{func.__module__}.{func.__name__}"

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                logger = logging.getLogger(f'{LOGGER_NAME}.performance')
                start_time = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _log_outcome(logger, name, start_time, e)
                    raise
                _log_outcome(logger, name, start_time)
                return result
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(f'{LOGGER_NAME}.performance')
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_outcome(logger, name, start_time, e)
                raise
            _log_outcome(logger, name, start_time)
            return result
        return wrapper
    return decorator


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Get a configured logger instance."""
    return logging.getLogger(name)


def configure_logging_from_env() -> logging.Logger:
    """Configure logging from environment variables."""
    level = os.getenv('PAPYRUS_LOG_LEVEL', 'INFO').upper()
    log_file = os.getenv('PAPYRUS_LOG_FILE')
    json_format = os.getenv('PAPYRUS_LOG_JSON', 'false').lower() == 'true'

    log_file_path = Path(log_file) if log_file else None

    return setup_logging(
        level=level,
        log_file=log_file_path,
        json_format=json_format
    )
