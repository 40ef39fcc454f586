"""Logging configuration with correlation IDs and optional structured output.

Every pipeline run gets its own correlation ID so the log lines of one
upload (resolve, upload, parse, render) can be grouped together.
"""
import logging
import logging.handlers
import sys
import json
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional, Union
from pathlib import Path
from contextvars import ContextVar

# Context variable for correlation IDs
correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'correlation_id', 'message', 'asctime'
}


class CorrelationIDFilter(logging.Filter):
    """Filter to add correlation IDs to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or 'no-correlation-id'
        return True


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter for production logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'correlation_id': getattr(record, 'correlation_id', 'no-correlation-id'),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'thread_id': record.thread,
        }

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS
        }
        if extra_fields:
            log_entry['extra'] = extra_fields

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for development and console output."""

    def __init__(self, include_correlation_id: bool = True):
        self.include_correlation_id = include_correlation_id
        format_string = (
            '%(asctime)s - %(name)s - %(levelname)s'
            + (' - %(correlation_id)s' if include_correlation_id else '')
            + ' - %(message)s'
        )
        super().__init__(format_string)


class LoggingManager:
    """Central logging manager for the application."""

    def __init__(self):
        self._configured = False
        self._log_dir: Optional[Path] = None
        self._handlers: Dict[str, logging.Handler] = {}

    @property
    def is_configured(self) -> bool:
        return self._configured

    def configure(
        self,
        log_level: str = 'INFO',
        log_dir: Optional[Union[str, Path]] = None,
        enable_file_logging: bool = True,
        enable_console_logging: bool = True,
        structured_logging: bool = False,
        max_file_size: int = 5 * 1024 * 1024,  # 5MB
        backup_count: int = 3,
        application_name: str = 'star-annotator'
    ) -> None:
        """Configure logging for the application.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files
            enable_file_logging: Enable logging to files
            enable_console_logging: Enable console logging
            structured_logging: Use structured JSON logging
            max_file_size: Maximum size of log files before rotation
            backup_count: Number of backup files to keep
            application_name: Name used for log files
        """
        if self._configured:
            return

        level = getattr(logging, str(log_level).upper(), logging.INFO)

        if enable_file_logging:
            self._log_dir = Path(log_dir or 'logs')
            self._log_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        correlation_filter = CorrelationIDFilter()
        if structured_logging:
            formatter: logging.Formatter = StructuredFormatter()
        else:
            formatter = HumanReadableFormatter(include_correlation_id=True)

        if enable_console_logging:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            console_handler.addFilter(correlation_filter)
            root_logger.addHandler(console_handler)
            self._handlers['console'] = console_handler

        if enable_file_logging and self._log_dir:
            app_handler = logging.handlers.RotatingFileHandler(
                self._log_dir / f'{application_name}.log',
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
            app_handler.setLevel(level)
            app_handler.setFormatter(formatter)
            app_handler.addFilter(correlation_filter)
            root_logger.addHandler(app_handler)
            self._handlers['application'] = app_handler

            # Error log file (only ERROR and CRITICAL)
            error_handler = logging.handlers.RotatingFileHandler(
                self._log_dir / f'{application_name}-errors.log',
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(formatter)
            error_handler.addFilter(correlation_filter)
            root_logger.addHandler(error_handler)
            self._handlers['errors'] = error_handler

        self._configure_specific_loggers()

        self._configured = True
        logging.info(f"Logging configured - Level: {log_level}, File: {enable_file_logging}, Console: {enable_console_logging}")

    def _configure_specific_loggers(self) -> None:
        """Suppress verbose third-party library logs."""
        logging.getLogger('PIL').setLevel(logging.WARNING)
        logging.getLogger('httpx').setLevel(logging.WARNING)
        logging.getLogger('httpcore').setLevel(logging.WARNING)

    def get_correlation_id(self) -> Optional[str]:
        return correlation_id.get()

    def shutdown(self) -> None:
        """Shutdown logging and close all handlers."""
        root_logger = logging.getLogger()
        for handler in self._handlers.values():
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()
        self._configured = False


# Global logging manager instance
logging_manager = LoggingManager()


def configure_logging(**kwargs) -> None:
    """Configure application logging."""
    logging_manager.configure(**kwargs)


def get_correlation_id() -> Optional[str]:
    return logging_manager.get_correlation_id()


class CorrelationContext:
    """Context manager for correlation IDs."""

    def __init__(self, corr_id: Optional[str] = None):
        self.corr_id = corr_id
        self._token = None

    def __enter__(self) -> str:
        corr_id = self.corr_id or uuid.uuid4().hex[:12]
        self._token = correlation_id.set(corr_id)
        return corr_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        correlation_id.reset(self._token)
