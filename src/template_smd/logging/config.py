import os
import logging
import logging.handlers
from typing import Optional
from pathlib import Path
import json
from datetime import datetime, timezone

PACKAGE_LOGGER = "template_smd"

# Record attributes the engine attaches to its own log calls
TEMPLATE_FIELDS = ("template", "partial")


class LogConfig:
    """Logging configuration for the template_smd logger hierarchy."""

    def __init__(
        self,
        log_level: str = 'INFO',
        log_file: Optional[str] = None,
        log_format: Optional[str] = None,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        json_logging: bool = False
    ):
        """
        Initialize the logging configuration.

        Args:
            log_level: Logging level
            log_file: Optional log file path
            log_format: Optional log format string
            max_bytes: Maximum size of log file before rotation
            backup_count: Number of backup files to keep
            json_logging: Whether to use JSON logging format
        """
        self.log_level = getattr(logging, log_level.upper())
        self.log_file = log_file
        self.log_format = log_format or (
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.json_logging = json_logging

    def configure(self) -> logging.Logger:
        """Configure the package logger with the specified settings."""
        if self.json_logging:
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(self.log_format)

        handlers = []

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(self.log_level)
        handlers.append(console_handler)

        if self.log_file:
            log_dir = os.path.dirname(self.log_file)
            if log_dir:
                Path(log_dir).mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=self.max_bytes,
                backupCount=self.backup_count
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(self.log_level)
            handlers.append(file_handler)

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(self.log_level)

        # Remove existing handlers
        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)

        for handler in handlers:
            package_logger.addHandler(handler)

        return package_logger


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string
        """
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Set by the engine through ``extra={"template": path}`` or ``extra={"partial": name}``
        for key in TEMPLATE_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        # Fields passed through ``extra={"extra": {...}}``
        if isinstance(getattr(record, 'extra', None), dict):
            log_data.update(record.extra)

        return json.dumps(log_data)
