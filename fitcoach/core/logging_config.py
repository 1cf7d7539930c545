"""
Logging Configuration Module.

Centralized logging for fitcoach. Every handler shares one formatter and one
redaction filter, so bearer tokens, payment keys and webhook secrets never
reach the console or the log files, whatever module logs them.

Features:
- Per-module log levels
- Console logging, plus a size-rotated file under ``LOG_FILE_DIR``
- ``simple``, ``detailed`` or one-object-per-line ``json`` output
"""

import json
import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


def _get_logging_config():
    """Get logging configuration from settings model.

    Deferred so this module can be imported before the settings are valid.
    """
    try:
        from fitcoach.server.core.config import settings

        return {
            "log_level": settings.log_level.upper(),
            "log_format": settings.log_format,
            "log_file_dir": settings.log_file_dir,
            "enable_file_logging": settings.enable_file_logging,
        }
    except Exception:
        # Fallback to environment variables if settings not available
        return {
            "log_level": os.getenv("FITCOACH_LOG_LEVEL", "INFO").upper(),
            "log_format": os.getenv("LOG_FORMAT", "detailed"),
            "log_file_dir": os.getenv("LOG_FILE_DIR", "logs"),
            "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "false").lower() in ("true", "1", "yes"),
        }


_config = _get_logging_config()
LOG_LEVEL = _config["log_level"]
LOG_FORMAT = _config["log_format"]
LOG_FILE_DIR = _config["log_file_dir"]
ENABLE_FILE_LOGGING = _config["enable_file_logging"]

LOG_FILE_NAME = "fitcoach.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

REDACTED = "[REDACTED]"

# (pattern, replacement) pairs applied to every rendered message
SECRET_PATTERNS = [
    (re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.I), r"\1" + REDACTED),
    (re.compile(r"\b(sk|rk)_(live|test)_[A-Za-z0-9]+"), REDACTED),
    (re.compile(r"\bwhsec_[A-Za-z0-9]+"), REDACTED),
    (re.compile(r"\bre_[A-Za-z0-9]{8,}"), REDACTED),
    (re.compile(r"(\"?password\"?\s*[:=]\s*\"?)[^\",\s}]+", re.I), r"\1" + REDACTED),
]

MODULE_LOG_LEVELS = {
    "fitcoach.core": "INFO",
    "fitcoach.core.database": "INFO",
    "fitcoach.clients": "DEBUG",
    "fitcoach.server": "INFO",
    "fitcoach.server.api": "DEBUG",
    "fitcoach.server.services": "DEBUG",
    "fitcoach.server.services.billing": "INFO",
    "fitcoach.server.services.progression": "INFO",
    # Third-party libraries (reduce noise)
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "httpx": "WARNING",
    "asyncio": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def redact(message: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class SecretRedactingFilter(logging.Filter):
    """Rewrite the record's message with secrets masked.

    The message is rendered once with its args, so secrets passed as
    ``%s`` arguments are caught as well.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        rendered = record.getMessage()
        cleaned = redact(rendered)
        if cleaned != rendered:
            record.msg = cleaned
            record.args = None
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with the request context passed via ``extra``."""

    # Attributes every LogRecord has; anything else came from ``extra``
    _STANDARD = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "module": record.filename,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in self._STANDARD and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter(datefmt=DATE_FORMAT)
    if fmt == "simple":
        return logging.Formatter(SIMPLE_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure logging for the application.

    File logging needs both ``enable_file`` and ``ENABLE_FILE_LOGGING``.

    Args:
        log_level: Override default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override default format (simple, detailed, json)
        enable_file: Whether to enable file logging
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT

    formatter = build_formatter(fmt)
    redacting = SecretRedactingFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all levels, filter at handler level

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(redacting)
    root_logger.addHandler(console_handler)

    file_logging = enable_file and ENABLE_FILE_LOGGING
    if file_logging:
        Path(LOG_FILE_DIR).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            Path(LOG_FILE_DIR) / LOG_FILE_NAME,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(redacting)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={file_logging}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)
