"""
Centralized logging and error handling for Kavita Audit.

This module provides consistent logging configuration and custom exceptions
across the entire application.
"""

import logging
from contextlib import contextmanager
from typing import Optional, Union
from rich.logging import RichHandler
from rich.console import Console
from rich.panel import Panel

# Global console instance for the entire application
console = Console()

SENSITIVE_KEYS = ['api_key', 'apikey', 'token', 'password', 'secret', 'key']


class KavitaAuditError(Exception):
    """Base exception for all Kavita Audit errors."""
    pass


class ConfigError(KavitaAuditError):
    """Raised when there's a configuration-related error."""
    pass


class APIError(KavitaAuditError):
    """Raised when a call to the Kavita server fails."""
    pass


class ValidationError(KavitaAuditError):
    """Raised when a library record fails validation."""
    pass


class AuditLogger:
    """
    Centralized logging configuration for Kavita Audit.

    Full detail goes to the log file; the console only shows warnings and
    errors unless the level is lowered.
    """

    def __init__(self, log_file: str = "kavita_audit.log"):
        self.log_file = log_file
        self.console = console
        self._setup_root_logger()

    def _setup_root_logger(self) -> None:
        """Configure the root logger with file and console handlers."""
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # File handler (full detail) - UTF-8 so series names never break the log
        file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(file_formatter)

        console_handler = RichHandler(
            console=self.console,
            show_path=False,
            show_time=True,
            show_level=True,
            markup=True,
            keywords=[]
        )
        console_handler.setLevel(logging.WARNING)

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)

        # Clear existing handlers to avoid duplicates
        root_logger.handlers = []
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

    def _set_handler_level(self, handler_type: type, level: Union[str, int]) -> None:
        root_logger = logging.getLogger()

        numeric_level = level
        if isinstance(level, str):
            numeric_level = getattr(logging, level.upper(), logging.INFO)

        # Ensure root logger allows this level
        if numeric_level < root_logger.level:
            root_logger.setLevel(numeric_level)

        for handler in root_logger.handlers:
            if isinstance(handler, handler_type):
                handler.setLevel(numeric_level)
                break

    def set_console_level(self, level: Union[str, int]) -> None:
        """
        Set the console logging level.

        Args:
            level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING')
        """
        self._set_handler_level(RichHandler, level)

    def set_file_level(self, level: Union[str, int]) -> None:
        self._set_handler_level(logging.FileHandler, level)


# Global logger instance
_logger_instance: Optional[AuditLogger] = None


def setup_logging(log_file: str = "kavita_audit.log") -> AuditLogger:
    """
    Set up the global logging configuration.

    Args:
        log_file: Path to the log file

    Returns:
        The configured AuditLogger instance
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = AuditLogger(log_file)
    return _logger_instance


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    This should be called in each module as:
        from kavita_audit.kavita_audit.logging import get_logger
        logger = get_logger(__name__)
    """
    if _logger_instance is None:
        setup_logging()
    return logging.getLogger(name)


def set_log_level(level: Union[str, int], handler_type: str = "both") -> None:
    """
    Set the logging level for console, file, or both handlers.

    Args:
        level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING', 'ERROR')
        handler_type: 'console', 'file', or 'both'
    """
    if _logger_instance is None:
        setup_logging()

    if handler_type in ("console", "both"):
        _logger_instance.set_console_level(level)
    if handler_type in ("file", "both"):
        _logger_instance.set_file_level(level)


@contextmanager
def temporary_log_level(level: Union[str, int], handler_type: str = "console"):
    """
    Temporarily change the log level.

    Usage:
        with temporary_log_level("DEBUG"):
            ...
    """
    if _logger_instance is None:
        setup_logging()

    wanted = RichHandler if handler_type == "console" else logging.FileHandler
    root_logger = logging.getLogger()
    target = None
    for handler in root_logger.handlers:
        if isinstance(handler, wanted):
            target = handler
            break

    current_level = target.level if target is not None else None
    if target is not None:
        target.setLevel(level)
    try:
        yield
    finally:
        if target is not None:
            target.setLevel(current_level)


def log_step(message: str) -> None:
    """
    Log a major step with a visual panel.
    Logs to file as INFO, prints to console as Panel if level <= INFO.
    """
    if _logger_instance is None:
        setup_logging()

    logging.getLogger("kavita_audit.step").info(f"STEP: {message}")

    for handler in logging.getLogger().handlers:
        if isinstance(handler, RichHandler):
            if handler.level <= logging.INFO:
                _logger_instance.console.print(Panel(message, style="bold magenta"))
            break


def mask_params(params: Optional[dict]) -> str:
    if not params:
        return "None"
    safe_params = params.copy()
    for k in safe_params:
        if isinstance(k, str) and any(m in k.lower() for m in SENSITIVE_KEYS):
            safe_params[k] = "********"
    return str(safe_params)


def log_api_call(url: str, method: str, params: Optional[dict] = None) -> None:
    """
    Log an API call with sensitive data masking.
    Logs at DEBUG level.
    """
    if _logger_instance is None:
        setup_logging()

    logger = get_logger("kavita_audit.api")
    if not logger.isEnabledFor(logging.DEBUG):
        return

    logger.debug(f"API CALL: {method} {url} | Params: {mask_params(params)}")


__all__ = [
    "console",
    "KavitaAuditError",
    "ConfigError",
    "APIError",
    "ValidationError",
    "AuditLogger",
    "setup_logging",
    "get_logger",
    "set_log_level",
    "temporary_log_level",
    "log_step",
    "mask_params",
    "log_api_call",
]
