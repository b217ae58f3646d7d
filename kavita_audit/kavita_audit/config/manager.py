"""
Centralized configuration management for Kavita Audit.

This module provides type-safe, validated configuration using Pydantic.
Values come from the environment (and a .env file) so the audit can run
without prompting.
"""

from pathlib import Path
from typing import Optional, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    DEFAULT_LOG_FILENAME,
    DEFAULT_REPORT_FILENAME,
    KAVITA_PLUGIN_NAME,
    KAVITA_RETRY_COUNT,
    KAVITA_TIMEOUT_SECONDS,
)


class KavitaConfig(BaseSettings):
    """Configuration for the Kavita server connection"""

    model_config = SettingsConfigDict(
        env_prefix="KAVITA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore fields that don't belong to this config
    )

    opds_url: Optional[str] = Field(default=None, description="OPDS feed URL (<base>/api/opds/<apiKey>)")
    library_id: Optional[str] = Field(default=None, description="Library to audit")
    timeout: int = Field(default=KAVITA_TIMEOUT_SECONDS, description="API timeout in seconds")
    max_retries: int = Field(default=KAVITA_RETRY_COUNT, description="Maximum number of retries")
    plugin_name: str = Field(default=KAVITA_PLUGIN_NAME, description="Plugin name sent on authentication")

    @field_validator('timeout', 'max_retries')
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Value must not be negative")
        return v


class LoggingConfig(BaseSettings):
    """Configuration for logging behavior"""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    file_level: str = Field(default="INFO", description="File logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    log_file: str = Field(default=DEFAULT_LOG_FILENAME, description="Log file path")

    @field_validator('file_level', 'console_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the allowed values"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class ReportConfig(BaseSettings):
    """Configuration for the anomaly report"""

    model_config = SettingsConfigDict(
        env_prefix="REPORT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    file: str = Field(default=DEFAULT_REPORT_FILENAME, description="Report file path")
    show_console: bool = Field(default=True, description="Echo each series report to the console")


class KavitaAuditConfig(BaseSettings):
    """
    Main configuration class for Kavita Audit.

    This class serves as the single source of truth for all configuration.
    It automatically loads from environment variables and .env files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    kavita: KavitaConfig = Field(default_factory=KavitaConfig, description="Kavita server configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")
    report: ReportConfig = Field(default_factory=ReportConfig, description="Report configuration")


# Global configuration instance
_config_instance: Optional[KavitaAuditConfig] = None


def setup_config(
    env_file: Optional[Union[str, Path]] = None,
    **kwargs
) -> KavitaAuditConfig:
    """
    Set up the global configuration.

    Args:
        env_file: Path to .env file
        **kwargs: Additional configuration overrides

    Returns:
        KavitaAuditConfig instance
    """
    global _config_instance

    config_kwargs = {}
    if env_file:
        config_kwargs["_env_file"] = str(env_file)

    config_kwargs.update(kwargs)

    _config_instance = KavitaAuditConfig(**config_kwargs)
    return _config_instance


def get_config() -> KavitaAuditConfig:
    global _config_instance
    if _config_instance is None:
        _config_instance = KavitaAuditConfig()
    return _config_instance


def reload_config() -> KavitaAuditConfig:
    """Reload configuration from environment and .env files."""
    global _config_instance
    _config_instance = KavitaAuditConfig()
    return _config_instance


# Convenience functions for common configuration access
def get_kavita_config() -> KavitaConfig:
    return get_config().kavita


def get_logging_config() -> LoggingConfig:
    return get_config().logging


def get_report_config() -> ReportConfig:
    return get_config().report


__all__ = [
    "KavitaConfig",
    "LoggingConfig",
    "ReportConfig",
    "KavitaAuditConfig",
    "setup_config",
    "get_config",
    "reload_config",
    "get_kavita_config",
    "get_logging_config",
    "get_report_config",
]
