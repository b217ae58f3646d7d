"""
Configuration package for Kavita Audit.

This package provides centralized, type-safe configuration management.
"""

from .manager import (
    KavitaConfig,
    LoggingConfig,
    ReportConfig,
    KavitaAuditConfig,
    setup_config,
    get_config,
    reload_config,
    get_kavita_config,
    get_logging_config,
    get_report_config,
)

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
