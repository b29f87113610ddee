"""Logging infrastructure for UnitDesk."""

from .correlation import (
    CorrelationIdFilter,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)
from .file_logger import FileLogger, configure_external_loggers, setup_file_logging
from .logger_config import (
    get_logger,
    setup_logging,
    setup_logging_from_settings,
    shutdown_logging,
)

__all__ = [
    "FileLogger",
    "setup_file_logging",
    "configure_external_loggers",
    "get_logger",
    "setup_logging",
    "setup_logging_from_settings",
    "shutdown_logging",
    "CorrelationIdFilter",
    "correlation_scope",
    "get_correlation_id",
    "set_correlation_id",
]
