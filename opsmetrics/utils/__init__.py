"""Utility modules for logging and numeric coercion."""

from opsmetrics.utils.logging import analysis_scope, configure_logging, get_logger

__all__ = ["analysis_scope", "configure_logging", "get_logger"]
