"""Logging setup shared by all modules."""

from .logger import configure_logging, get_logger, log_performance, logger

__all__ = ["configure_logging", "get_logger", "log_performance", "logger"]
