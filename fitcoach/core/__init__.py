"""
Core utilities and coaching rules for fitcoach.

This package provides logging configuration, monitoring helpers, domain errors
and the pure rule modules used by the service layer.
"""

from fitcoach.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
