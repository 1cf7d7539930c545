"""
Exception handlers for the fitcoach server.

This package contains the handler that renders domain errors as localized JSON,
the catch-all handler for unexpected failures, and a setup function to
register them with the FastAPI application.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
