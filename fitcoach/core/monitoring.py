"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for monitoring and
tracing of the fitcoach backend, including:
- API endpoint tracing
- Database operation monitoring
- Outbound HTTP calls to the auth service, payment provider and email API
- Billing webhook and batch job events

The initialization is conditional based on the LOGFIRE_ENABLED environment variable.
Every ``log_*`` helper degrades to a debug log line when Logfire is unavailable.
"""

import logging
import os
from typing import Any, Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)

# Logfire configuration from environment
LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_PROJECT_NAME = os.getenv("LOGFIRE_PROJECT_NAME", "fitcoach")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "fitcoach-server")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

# Feature flags
LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_HTTPX = os.getenv("LOGFIRE_TRACE_HTTPX", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")

# Field names Logfire masks in span attributes on top of its built-in list
SCRUB_PATTERNS = ["service_role", "webhook_secret", "client_secret", "cron_secret", "access_key"]


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    Args:
        app: FastAPI application instance for FastAPI instrumentation (optional).

    Returns:
        True when Logfire was configured, False when it is disabled or failed.
    """
    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        import logfire

        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
            scrubbing=logfire.ScrubbingOptions(extra_patterns=SCRUB_PATTERNS),
        )

        if LOGFIRE_TRACE_SQLALCHEMY:
            try:
                logfire.instrument_sqlalchemy()
                logger.info("Logfire: SQLAlchemy instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument SQLAlchemy: {e}")

        if LOGFIRE_TRACE_HTTPX:
            try:
                logfire.instrument_httpx()
                logger.info("Logfire: HTTPX instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument HTTPX: {e}")

        if LOGFIRE_TRACE_FASTAPI and app is not None:
            try:
                logfire.instrument_fastapi(app=app)
                logger.info("Logfire: FastAPI instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument FastAPI: {e}")

        logger.info(
            f"Logfire monitoring initialized: "
            f"project={LOGFIRE_PROJECT_NAME}, "
            f"environment={LOGFIRE_ENVIRONMENT}, "
            f"service={LOGFIRE_SERVICE_NAME}"
        )
        return True

    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    try:
        import logfire

        logfire.info(
            "API request completed",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
    except Exception:
        logger.debug(f"Could not log API request to Logfire: {method} {path}")


def log_billing_event(event_type: str, event_id: str, handled: bool, user_id: Optional[str] = None) -> None:
    """
    Log a payment provider webhook event.

    Args:
        event_type: Provider event type (e.g. ``invoice.payment_succeeded``)
        event_id: Provider event identifier
        handled: Whether the event changed local state
        user_id: The affected user, when one was resolved
    """
    try:
        import logfire

        logfire.info(
            "Billing event processed",
            event_type=event_type,
            event_id=event_id,
            handled=handled,
            user_id=user_id,
        )
    except Exception:
        logger.debug(f"Could not log billing event to Logfire: {event_type} {event_id}")


def log_job_run(job: str, summary: dict[str, Any]) -> None:
    """
    Log the outcome of a batch job.

    Args:
        job: Job name
        summary: Counters reported by the job
    """
    try:
        import logfire

        logfire.info("Job completed", job=job, **summary)
    except Exception:
        logger.debug(f"Could not log job run to Logfire: {job}")


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    try:
        import logfire

        logfire.error(
            f"{error_type}: {error_message}",
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")
