"""Sentry error tracking configuration."""

import functools
import logging
import os
from typing import Optional, Dict, Any

import sentry_sdk
import structlog
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from .errors import ContractError

logger = structlog.get_logger(__name__)


def setup_sentry(
    dsn: Optional[str] = None,
    environment: str = "development",
    service_name: str = "global-patents",
    service_version: str = "1.0.0",
    traces_sample_rate: float = 0.1,
) -> bool:
    """Setup Sentry error tracking. Returns False when no DSN is configured."""
    try:
        if not dsn:
            dsn = os.getenv("SENTRY_DSN")

        if not dsn:
            logger.warning("Sentry DSN not provided, error tracking disabled")
            return False

        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            release=f"{service_name}@{service_version}",
            traces_sample_rate=traces_sample_rate,
            integrations=[
                AsyncioIntegration(),
                LoggingIntegration(
                    level=logging.INFO,
                    event_level=logging.ERROR
                ),
            ],
            before_send=filter_business_errors,
            debug=environment == "development"
        )

        logger.info("Sentry error tracking initialized",
                    environment=environment,
                    service_name=service_name)
        return True

    except Exception as e:
        logger.error("Failed to setup Sentry", error=str(e))
        return False


def filter_business_errors(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Drop rejected transactions; only unexpected failures are reported."""
    exc_info = hint.get("exc_info") if hint else None
    if exc_info and isinstance(exc_info[1], ContractError):
        return None
    return event


def capture_exception(error: Exception, context: Optional[Dict[str, Any]] = None):
    """Capture an exception with additional context."""
    try:
        if context:
            with sentry_sdk.new_scope() as scope:
                for key, value in context.items():
                    scope.set_tag(key, value)
                sentry_sdk.capture_exception(error)
        else:
            sentry_sdk.capture_exception(error)

        logger.debug("Exception captured in Sentry",
                     error_type=type(error).__name__,
                     error_message=str(error))

    except Exception as e:
        logger.error("Failed to capture exception in Sentry", error=str(e))


def track_errors(func):
    """Decorator to automatically track errors of a coroutine function in Sentry."""

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            capture_exception(e, {
                "function": func.__name__,
                "module": func.__module__
            })
            raise

    return async_wrapper
