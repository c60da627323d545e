"""Observability utilities for tracing, metrics, and logging."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Dict, Any, Optional
from functools import wraps

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from prometheus_client import Counter, Histogram
from prometheus_client.registry import CollectorRegistry

from .errors import ContractError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def configure_logging(log_level: str = "INFO"):
    """Route structlog output through the stdlib root logger at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level.upper(), logging.INFO))


def setup_tracing(service_name: str, service_version: str = "1.0.0"):
    """Setup OpenTelemetry tracing."""
    try:
        resource = Resource.create({
            "service.name": service_name,
            "service.version": service_version,
        })

        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(provider)

        logger.info("OpenTelemetry tracing initialized", service_name=service_name)

    except Exception as e:
        logger.error("Failed to setup tracing", error=str(e))


class Metrics:
    """Prometheus metrics collection."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry

        # Transaction metrics
        self.transactions_total = Counter(
            'contract_transactions_total',
            'Total contract transactions executed',
            ['function', 'status'],
            registry=registry
        )

        self.transaction_duration = Histogram(
            'contract_transaction_duration_seconds',
            'Contract transaction duration',
            ['function'],
            registry=registry
        )

        self.transaction_errors = Counter(
            'contract_transaction_errors_total',
            'Failed contract transactions by error kind',
            ['function', 'error_kind'],
            registry=registry
        )

        # Domain metrics
        self.participants_registered = Counter(
            'participants_registered_total',
            'Total participants registered',
            ['role'],
            registry=registry
        )

        self.patent_requests = Counter(
            'patent_requests_total',
            'Patent request lifecycle transitions',
            ['transition'],
            registry=registry
        )


# Global metrics instance
metrics = Metrics(CollectorRegistry())


@asynccontextmanager
async def trace_operation(operation_name: str, attributes: Optional[Dict[str, Any]] = None):
    """Context manager for tracing operations."""
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(operation_name, attributes=attributes or {}) as span:
        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def track_transaction(function_name: str):
    """Decorator recording count, duration and error kind of a contract transaction."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
            except ContractError as e:
                metrics.transactions_total.labels(function=function_name, status="error").inc()
                metrics.transaction_errors.labels(function=function_name, error_kind=e.kind.value).inc()
                raise
            except Exception:
                metrics.transactions_total.labels(function=function_name, status="error").inc()
                raise
            finally:
                metrics.transaction_duration.labels(function=function_name).observe(time.time() - start_time)

            metrics.transactions_total.labels(function=function_name, status="success").inc()
            return result

        return wrapper

    return decorator


def log_error(error_type: str, error: Exception, **kwargs):
    """Log a structured error."""
    logger.error(f"Error: {error_type}",
                error_type=error_type,
                error_message=str(error),
                error_class=error.__class__.__name__,
                **kwargs)
