"""Process-level setup for hosting the contract."""

from typing import Optional

import structlog

from .config import Settings
from .contracts.global_patents import GlobalPatentsContract
from .utils.error_tracking import setup_sentry
from .utils.observability import configure_logging, setup_tracing

logger = structlog.get_logger(__name__)


def bootstrap(settings: Optional[Settings] = None, tracing: bool = False) -> GlobalPatentsContract:
    """Configure logging, error tracking and optionally tracing, then build the contract."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    setup_sentry(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        service_name=settings.service_name,
        service_version=settings.service_version,
    )
    if tracing:
        setup_tracing(settings.service_name, settings.service_version)

    contract = GlobalPatentsContract(settings)
    logger.info("Contract ready",
                contract=contract.name,
                transactions=sorted(contract.transactions),
                enforce_unique_ids=settings.enforce_unique_ids)
    return contract
