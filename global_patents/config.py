"""Runtime configuration for the global patents contract."""

import os
from typing import Optional

from pydantic import BaseModel


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Contract settings."""
    service_name: str = "global-patents"
    service_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    sentry_dsn: Optional[str] = None
    # Reject registrations / patent requests whose id already exists on the ledger
    enforce_unique_ids: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            service_name=os.getenv("GLOBAL_PATENTS_SERVICE_NAME", "global-patents"),
            environment=os.getenv("GLOBAL_PATENTS_ENVIRONMENT", "development"),
            log_level=os.getenv("GLOBAL_PATENTS_LOG_LEVEL", "INFO"),
            sentry_dsn=os.getenv("SENTRY_DSN"),
            enforce_unique_ids=_env_flag("GLOBAL_PATENTS_ENFORCE_UNIQUE_IDS"),
        )
