"""Runtime settings for the storefront, read from environment variables."""

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    environment: str
    currency: str
    tax_rate: Decimal
    public_base_url: str
    poll_interval_seconds: float
    poll_max_attempts: int
    poll_max_seconds: float

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            environment=os.environ.get("PROTEAN_ENV", "development").lower(),
            currency=os.environ.get("CURRENCY", "SGD"),
            tax_rate=Decimal(os.environ.get("TAX_RATE", "0.08")),
            public_base_url=os.environ.get("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
            poll_interval_seconds=float(os.environ.get("CHECKOUT_POLL_INTERVAL", "3")),
            poll_max_attempts=int(os.environ.get("CHECKOUT_POLL_MAX_ATTEMPTS", "100")),
            poll_max_seconds=float(os.environ.get("CHECKOUT_POLL_MAX_SECONDS", "300")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings (cached after the first read)."""
    return Settings.from_env()
