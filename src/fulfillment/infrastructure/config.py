"""Application settings, read from ``FULFILLMENT_*`` environment variables
or a local ``.env`` file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data directory: <project root>/data when installed in editable mode.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FULFILLMENT_",
        env_file=".env",
        extra="ignore",
    )

    # Storage
    data_dir: Path = _DEFAULT_DATA_DIR

    # Catalog
    currency: str = "USD"

    # Logging
    log_level: str = "WARNING"

    # Inventory ledger
    ledger_max_attempts: int = 10

    # Orders
    stale_order_hours: int = 48
    max_line_items: int = 50


@lru_cache
def get_settings() -> Settings:
    return Settings()
