"""
Khet Mitra - Configuration Module
Environment-driven settings for the booking API, its store and its ledger.
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Read from the environment (or `.env`); names are case-insensitive."""

    app_name: str = "Khet Mitra API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    log_level: str = "INFO"

    # Any SQLAlchemy URL. "sqlite://" keeps everything in memory.
    database_url: str = "sqlite:///./khet_mitra.db"
    database_echo: bool = False

    api_prefix: str = "/api/v1"
    cors_origins: str = "*"  # Comma-separated list in production

    # Currency put on UPI payment intents
    currency: str = "INR"

    # Reviews newer than this count as "recent"
    recent_review_days: int = 7

    # First prev_hash of every booking's history
    ledger_genesis_hash: str = "genesis_hash_khet_mitra"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
