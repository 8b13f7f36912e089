"""
IndexTank Client - Configuration

Pydantic Settings for all configuration via environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, Literal


class IndexTankSettings(BaseSettings):
    """IndexTank API configuration."""
    private_url: Optional[str] = Field(None, alias="INDEXTANK_PRIVATE_URL")
    timeout_seconds: float = Field(30.0, alias="INDEXTANK_TIMEOUT_SECONDS")
    max_request_bytes: int = Field(1_000_000, alias="INDEXTANK_MAX_REQUEST_BYTES")
    max_paging_span: int = Field(5000, alias="INDEXTANK_MAX_PAGING_SPAN")

    model_config = {"env_prefix": "", "extra": "ignore"}


class CacheSettings(BaseSettings):
    """Index metadata caching configuration."""
    enabled: bool = Field(True, alias="CACHE_ENABLED")
    ttl_metadata: int = Field(60, alias="CACHE_TTL_METADATA_SECONDS")
    max_entries: int = Field(256, alias="CACHE_MAX_ENTRIES")

    model_config = {"env_prefix": "", "extra": "ignore"}


class LogSettings(BaseSettings):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", alias="LOG_LEVEL"
    )

    model_config = {"env_prefix": "", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""
    indextank: IndexTankSettings = Field(default_factory=IndexTankSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}


def get_settings() -> Settings:
    """Load settings from environment variables."""
    from dotenv import load_dotenv
    load_dotenv()
    return Settings()
