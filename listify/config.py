from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGISTRY_PATH = Path(__file__).parent / "catalog" / "locations.yaml"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    environment: str = Field(default="development", alias="NODE_ENV")
    site_name: str = Field(default="Property Listify", alias="SITE_NAME")
    app_url: str = Field(default="https://propertylistify.com", alias="APP_URL")
    allowed_origins: List[str] = Field(
        default_factory=lambda: [],
        alias="ALLOWED_ORIGINS"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Location registry sources. A remote flat export wins over the bundled file.
    location_registry_path: str = Field(
        default=str(DEFAULT_REGISTRY_PATH),
        alias="LOCATION_REGISTRY_PATH",
        description="YAML file holding provinces, cities and suburbs"
    )
    location_registry_url: str | None = Field(
        default=None,
        alias="LOCATION_REGISTRY_URL",
        description="Optional URL of a flat JSON registry export fetched at startup"
    )
    registry_fetch_timeout: float = Field(default=10.0, alias="REGISTRY_FETCH_TIMEOUT")

    default_listing_type: str = Field(default="sale", alias="DEFAULT_LISTING_TYPE")
    srp_page_size: int = Field(default=12, alias="SRP_PAGE_SIZE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Parse ALLOWED_ORIGINS from comma-separated string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v or []

    @field_validator("default_listing_type")
    @classmethod
    def validate_listing_type(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in ("sale", "rent"):
            raise ValueError("DEFAULT_LISTING_TYPE must be 'sale' or 'rent'")
        return value

    @field_validator("srp_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("SRP_PAGE_SIZE must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
