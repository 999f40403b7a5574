"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_RETENTION_CEILINGS = (15, 10, 5, 3, 1)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    storage_bucket: str = "photobooth-assets"
    public_base_url: str = "http://localhost:8000"
    photo_store_dir: str = ".photobooth"
    photo_store_capacity_bytes: int = 5 * 1024 * 1024
    photos_key: str = "lunar-new-year-photos"
    session_key: str = "lunar-new-year-session"
    max_photos: int = 15
    retention_ceilings: str = "15,10,5,3,1"
    compression_quality: float = 0.7
    max_image_width: int = 1920
    max_image_height: int = 1080
    catalog_ttl_seconds: int = 300
    image_load_timeout_seconds: float = 10.0
    hidden_descriptor_names: str = "Test Overlay,Debug Overlay"
    max_upload_bytes: int = 10 * 1024 * 1024
    brand_primary_text: str = "Lunar New Year 2026"
    brand_secondary_text: str = "Monterey Park Chamber of Commerce"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_ceilings(raw: str | None) -> tuple[int, ...]:
    """Parse retention ceilings such as "15,10,5,3,1" from env."""
    if raw is None:
        return DEFAULT_RETENTION_CEILINGS
    ceilings: list[int] = []
    for chunk in raw.split(","):
        value = chunk.strip()
        if not value.isdigit():
            continue
        ceiling = int(value)
        if ceiling > 0:
            ceilings.append(ceiling)
    return tuple(ceilings) or DEFAULT_RETENTION_CEILINGS


def parse_name_list(raw: str | None) -> frozenset[str]:
    """Parse a comma-separated list of display names."""
    if raw is None:
        return frozenset()
    return frozenset(chunk.strip() for chunk in raw.split(",") if chunk.strip())
