from __future__ import annotations

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.environ.get("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080

    # Post page fetches (API-shaped JSON and HTML)
    extract_timeout_seconds: int = 15
    max_redirects: int = 5

    # Proxy downloads
    download_timeout_seconds: int = 30
    max_file_size_mb: int = 200
    download_cache_max_age: int = 3600
    allowed_media_domains: list[str] = Field(
        default_factory=lambda: ["instagram.com", "cdninstagram.com"]
    )

    # Logging
    log_level: str = "INFO"

    # Debug mode — enables verbose per-strategy logging in the extractor
    debug_mode: bool = False


settings = Settings()
