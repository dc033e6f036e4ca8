"""Application configuration using Pydantic Settings."""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache

from pydantic_settings import BaseSettings

from tourgen.errors import MissingCredentials

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Property tour generator settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "Property Tour Generator"
    DEBUG: bool = False
    CORS_ORIGINS: str = "*"  # comma-separated

    # --- World Labs API (v0) ---
    WORLDLABS_API_KEY: str = ""
    WORLDLABS_API_BASE: str = "https://api.worldlabs.ai/v0"
    WORLDLABS_AUTH_HEADER: str = "Authorization"
    WORLDLABS_PLATFORM_HOST: str = "platform.worldlabs.ai"
    CREDENTIALS_PATH: str = os.path.join("credentials", "worldlabs-credentials.json")

    # --- Model tiers ---
    MODEL_STANDARD: str = "Marble 0.1-plus"
    MODEL_DRAFT: str = "Marble 0.1-mini"

    # --- Polling ---
    POLL_INTERVAL: float = 5.0
    WEB_POLL_INTERVAL: float = 3.0
    POLL_TIMEOUT: float = 300.0
    ENRICH_WORLD_URL: bool = True

    # --- HTTP ---
    HTTP_TIMEOUT: float = 30.0
    UPLOAD_TIMEOUT: float = 120.0

    # --- Inputs ---
    MAX_UPLOAD_MB: int = 100
    MAX_AUTO_IMAGES: int = 8
    MAX_DIRECTION_IMAGES: int = 4

    # --- Results ---
    TOURS_DIR: str = "tours"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def model_for_tier(self, tier: str) -> str:
        """Map a model tier ("standard" / "draft") to the vendor model name."""
        return self.MODEL_DRAFT if tier == "draft" else self.MODEL_STANDARD

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()


def resolve_api_key(settings: Settings) -> str:
    """Return the World Labs API key.

    The WORLDLABS_API_KEY setting wins; otherwise the credentials file
    (``{"api_key": "..."}``) at CREDENTIALS_PATH is read.
    """
    if settings.WORLDLABS_API_KEY:
        return settings.WORLDLABS_API_KEY

    path = settings.CREDENTIALS_PATH
    if not os.path.exists(path):
        raise MissingCredentials(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            creds = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Unreadable credentials file %s: %s", path, e)
        raise MissingCredentials(path) from e

    api_key = creds.get("api_key") if isinstance(creds, dict) else None
    if not api_key:
        raise MissingCredentials(path)
    return api_key
