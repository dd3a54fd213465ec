from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Identity/credential settings live in ``app.google_auth.config`` (read from the
      standard Google env vars); this class only holds app-level knobs.
    - The required-privilege catalog is bundled with the package and is deliberately
      not configurable here.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    log_level: str = "INFO"
    customer_id: str = "my_customer"
    directory_timeout_seconds: float = 10.0
    role_fetch_workers: int = 8


@lru_cache
def get_settings() -> Settings:
    return Settings()
