from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FOLIO_", extra="ignore")

    database_url: str = "sqlite:///./folio.db"
    uploads_dir: Path = Path("public/uploads")
    uploads_url_prefix: str = "/uploads/"
    log_level: str = "INFO"
    log_format: str = "console"
    verification_token_ttl_s: float = 24 * 60 * 60


settings = Settings()
