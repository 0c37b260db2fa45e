from pathlib import Path
from typing import Literal, Optional, List

from pydantic import AnyHttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class StreamingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STREAMING_", extra="ignore")
    api_key: SecretStr
    api_base_url: AnyHttpUrl = "https://streaming-availability.p.rapidapi.com"
    api_host: str = "streaming-availability.p.rapidapi.com"
    country: str = "us"
    page_limit: int = 3  # pages of results pulled per catalog fetch


class Settings(BaseSettings):

    # ---- Data roots ----
    project_root: Path = Path(".").resolve()
    data_root: Path = Path("data")
    catalog_path: Path = data_root / "sample_catalog.json"
    directory_path: Optional[Path] = None  # None keeps the room directory in memory

    # ---- app/runtime ----
    env: Literal["dev", "staging", "prod"] = "dev"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    verify_ssl: bool = True

    # ---- rooms ----
    room_retention_hours: float = 24.0
    expiry_sweep_interval_seconds: int = 300
    code_max_attempts: int = 16

    # ---- catalog ----
    catalog_backend: Literal["local", "streaming"] = "local"
    shuffle_candidates: bool = True
    random_seed: Optional[int] = None  # set for reproducible candidate order

    # ---- API server configuration ----
    api_host: str = "127.0.0.1"  # localhost for dev, 0.0.0.0 for docker/prod
    api_port: int = 8000
    api_reload: bool = True  # Auto-reload on code changes (dev only)
    api_workers: int = 1  # rooms live in process memory, more workers means separate room tables
    cors_origins: List[str] = ["*"]  # Allowed CORS origins (restrict in prod)

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_prefix="APP_",      # APP_ENV, APP_LOG_LEVEL, etc.
        env_nested_delimiter='__',
        extra = "ignore"
    )

    # ---- integrations ----
    streaming: Optional[StreamingSettings] = None  # <-- DO NOT instantiate here


def get_settings() -> Settings:
    """Singleton accessor to avoid reparsing .env on every import."""
    return Settings()
