"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- WordPress.com REST API ---
    wpcom_api_base: str = "https://public-api.wordpress.com/rest/v1.1"
    wpcom_request_timeout_seconds: float = 30.0

    # --- Database ---
    database_url: str = "postgresql://localhost:5432/jetsync"
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
