"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    designdiff_env: str = "development"
    designdiff_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Comparison defaults, overridable per request
    batch_max_workers: int = 4
    default_threshold: float = 0.1
    default_scale_factor: float = 1.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
