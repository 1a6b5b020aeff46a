"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

ANALYSIS_BACKENDS = {"openai", "edge_function"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    storage_bucket: str = "food-images"
    analysis_backend: str = "openai"
    analysis_function_name: str = "analyze-food"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "medium"
    openai_store: bool = False
    storage_timeout_seconds: float = 20.0
    analysis_timeout_seconds: float = 60.0
    persistence_timeout_seconds: float = 20.0
    ingestion_retry_attempts: int = 0
    ingestion_retry_delay_seconds: float = 0.5
    max_image_bytes: int = 10 * 1024 * 1024
    goal_tracker_capacity: int = 10_000
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
