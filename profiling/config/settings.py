"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Profiling Assessment"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080

    # LLM endpoint (OpenAI-compatible chat completions)
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 90.0
    question_temperature: float = 0.7
    report_temperature: float = 0.8

    # Question generation
    questions_per_section: int = Field(default=10, ge=1, le=60)
    generation_max_attempts: int = Field(default=3, ge=1, le=10)
    generation_retry_backoff_seconds: float = 2.0
    section_timeout_seconds: float = 180.0

    # Session storage
    session_store_backend: Literal["memory", "file"] = "memory"
    session_store_dir: str = "data/sessions"

    # Proctoring
    proctoring_write_attempts: int = Field(default=3, ge=1)

    # Reports
    prewarm_report_on_submit: bool = False

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def llm_enabled(self) -> bool:
        """Whether an LLM endpoint is configured for content generation."""
        return bool(self.llm_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
