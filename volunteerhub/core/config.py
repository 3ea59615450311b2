from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
import os
from pathlib import Path


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./volunteerhub.db"
    degraded_mode: bool = False

    # App
    app_name: str = "Volunteer Hub API"
    debug: bool = False
    service_name: str = "volunteer-hub"
    log_level: str = "INFO"

    # Lifecycle
    allow_moderation_resubmission: bool = False

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    # Tracing
    tracing_enabled: bool = False
    otlp_endpoint: str = "http://localhost:4318/v1/traces"

    model_config = SettingsConfigDict(
        # Look for .env.local file in the project root
        env_file=os.path.join(Path(__file__).parent.parent.parent, ".env.local"),
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings():
    return Settings()
