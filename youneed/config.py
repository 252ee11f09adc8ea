# youneed/config.py

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="YOUNEED_",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///./youneed.db")
    db_echo: bool = Field(default=False, description="Log SQL queries")

    secret_key: str = Field(default="change-me-later-please-use-a-long-secret")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60, ge=1)

    log_level: str = Field(default="INFO")

    # zone of the providers' opening hours; aware start times are read in it
    timezone: str = Field(default="Europe/Warsaw")

    default_page_limit: int = Field(default=20, ge=1)
    max_page_limit: int = Field(default=100, ge=1)
    notification_page_limit: int = Field(default=15, ge=1)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
