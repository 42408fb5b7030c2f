"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional
from pydantic import field_validator


class Settings(BaseSettings):
    """Data layer settings."""

    # Application
    app_name: str = "forumdb"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/forum.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10
    query_timeout: float = 15.0  # seconds, applied to every statement

    # Listing
    default_page_size: int = 10
    max_page_size: Optional[int] = 100

    # Likes
    # False keeps the two-step behaviour: the association change commits
    # before likes_count is recomputed.
    atomic_like_refresh: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("query_timeout")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("query_timeout must be positive")
        return v

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured store is SQLite."""
        return self.database_url.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FORUMDB_",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
