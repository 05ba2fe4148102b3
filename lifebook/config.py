"""
Application configuration using pydantic-settings.
Loads values from .env file in project root.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database settings
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "lifebook"
    db_user: str = "lifebook"
    db_password: str = ""
    # Full SQLAlchemy URL; overrides the db_* fields when set
    db_url: str = ""

    # Application settings
    debug: bool = False
    log_level: str = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # People resolution settings
    duplicate_threshold: float = 0.7

    @property
    def database_url(self) -> str:
        """Generate SQLAlchemy database URL."""
        if self.db_url:
            return self.db_url
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
