"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Settings
    app_name: str = "Donor Rank API"
    app_version: str = "0.1.0"
    app_description: str = "Sponsor and recurring donor leaderboards for fundraising organizations"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./donor_rank.db"

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Reject blank URLs and accept the legacy ``postgres://`` scheme SQLAlchemy refuses."""
        v = v.strip()
        if not v:
            raise ValueError("DATABASE_URL must not be empty")
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        return v

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8080"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Pagination
    leaderboard_default_per_page: int = 20
    leaderboard_max_per_page: int = 50
    autopayments_default_per_page: int = 20
    autopayments_max_per_page: int = 100
    payments_preview_count: int = 10

    # Presentation
    anonymous_label: str = "Anonymous donation"
    import_placeholder_labels: list[str] = [
        "Anonymous donation",
        "Anonymous",
        "Анонимное пожертвование",
        "Анонимный донор",
        "Без имени",
        "-",
        "—",
        "null",
    ]
    currency_symbol: str = "₽"

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/minute"  # Read endpoints
    rate_limit_stats: str = "60/minute"     # Leaderboard endpoints
    rate_limit_command: str = "6/minute"    # Recompute endpoint


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
