"""Runtime configuration."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Attributes
    ----------
    app_name : str
        Human-readable application name.
    database_url : str
        SQLAlchemy database URL.
    atlas_api_url : str
        Base URL of the Atlas management API.
    atlas_api_key : str
        Bearer key used against Atlas.
    atlas_timeout_seconds : float
        Per-request Atlas timeout.
    atlas_max_retries : int
        Retries for transient Atlas failures.
    bootstrap_enabled : bool
        Whether one-time unauthenticated bootstrap is allowed.
    log_level : str
        Minimum loguru level.
    audit_default_page_size : int
        Page size used when a caller omits ``limit``.
    audit_max_page_size : int
        Upper bound accepted for ``limit``.
    """

    model_config = SettingsConfigDict(env_prefix="ATLAS_PANEL_", extra="ignore")

    app_name: str = "Atlas Panel"
    database_url: str = "sqlite+aiosqlite:///./atlas_panel.db"
    atlas_api_url: str = "http://localhost:9090"
    atlas_api_key: str = ""
    atlas_timeout_seconds: float = Field(default=10.0, gt=0)
    atlas_max_retries: int = Field(default=2, ge=0)
    bootstrap_enabled: bool = True
    log_level: str = "INFO"
    audit_default_page_size: int = Field(default=20, ge=1)
    audit_max_page_size: int = Field(default=200, ge=1)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level."""
        valid_levels = {
            "TRACE",
            "DEBUG",
            "INFO",
            "SUCCESS",
            "WARNING",
            "ERROR",
            "CRITICAL",
        }
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {sorted(valid_levels)}")
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings.

    Returns
    -------
    Settings
        Cached settings instance.
    """
    return Settings()
