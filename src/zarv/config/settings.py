"""Application settings management using Pydantic Settings."""

from pathlib import Path
from typing import Literal, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_db_path() -> str:
    """Get default database path in the working directory."""
    return str(Path.cwd() / "data" / "zarv.db")


class Settings(BaseSettings):
    """Application configuration settings.

    All settings can be configured via environment variables with the
    prefix `ZARV_`. For example, `ZARV_DATABASE_PATH`.
    """

    # Database
    database_path: str = Field(
        default_factory=_get_default_db_path,
        description="SQLite database file path",
    )
    max_page_count: int | None = Field(
        default=None,
        ge=1,
        description="Storage quota as a SQLite page limit (None = unlimited)",
    )

    # History
    history_limit: int = Field(
        default=100,
        ge=1,
        le=500,
        description="Maximum number of versions returned by history queries",
    )

    # Diff presentation
    default_diff_mode: Literal["unified", "split"] = Field(
        default="unified", description="Diff rendering mode used when none is given"
    )
    diff_filename_extension: str = Field(
        default=".js",
        description="Extension appended to schema names in diff headers",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="ZARV_", env_file=".env", env_file_encoding="utf-8"
    )

    @model_validator(mode="after")
    def validate_settings(self) -> Self:
        """Validate cross-field configuration."""
        if not self.diff_filename_extension.startswith("."):
            raise ValueError(
                f"diff_filename_extension must start with '.' "
                f"(got {self.diff_filename_extension!r})"
            )
        self.log_level = self.log_level.upper()
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log_level: {self.log_level}")
        return self
