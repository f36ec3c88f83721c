"""Application settings using pydantic-settings."""

from functools import cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]


def _default_data_dir() -> Path:
    return Path.home() / ".local" / "share" / "vinyl-tracker"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VINYL_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    data_dir: Path = Field(
        default_factory=_default_data_dir, description="Library data directory"
    )
    library_filename: str = Field(
        default="library.json", min_length=1, description="Library document name"
    )

    # Logging
    log_level: LogLevel = Field(default="WARNING", description="Log level")

    # Cover art
    cover_jpeg_quality: int = Field(
        default=75,
        ge=1,
        le=95,
        description="JPEG quality used when storing captured covers",
    )

    @property
    def library_path(self) -> Path:
        return self.data_dir / self.library_filename


@cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
