"""Configuration management for the Gyllencreutz rules engine using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="GYLLENCREUTZ_",
        extra="ignore",
    )

    # Reference data
    rules_dir: Path | None = Field(
        default=None,
        description="Directory holding the rules YAML tables (defaults to the packaged data)",
    )

    # Headquarters
    headquarters_name: str = Field(
        default="Castle Gyllencreutz", description="Name given to a new headquarters"
    )

    # Dice
    roll_history_size: int = Field(
        default=5, ge=0, description="Number of completed rolls kept for display"
    )

    # Advancement
    advance_xp_cost: int = Field(default=5, ge=1, description="XP spent per advance")

    @property
    def data_dir(self) -> Path:
        """Get the rules data directory path."""
        if self.rules_dir is not None:
            return self.rules_dir
        return Path(__file__).parent / "rules" / "data"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
