"""Configuration management for duo-split."""

from decimal import Decimal
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DUO_SPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database path
    database_path: Path = Path.home() / ".duo_split" / "duo_split.db"

    # Recurring expenses
    recurring_catch_up: bool = False  # True = one expense per missed period
    recurring_poll_interval: float = Field(default=5.0, gt=0)  # seconds

    # Settlement display
    settled_tolerance: Decimal = Field(default=Decimal("0.01"), ge=0)

    # Expense entry
    default_custom_split_a: int = Field(default=50, ge=0, le=100)

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the DUO_SPLIT_* environment "
            f"variables and your .env file.\n"
            f"Error: {e}"
        ) from e
