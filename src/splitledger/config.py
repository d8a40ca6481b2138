"""Configuration management for SplitLedger."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import SplitOptions


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Split calculation
    percent_tolerance: float = 0.01  # Allowed drift of percent sum from 100
    percent_rounding: Literal["half_up", "half_even"] = "half_up"
    duplicate_participants: Literal["allow", "reject", "merge"] = "allow"

    # Display
    currency_symbol: str = "$"
    minor_units: int = 100  # Smallest units per major unit (cents per dollar)

    def split_options(self) -> SplitOptions:
        """Build the split calculator options from these settings."""
        return SplitOptions(
            percent_tolerance=self.percent_tolerance,
            percent_rounding=self.percent_rounding,
            duplicate_participants=self.duplicate_participants,
        )


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the SPLITLEDGER_* environment "
            f"variables and your .env file.\n"
            f"Error: {e}"
        ) from e
