from typing import Literal

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trip_engine.core.exceptions import ConfigurationError


class TripSettings(BaseSettings):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"
    environment: str = "development"

    # GPS jitter below this distance never accrues (5 meters)
    noise_threshold_km: float = Field(default=0.005, ge=0.0, le=1.0)

    position_mode: Literal["live", "simulated"] = Field(
        default="live",
        description="Position source used for ongoing trips",
    )
    simulated_interval_seconds: float = Field(default=2.0, gt=0.0, le=60.0)
    simulated_max_step_km: float = Field(
        default=0.1,
        gt=0.0,
        le=5.0,
        description="Upper bound of the pseudo-random distance moved per simulated sample",
    )
    simulated_origin_lat: float = Field(default=12.9716, ge=-90.0, le=90.0)
    simulated_origin_lng: float = Field(default=77.5946, ge=-180.0, le=180.0)

    verification_latency_seconds: float = Field(default=2.0, ge=0.0, le=30.0)

    default_pickup_location: str = "Central Bus Stand"
    default_drop_location: str = "Tech Park"

    model_config = SettingsConfigDict(env_prefix="TRIP_")


class FareSettings(BaseSettings):
    minimum_fare: int = Field(default=5, ge=0)
    per_km_rate: int = Field(default=2, ge=0)

    model_config = SettingsConfigDict(env_prefix="FARE_")


class WalletSettings(BaseSettings):
    """Balance rules for starting a trip."""

    minimum_balance: int = Field(default=10, ge=0)
    low_balance_threshold: int = Field(default=50, ge=0)

    model_config = SettingsConfigDict(env_prefix="WALLET_")

    @model_validator(mode="after")
    def validate_thresholds(self) -> "WalletSettings":
        if self.low_balance_threshold < self.minimum_balance:
            raise ValueError(
                f"Low balance threshold ({self.low_balance_threshold}) must be >= "
                f"minimum balance ({self.minimum_balance})"
            )
        return self


class Settings(BaseSettings):
    trip: TripSettings = Field(default_factory=TripSettings)
    fare: FareSettings = Field(default_factory=FareSettings)
    wallet: WalletSettings = Field(default_factory=WalletSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        ConfigurationError: an environment value fails validation
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False)},
        ) from e
