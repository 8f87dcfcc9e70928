"""Application configuration."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "RotaSmart Geocoding"
    version: str = "0.1.0"
    api_prefix: str = "/api/v1"

    # CORS Settings
    cors_origins: list[str] = ["*"]  # Default to allow all in development
    cors_allow_credentials: bool = False

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    # Geocoding providers
    LOCATIONIQ_API_KEY: str | None = None
    NOMINATIM_USER_AGENT: str = "RotaSmartApp/1.0 (contact@rotasmart.com)"
    GEOCODING_COUNTRY_CODES: str = "br"
    GEOCODING_RESULT_LIMIT: int = Field(default=3, ge=1, le=50)
    GEOCODING_TIMEOUT: int = Field(default=10, gt=0)
    GEOCODING_MAX_RETRIES: int = Field(default=0, ge=0)
    GEOCODING_ERROR_WAIT_SECONDS: float = Field(default=2.0, ge=0)

    # Minimum spacing between calls to the same provider, in seconds
    LOCATIONIQ_RATE_LIMIT: float = Field(default=0.5, ge=0)
    NOMINATIM_RATE_LIMIT: float = Field(default=1.0, ge=0)

    # Reconciliation thresholds
    GEOCODING_DISTANCE_THRESHOLD_METERS: float = Field(default=100.0, gt=0)
    GEOCODING_MIN_CONFIDENCE: float = Field(default=0.3, ge=0, le=1)
    GEOCODING_ACCEPTABLE_CONFIDENCE: float = Field(default=0.5, ge=0, le=1)
    GEOCODING_HIGH_CONFIDENCE: float = Field(default=0.8, ge=0, le=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @model_validator(mode="after")
    def validate_origins(self) -> "Settings":
        """Validate CORS origins."""
        if self.cors_origins == ["*"]:
            self.cors_origins = [
                "http://localhost",
                "http://localhost:8000",
                "http://localhost:5173",
            ]
        return self

    @property
    def locationiq_enabled(self) -> bool:
        """Whether the authenticated primary provider can be used."""
        return bool(self.LOCATIONIQ_API_KEY and self.LOCATIONIQ_API_KEY.strip())


# Create settings instance
settings = Settings()
