"""Configuration models for the weather sync client.

Defines Pydantic models for application configuration including weather API
settings, the location source, the preference store, the HTTP surface and
logging.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from weather_sync.constants import (
    CACHE_TTL_SECONDS,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    MIN_CACHE_TTL_SECONDS,
    OWM_BASE_URL,
    OWM_GEOCODING_URL,
)


def _normalize_path(path: str | Path) -> Path:
    """Convert a string path to a Path object.

    Internal utility function to avoid circular imports with path_resolver.

    Args:
        path: String or Path object

    Returns:
        A Path object.
    """
    return Path(path) if isinstance(path, str) else path


class WeatherConfig(BaseModel):
    """Weather API configuration."""

    api_key: str
    base_url: str = OWM_BASE_URL
    geocoding_url: str = OWM_GEOCODING_URL
    cache_ttl_seconds: int = CACHE_TTL_SECONDS
    timeout_seconds: float = DEFAULT_HTTP_TIMEOUT

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        """Validate the cache TTL is long enough to be useful.

        Args:
            v: The TTL in seconds.

        Returns:
            The validated TTL value.

        Raises:
            ValueError: If the TTL is shorter than the allowed minimum.
        """
        if v < MIN_CACHE_TTL_SECONDS:
            raise ValueError(f"Cache TTL must be at least {MIN_CACHE_TTL_SECONDS} seconds")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate the HTTP timeout is positive.

        Args:
            v: Timeout in seconds.

        Returns:
            The validated timeout.

        Raises:
            ValueError: If the timeout is zero or negative.
        """
        if v <= 0:
            raise ValueError("Timeout must be greater than zero")
        return v


class LocationConfig(BaseModel):
    """Location source configuration.

    Either a coordinate pair or a city name to geocode. Both may be left
    empty when the host application pushes position fixes itself.
    """

    lat: float | None = Field(default=None, ge=-90.0, le=90.0)
    lon: float | None = Field(default=None, ge=-180.0, le=180.0)
    city_name: str | None = None

    @model_validator(mode="after")
    def validate_pair(self) -> "LocationConfig":
        """Require latitude and longitude to be given together."""
        if (self.lat is None) != (self.lon is None):
            raise ValueError("Latitude and longitude must be provided together")
        return self

    @property
    def has_coordinates(self) -> bool:
        """Whether a fixed coordinate pair is configured."""
        return self.lat is not None and self.lon is not None


class StoreConfig(BaseModel):
    """Preference store configuration."""

    path: str = ""  # Empty string means use the default from path_resolver


class ServerConfig(BaseModel):
    """HTTP surface configuration."""

    host: str = DEFAULT_SERVER_HOST
    port: int = DEFAULT_SERVER_PORT


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = None
    format: str = "json"
    max_size_mb: int = 5
    backup_count: int = 3


class AppConfig(BaseModel):
    """Main application configuration."""

    weather: WeatherConfig
    location: LocationConfig = Field(default_factory=LocationConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    debug: bool = False

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "AppConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the YAML configuration file. Can be a string path
                or a Path object.

        Returns:
            An initialized AppConfig object with values from the YAML file.

        Raises:
            FileNotFoundError: If the specified config file doesn't exist.
            yaml.YAMLError: If the YAML file has invalid syntax.
            ValidationError: If the configuration values don't match the expected schema.
        """
        import yaml

        # Use direct import to avoid circular imports
        from weather_sync.utils.file_utils import read_text

        path = _normalize_path(config_path)
        config_data = yaml.safe_load(read_text(path))

        return cls.model_validate(config_data)
