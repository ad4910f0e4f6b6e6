"""Weather data models used throughout the application.

Defines Pydantic models for the current-weather and air-quality snapshots
returned by the OpenWeatherMap 2.5 API, plus the coordinate and unit types
used to query them. Snapshots are frozen: a new fetch replaces them wholesale.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from weather_sync.constants import AQI_LEVELS


class UnitSystem(str, Enum):
    """Unit system passed to the weather endpoint."""

    METRIC = "metric"
    IMPERIAL = "imperial"


class Coordinate(BaseModel):
    """Latitude/longitude pair produced by the location layer."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class WeatherCondition(BaseModel):
    """Weather condition information."""

    model_config = ConfigDict(frozen=True)

    id: int
    main: str = ""
    description: str
    icon: str = ""


class MainReadings(BaseModel):
    """Temperature, pressure and humidity readings."""

    model_config = ConfigDict(frozen=True)

    temp: float
    feels_like: float
    temp_min: float
    temp_max: float
    pressure: int
    humidity: int


class Wind(BaseModel):
    """Wind speed and direction."""

    model_config = ConfigDict(frozen=True)

    speed: float
    deg: float
    gust: float | None = None


class SunTimes(BaseModel):
    """Sunrise and sunset as Unix timestamps."""

    model_config = ConfigDict(frozen=True)

    sunrise: int
    sunset: int
    country: str | None = None


class WeatherSnapshot(BaseModel):
    """Current weather for one place, as returned by the weather endpoint."""

    model_config = ConfigDict(frozen=True)

    name: str
    weather: list[WeatherCondition] = Field(min_length=1)
    main: MainReadings
    wind: Wind
    sys: SunTimes
    timezone: int = 0  # UTC offset in seconds
    dt: int | None = None
    coord: Coordinate | None = None

    @property
    def primary_condition(self) -> WeatherCondition:
        """The first, primary weather condition."""
        return self.weather[0]

    @property
    def utc_offset(self) -> timedelta:
        """UTC offset of the place as a timedelta."""
        return timedelta(seconds=self.timezone)

    @property
    def sunrise_time(self) -> datetime:
        """Sunrise converted to the place's local time."""
        return datetime.fromtimestamp(self.sys.sunrise, tz=timezone(self.utc_offset))

    @property
    def sunset_time(self) -> datetime:
        """Sunset converted to the place's local time."""
        return datetime.fromtimestamp(self.sys.sunset, tz=timezone(self.utc_offset))


class AirComponents(BaseModel):
    """Raw pollutant concentrations in μg/m3."""

    model_config = ConfigDict(frozen=True)

    co: float  # Carbon monoxide
    no: float  # Nitrogen monoxide
    no2: float  # Nitrogen dioxide
    o3: float  # Ozone
    so2: float  # Sulphur dioxide
    pm2_5: float  # Fine particles
    pm10: float  # Coarse particles
    nh3: float  # Ammonia


class AQISnapshot(BaseModel):
    """Air quality index for one coordinate."""

    model_config = ConfigDict(frozen=True)

    aqi: int = Field(ge=1, le=5)
    components: AirComponents | None = None
    dt: int | None = None

    @property
    def description(self) -> str:
        """Get the air quality description.

        The AQI is a value from 1-5 where:
        1: Good
        2: Fair
        3: Moderate
        4: Poor
        5: Very Poor

        Returns:
            The description for the index.
        """
        return AQI_LEVELS.get(self.aqi, "Unknown")
