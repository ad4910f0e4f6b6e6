"""Current-weather fetcher for the OpenWeatherMap ``/weather`` endpoint."""

from typing import Any

from weather_sync.constants import OWM_WEATHER_PATH
from weather_sync.fetchers.base import OpenWeatherFetcher, validate_coordinates, validate_place_name
from weather_sync.models.weather import UnitSystem, WeatherSnapshot


class WeatherFetcher(OpenWeatherFetcher[WeatherSnapshot]):
    """Stateless client returning one WeatherSnapshot per call.

    Queries by coordinate or by place name. A 404 on a place-name query means
    the place does not exist and is reported as NotFoundError.
    """

    ENDPOINT = OWM_WEATHER_PATH
    FEED_NAME = "weather"

    async def fetch_by_coordinates(
        self, lat: float, lon: float, units: UnitSystem = UnitSystem.METRIC
    ) -> WeatherSnapshot:
        """Fetch current weather at a coordinate.

        Args:
            lat: Latitude in [-90, 90]
            lon: Longitude in [-180, 180]
            units: Unit system for temperatures and wind speed

        Returns:
            Parsed weather snapshot.

        Raises:
            FetchError: One subclass per failure kind.
        """
        validate_coordinates(lat, lon)
        return await self._fetch({"lat": lat, "lon": lon, "units": UnitSystem(units).value})

    async def fetch_by_place_name(
        self, name: str, units: UnitSystem = UnitSystem.METRIC
    ) -> WeatherSnapshot:
        """Fetch current weather for a named place.

        Args:
            name: Place name, optionally with country code ("London,GB")
            units: Unit system for temperatures and wind speed

        Returns:
            Parsed weather snapshot.

        Raises:
            NotFoundError: If the API does not know the place.
            FetchError: Any other failure kind.
        """
        query = validate_place_name(name)
        return await self._fetch({"q": query, "units": UnitSystem(units).value}, not_found_on_404=True)

    def _parse(self, data: Any) -> WeatherSnapshot:
        return WeatherSnapshot.model_validate(data)
