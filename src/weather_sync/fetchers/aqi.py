"""Air-quality fetcher for the OpenWeatherMap ``/air_pollution`` endpoint."""

from typing import Any

from weather_sync.constants import OWM_AIR_POLLUTION_PATH
from weather_sync.exceptions import MalformedResponseError
from weather_sync.fetchers.base import OpenWeatherFetcher, validate_coordinates
from weather_sync.models.weather import AQISnapshot, UnitSystem


class AQIFetcher(OpenWeatherFetcher[AQISnapshot]):
    """Stateless client returning one AQISnapshot per call."""

    ENDPOINT = OWM_AIR_POLLUTION_PATH
    FEED_NAME = "air quality"

    async def fetch_by_coordinates(
        self, lat: float, lon: float, units: UnitSystem | None = None
    ) -> AQISnapshot:
        """Fetch the air quality index at a coordinate.

        Args:
            lat: Latitude in [-90, 90]
            lon: Longitude in [-180, 180]
            units: Accepted for symmetry with the weather fetcher and ignored;
                the endpoint has no unit parameter.

        Returns:
            Parsed AQI snapshot.

        Raises:
            FetchError: One subclass per failure kind.
        """
        validate_coordinates(lat, lon)
        return await self._fetch({"lat": lat, "lon": lon})

    def _parse(self, data: Any) -> AQISnapshot:
        # The endpoint wraps readings in a list; the first entry is current
        items = data["list"]
        if not items:
            raise MalformedResponseError(
                "Air quality response contains no readings",
                {"endpoint": self.endpoint_url, "received": data},
                status_code=200,
            )

        first = items[0]
        return AQISnapshot.model_validate(
            {"aqi": first["main"]["aqi"], "components": first.get("components"), "dt": first.get("dt")}
        )
