"""Geocoding client resolving a city name to a coordinate.

Used by the configured location provider when a city name is configured
instead of a fixed coordinate.
"""

from typing import Any

from weather_sync.constants import API_LOCATION_LIMIT, US_STATE_CODES
from weather_sync.exceptions import NotFoundError
from weather_sync.fetchers.base import OpenWeatherFetcher, validate_place_name
from weather_sync.models.weather import Coordinate


class GeocodingClient(OpenWeatherFetcher[Coordinate]):
    """Client for the OpenWeatherMap direct geocoding API."""

    FEED_NAME = "geocoding"

    @property
    def endpoint_url(self) -> str:
        return self.config.geocoding_url

    async def resolve(self, city_name: str) -> Coordinate:
        """Get the coordinate of a city.

        Args:
            city_name: City name such as "London", "London,GB" or "Smyrna, GA".

        Returns:
            Coordinate of the best match.

        Raises:
            NotFoundError: If the API knows no such city.
            FetchError: Any other failure kind.
        """
        query = self.format_city_query(validate_place_name(city_name))
        return await self._fetch({"q": query, "limit": API_LOCATION_LIMIT}, not_found_on_404=True)

    def format_city_query(self, city_query: str) -> str:
        """Format a city name for the geocoding API.

        The API expects formats like "London" or "London,GB" without spaces
        around commas. US cities given with a state abbreviation get the
        country code appended.

        Args:
            city_query: Raw city name.

        Returns:
            Formatted city query string.
        """
        if "," not in city_query:
            return city_query

        parts = [part.strip() for part in city_query.split(",")]

        # "Smyrna, GA" -> "Smyrna,GA,US"
        if self._is_us_state_format(parts):
            parts.append("US")

        formatted = ",".join(parts)
        self.logger.info(f"Formatted city query: {formatted}")
        return formatted

    @staticmethod
    def _is_us_state_format(parts: list[str]) -> bool:
        return len(parts) == 2 and parts[1] in US_STATE_CODES

    def _parse(self, data: Any) -> Coordinate:
        if not data:
            raise NotFoundError("No such place", {"endpoint": self.endpoint_url}, status_code=200)
        return Coordinate(lat=data[0]["lat"], lon=data[0]["lon"])
