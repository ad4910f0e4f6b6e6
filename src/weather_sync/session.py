"""Session facade wiring the store, fetchers, orchestrators and location.

The session is the outbound interface of the client: presentation glue calls
its methods and renders ``display_state()``. One session is created per
process; it owns the shared HTTP client and the preference store.
"""

import logging
import time
from collections.abc import Callable
from datetime import time as time_of_day

import httpx

from weather_sync.exceptions import FetchError, InvalidRequestError
from weather_sync.fetchers.aqi import AQIFetcher
from weather_sync.fetchers.geocoding import GeocodingClient
from weather_sync.fetchers.weather import WeatherFetcher
from weather_sync.location.coordinator import LocationCoordinator
from weather_sync.location.providers import ConfiguredLocationProvider, LocationProvider
from weather_sync.models.config import AppConfig
from weather_sync.models.state import DisplayState, Preferences, SearchResult
from weather_sync.models.weather import AQISnapshot, Coordinate, UnitSystem, WeatherSnapshot
from weather_sync.orchestration.messages import message_for
from weather_sync.orchestration.orchestrator import AQIOrchestrator, FetchTarget, WeatherOrchestrator
from weather_sync.utils.path_utils import path_resolver
from weather_sync.utils.preference_store import PreferenceStore

logger = logging.getLogger(__name__)


class WeatherSession:
    """Everything the presentation layer talks to.

    Attributes:
        config: Application configuration
        store: Shared preference store
        weather: Weather feed orchestrator
        aqi: Air-quality feed orchestrator
        location: Location coordinator
    """

    def __init__(
        self,
        config: AppConfig,
        store: PreferenceStore | None = None,
        location_provider: LocationProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the session.

        Args:
            config: Application configuration
            store: Preference store; defaults to the JSON file from config
            location_provider: Location source; defaults to the configured one
            http_client: Shared HTTP client; one is created when omitted
            clock: Source of the current Unix time
        """
        self.config = config
        self.store = store or PreferenceStore.from_path(path_resolver.get_store_path(config.store.path))

        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.weather.timeout_seconds)

        self.weather_fetcher = WeatherFetcher(config.weather, self._http)
        self.aqi_fetcher = AQIFetcher(config.weather, self._http)

        ttl = config.weather.cache_ttl_seconds
        self.weather = WeatherOrchestrator(self.weather_fetcher, self.store, ttl, clock)
        self.aqi = AQIOrchestrator(self.aqi_fetcher, self.store, ttl, clock)

        provider = location_provider or ConfiguredLocationProvider(
            config.location, GeocodingClient(config.weather, self._http)
        )
        self.location = LocationCoordinator(provider, self.weather, self.aqi)
        self._started = False

    async def start(self) -> None:
        """Show the last known data and begin the first location cycle."""
        if self._started:
            return
        self._started = True
        self.weather.load_cached()
        self.aqi.load_cached()
        self.location.start()
        logger.info("Weather session started")

    async def aclose(self) -> None:
        """Wait for pending refreshes and release the HTTP client."""
        await self.location.wait_idle()
        if self._owns_client:
            await self._http.aclose()
        logger.info("Weather session closed")

    # Refresh triggers
    def request_location(self, ignore_cache: bool = False) -> None:
        """Start a one-shot location cycle refreshing both feeds."""
        self.location.request_location(ignore_cache)

    async def fetch_weather(
        self, target: FetchTarget, force_refresh: bool = False
    ) -> WeatherSnapshot | None:
        """Refresh the weather feed by coordinate or place name."""
        return await self.weather.request_data(target, force_refresh)

    async def fetch_aqi(self, coordinate: Coordinate, force_refresh: bool = False) -> AQISnapshot | None:
        """Refresh the air-quality feed for a coordinate."""
        return await self.aqi.request_data(coordinate, force_refresh)

    async def refresh(self, force_refresh: bool = True) -> None:
        """Refresh what the user is looking at.

        With a default city the weather feed is refreshed for that city;
        otherwise a location cycle refreshes both feeds. Returns once the
        refresh has finished, or at once when location access is missing.
        """
        default_city = self.store.load_default_city()
        if default_city:
            await self.fetch_weather(default_city, force_refresh)
        else:
            self.request_location(ignore_cache=force_refresh)
            await self.location.wait_for_cycle()

    async def lookup_place(self, name: str) -> WeatherSnapshot:
        """Fetch weather for a place, bypassing the feeds and the cache.

        Raises:
            FetchError: Any fetch failure, unchanged.
        """
        return await self.weather_fetcher.fetch_by_place_name(name, self.store.load_units())

    async def search_place(self, name: str) -> SearchResult:
        """Look up weather for a place without touching the feeds or cache.

        Args:
            name: Place name typed by the user

        Returns:
            The search result with either a snapshot or an error message.
        """
        try:
            snapshot = await self.lookup_place(name)
        except FetchError as e:
            logger.info(f"Search for {name!r} failed: {e}")
            return SearchResult(query=name, error_message=message_for(e))
        return SearchResult(query=name, snapshot=snapshot)

    # Preferences
    @property
    def preferences(self) -> Preferences:
        return self.store.load_preferences()

    def set_units(self, units: UnitSystem) -> None:
        self.store.save_units(UnitSystem(units))

    def set_default_city(self, city_name: str | None) -> None:
        """Save or clear the city shown instead of the current location."""
        if city_name is None or not city_name.strip():
            self.store.clear_default_city()
            return
        self.store.save_default_city(city_name.strip())

    def enable_notifications(self, at: time_of_day) -> None:
        """Turn on the daily notification and ask for elevated location access."""
        self.store.save_notification_preference(True)
        self.store.save_notification_time(at)
        self.location.request_always_authorization()

    def disable_notifications(self) -> None:
        self.store.save_notification_preference(False)

    def update_preferences(self, preferences: Preferences) -> Preferences:
        """Replace all preferences, requesting elevated access when notifications turn on."""
        if preferences.notifications_enabled and preferences.notification_time is None:
            raise InvalidRequestError("A notification time is required to enable notifications")

        was_enabled = self.store.load_notification_preference()
        self.store.save_preferences(preferences)
        if preferences.notifications_enabled and not was_enabled:
            self.location.request_always_authorization()
        return self.store.load_preferences()

    # Observable state
    def display_state(self) -> DisplayState:
        """Current state of both feeds and the location layer."""
        return DisplayState(
            weather=self.weather.view(),
            aqi=self.aqi.view(),
            location_state=self.location.state,
            location_denied=self.location.location_denied,
            coordinate=self.location.coordinate,
            location_error=self.location.error_message,
        )
