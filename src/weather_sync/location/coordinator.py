"""Single-shot location acquisition driving both feed orchestrators.

The coordinator asks for permission, waits for the first position fix of an
update cycle, stops updates, and refreshes the weather and air-quality feeds
concurrently for that coordinate. It is not a tracking service: every cycle
produces at most one refresh.
"""

import asyncio
import logging

from weather_sync.constants import MSG_LOCATION_DENIED, MSG_LOCATION_FAILED
from weather_sync.location.providers import LocationProvider
from weather_sync.models.state import AuthorizationStatus, LocationState
from weather_sync.models.weather import Coordinate
from weather_sync.orchestration.orchestrator import AQIOrchestrator, WeatherOrchestrator

logger = logging.getLogger(__name__)


class LocationCoordinator:
    """State machine: unauthorized -> authorized -> acquiring -> acquired.

    Attributes:
        provider: Source of permission changes and fixes
        weather: Weather feed orchestrator
        aqi: Air-quality feed orchestrator
    """

    def __init__(
        self,
        provider: LocationProvider,
        weather: WeatherOrchestrator,
        aqi: AQIOrchestrator,
    ) -> None:
        """Initialize the coordinator.

        Args:
            provider: Location provider to drive
            weather: Orchestrator refreshed with every fix
            aqi: Orchestrator refreshed with every fix
        """
        self.provider = provider
        self.weather = weather
        self.aqi = aqi
        self._state = LocationState.UNAUTHORIZED
        self._coordinate: Coordinate | None = None
        self._location_denied = False
        self._error_message: str | None = None
        self._ignore_cache = False
        self._tasks: set[asyncio.Task[None]] = set()
        # Set whenever no acquisition cycle is waiting for its fix
        self._cycle_done = asyncio.Event()
        self._cycle_done.set()

    @property
    def state(self) -> LocationState:
        return self._state

    @property
    def coordinate(self) -> Coordinate | None:
        """Coordinate of the most recent fix."""
        return self._coordinate

    @property
    def location_denied(self) -> bool:
        return self._location_denied

    @property
    def error_message(self) -> str | None:
        return self._error_message

    def start(self) -> None:
        """Register with the provider, ask for permission and begin updates."""
        self.provider.set_delegate(self)
        self.provider.request_when_in_use_authorization()

        status = self.provider.authorization_status
        if status.is_granted or status.is_refused:
            self.on_authorization_changed(status)

    def request_location(self, ignore_cache: bool = False) -> None:
        """Start a one-shot refresh cycle.

        Args:
            ignore_cache: Force both feeds to refetch once the fix arrives.
        """
        self._ignore_cache = self._ignore_cache or ignore_cache

        if self._state == LocationState.UNAUTHORIZED:
            logger.info("Location requested while unauthorized, asking for permission again")
            self.provider.request_when_in_use_authorization()
            return

        self._state = LocationState.ACQUIRING
        self._cycle_done.clear()
        self._error_message = None
        self.provider.request_location()

    def request_always_authorization(self) -> None:
        """Ask for elevated permission, needed only by scheduled notifications."""
        self.provider.request_always_authorization()

    async def wait_idle(self) -> None:
        """Wait for refreshes triggered by fixes to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def wait_for_cycle(self) -> None:
        """Wait for the pending acquisition cycle and the refresh it triggers.

        Returns once the cycle has produced a fix and both feeds have been
        refreshed, or once it has failed or lost permission. Returns at once
        when no cycle is pending.
        """
        await self._cycle_done.wait()
        await self.wait_idle()

    async def refresh_feeds(self, coordinate: Coordinate, force_refresh: bool = False) -> None:
        """Refresh both feeds for a coordinate concurrently.

        Args:
            coordinate: Position to query
            force_refresh: Bypass the freshness check in both orchestrators
        """
        results = await asyncio.gather(
            self.weather.request_data(coordinate, force_refresh),
            self.aqi.request_data(coordinate, force_refresh),
            return_exceptions=True,
        )
        for feed, result in zip(("weather", "aqi"), results, strict=True):
            if isinstance(result, BaseException):
                logger.error(f"Unexpected error refreshing {feed} feed", exc_info=result)

    # Provider callbacks
    def on_authorization_changed(self, status: AuthorizationStatus) -> None:
        if status.is_granted:
            logger.info(f"Location authorized ({status.value})")
            self._location_denied = False
            if self._error_message == MSG_LOCATION_DENIED:
                self._error_message = None
            if self._state == LocationState.UNAUTHORIZED:
                self._state = LocationState.AUTHORIZED
            self._start_updates()
        elif status.is_refused:
            logger.warning(f"Location access {status.value} by user")
            self._state = LocationState.UNAUTHORIZED
            self._location_denied = True
            self._error_message = MSG_LOCATION_DENIED
            self._cycle_done.set()

    def on_locations_updated(self, locations: list[Coordinate]) -> None:
        if self._state != LocationState.ACQUIRING:
            logger.debug(f"Ignoring location fix while {self._state.value}")
            return
        if not locations:
            return

        coordinate = locations[-1]
        self._coordinate = coordinate
        self._state = LocationState.ACQUIRED
        self._error_message = None
        self.provider.stop_updating()

        force_refresh = self._ignore_cache
        self._ignore_cache = False
        logger.info(f"Location acquired at ({coordinate.lat}, {coordinate.lon})")

        task = asyncio.get_running_loop().create_task(self.refresh_feeds(coordinate, force_refresh))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._cycle_done.set()

    def on_location_failed(self, error: Exception) -> None:
        logger.error(f"Failed to get user location: {error}")
        self._error_message = MSG_LOCATION_FAILED
        if self._state == LocationState.ACQUIRING:
            self.provider.stop_updating()
            self._state = LocationState.AUTHORIZED
            self._cycle_done.set()

    def _start_updates(self) -> None:
        if self._state == LocationState.ACQUIRING:
            return
        self._state = LocationState.ACQUIRING
        self._cycle_done.clear()
        self.provider.start_updating()
