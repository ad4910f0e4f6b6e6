"""Location providers delivering permission changes and position fixes.

A provider is the inbound location surface of the client. It reports to a
single delegate (the location coordinator) through three callbacks:
authorization changes, position fixes and acquisition failures.

Two providers ship with the client:

- ConfiguredLocationProvider: a fixed coordinate from configuration, or a
  configured city geocoded through the OpenWeatherMap geocoding API. Events
  are delivered on the running event loop, never synchronously.
- ManualLocationProvider: events are pushed by the host application, which
  is the hook for real positioning hardware and for tests.
"""

import asyncio
import logging
from typing import Protocol

from weather_sync.exceptions import FetchError, LocationAcquisitionError, chain_exception
from weather_sync.fetchers.geocoding import GeocodingClient
from weather_sync.models.config import LocationConfig
from weather_sync.models.state import AuthorizationStatus
from weather_sync.models.weather import Coordinate

logger = logging.getLogger(__name__)


class LocationDelegate(Protocol):
    """Receiver of provider events."""

    def on_authorization_changed(self, status: AuthorizationStatus) -> None: ...

    def on_locations_updated(self, locations: list[Coordinate]) -> None: ...

    def on_location_failed(self, error: Exception) -> None: ...


class LocationProvider(Protocol):
    """Source of permission state and position fixes."""

    @property
    def authorization_status(self) -> AuthorizationStatus: ...

    def set_delegate(self, delegate: LocationDelegate | None) -> None: ...

    def request_when_in_use_authorization(self) -> None: ...

    def request_always_authorization(self) -> None: ...

    def start_updating(self) -> None: ...

    def stop_updating(self) -> None: ...

    def request_location(self) -> None: ...


class BaseLocationProvider:
    """Delegate and authorization bookkeeping shared by providers."""

    def __init__(self, status: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED) -> None:
        self._status = status
        self._delegate: LocationDelegate | None = None
        self.is_updating = False

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    def set_delegate(self, delegate: LocationDelegate | None) -> None:
        self._delegate = delegate

    def _set_status(self, status: AuthorizationStatus) -> None:
        self._status = status
        if self._delegate is not None:
            self._delegate.on_authorization_changed(status)

    def _deliver(self, locations: list[Coordinate]) -> None:
        if self._delegate is not None:
            self._delegate.on_locations_updated(locations)

    def _deliver_failure(self, error: Exception) -> None:
        if self._delegate is not None:
            self._delegate.on_location_failed(error)


class ManualLocationProvider(BaseLocationProvider):
    """Provider driven by the host application.

    Permission prompts are recorded rather than answered; the host answers
    with ``grant``/``deny`` and pushes fixes with ``push_fix``. Events reach
    the delegate synchronously, so they must be pushed from the event loop.

    Attributes:
        when_in_use_requests: Number of when-in-use permission prompts
        always_requests: Number of elevated permission prompts
        location_requests: Number of one-shot location requests
    """

    def __init__(self, status: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED) -> None:
        super().__init__(status)
        self.when_in_use_requests = 0
        self.always_requests = 0
        self.location_requests = 0

    def request_when_in_use_authorization(self) -> None:
        self.when_in_use_requests += 1

    def request_always_authorization(self) -> None:
        self.always_requests += 1

    def start_updating(self) -> None:
        self.is_updating = True

    def stop_updating(self) -> None:
        self.is_updating = False

    def request_location(self) -> None:
        self.location_requests += 1

    # Host-side events
    def grant(self, always: bool = False) -> None:
        self._set_status(
            AuthorizationStatus.AUTHORIZED_ALWAYS if always else AuthorizationStatus.AUTHORIZED_WHEN_IN_USE
        )

    def deny(self, restricted: bool = False) -> None:
        self._set_status(AuthorizationStatus.RESTRICTED if restricted else AuthorizationStatus.DENIED)

    def push_fix(self, *locations: Coordinate) -> None:
        self._deliver(list(locations))

    def fail(self, error: Exception) -> None:
        self._deliver_failure(error)


class ConfiguredLocationProvider(BaseLocationProvider):
    """Provider answering with the configured position.

    Permission is granted as soon as it is requested when a coordinate or a
    city is configured, and reported as restricted when neither is. A
    configured city is geocoded once and the result reused.

    Attributes:
        config: Location configuration
        geocoder: Client used to resolve a configured city name
    """

    def __init__(self, config: LocationConfig, geocoder: GeocodingClient | None = None) -> None:
        """Initialize the provider.

        Args:
            config: Location configuration with a coordinate or a city name
            geocoder: Geocoding client, required when only a city is configured
        """
        super().__init__()
        self.config = config
        self.geocoder = geocoder
        self._resolved: Coordinate | None = (
            Coordinate(lat=config.lat, lon=config.lon)  # type: ignore[arg-type]
            if config.has_coordinates
            else None
        )
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def has_source(self) -> bool:
        """Whether any position can be produced."""
        return self._resolved is not None or bool(self.config.city_name and self.geocoder)

    def request_when_in_use_authorization(self) -> None:
        if self._status != AuthorizationStatus.NOT_DETERMINED:
            return
        status = (
            AuthorizationStatus.AUTHORIZED_WHEN_IN_USE if self.has_source else AuthorizationStatus.RESTRICTED
        )
        if status == AuthorizationStatus.RESTRICTED:
            logger.warning("No coordinate or city configured, location is unavailable")
        asyncio.get_running_loop().call_soon(self._set_status, status)

    def request_always_authorization(self) -> None:
        if not self.has_source:
            return
        asyncio.get_running_loop().call_soon(self._set_status, AuthorizationStatus.AUTHORIZED_ALWAYS)

    def start_updating(self) -> None:
        if not self._status.is_granted:
            return
        self.is_updating = True
        self._schedule(continuous=True)

    def stop_updating(self) -> None:
        self.is_updating = False

    def request_location(self) -> None:
        if not self._status.is_granted:
            return
        self._schedule(continuous=False)

    def _schedule(self, continuous: bool) -> None:
        task = asyncio.get_running_loop().create_task(self._acquire(continuous))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _acquire(self, continuous: bool) -> None:
        try:
            coordinate = await self._resolve()
        except LocationAcquisitionError as e:
            logger.error(f"Failed to get location: {e}")
            self._deliver_failure(e)
            return

        # A stop request while resolving cancels a continuous update
        if continuous and not self.is_updating:
            return
        self._deliver([coordinate])

    async def _resolve(self) -> Coordinate:
        if self._resolved is not None:
            return self._resolved

        if not (self.config.city_name and self.geocoder):
            raise LocationAcquisitionError("No location source configured")

        try:
            self._resolved = await self.geocoder.resolve(self.config.city_name)
        except FetchError as e:
            raise chain_exception(
                LocationAcquisitionError(
                    f"Could not resolve configured city: {self.config.city_name}",
                    {"city_name": self.config.city_name, "error": str(e)},
                ),
                e,
            ) from e

        logger.info(f"Resolved {self.config.city_name} to ({self._resolved.lat}, {self._resolved.lon})")
        return self._resolved
