"""Tests for the location providers."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from weather_sync.exceptions import LocationAcquisitionError, NotFoundError
from weather_sync.fetchers.geocoding import GeocodingClient
from weather_sync.location.coordinator import LocationCoordinator
from weather_sync.location.providers import ConfiguredLocationProvider, ManualLocationProvider
from weather_sync.models.config import LocationConfig
from weather_sync.models.state import AuthorizationStatus, LocationState
from weather_sync.models.weather import Coordinate
from weather_sync.orchestration.orchestrator import AQIOrchestrator, WeatherOrchestrator
from weather_sync.utils.preference_store import PreferenceStore

ATLANTA = Coordinate(lat=33.749, lon=-84.388)


class RecordingDelegate:
    """Delegate collecting every event it receives."""

    def __init__(self) -> None:
        self.statuses: list[AuthorizationStatus] = []
        self.fixes: list[list[Coordinate]] = []
        self.failures: list[Exception] = []

    def on_authorization_changed(self, status: AuthorizationStatus) -> None:
        self.statuses.append(status)

    def on_locations_updated(self, locations: list[Coordinate]) -> None:
        self.fixes.append(locations)

    def on_location_failed(self, error: Exception) -> None:
        self.failures.append(error)


async def drain() -> None:
    """Let scheduled callbacks and provider tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture()
def delegate() -> RecordingDelegate:
    return RecordingDelegate()


@pytest.fixture()
def geocoder() -> AsyncMock:
    client = AsyncMock(spec=GeocodingClient)
    client.resolve.return_value = ATLANTA
    return client


def _provider(
    delegate: RecordingDelegate, config: LocationConfig, geocoder: AsyncMock | None = None
) -> ConfiguredLocationProvider:
    provider = ConfiguredLocationProvider(config, geocoder)
    provider.set_delegate(delegate)
    return provider


class TestConfiguredLocationProvider:
    """Test the configuration-backed provider."""

    @pytest.mark.asyncio()
    async def test_permission_granted_asynchronously(self, delegate: RecordingDelegate) -> None:
        provider = _provider(delegate, LocationConfig(lat=33.749, lon=-84.388))

        provider.request_when_in_use_authorization()
        assert delegate.statuses == []

        await drain()
        assert delegate.statuses == [AuthorizationStatus.AUTHORIZED_WHEN_IN_USE]
        assert provider.authorization_status.is_granted

    @pytest.mark.asyncio()
    async def test_no_source_is_restricted(self, delegate: RecordingDelegate) -> None:
        provider = _provider(delegate, LocationConfig())

        provider.request_when_in_use_authorization()
        await drain()

        assert delegate.statuses == [AuthorizationStatus.RESTRICTED]
        assert provider.has_source is False

    @pytest.mark.asyncio()
    async def test_permission_asked_once(self, delegate: RecordingDelegate) -> None:
        provider = _provider(delegate, LocationConfig(lat=1.0, lon=2.0))

        provider.request_when_in_use_authorization()
        await drain()
        provider.request_when_in_use_authorization()
        await drain()

        assert len(delegate.statuses) == 1

    @pytest.mark.asyncio()
    async def test_always_authorization(self, delegate: RecordingDelegate) -> None:
        provider = _provider(delegate, LocationConfig(lat=1.0, lon=2.0))

        provider.request_always_authorization()
        await drain()

        assert provider.authorization_status == AuthorizationStatus.AUTHORIZED_ALWAYS

    @pytest.mark.asyncio()
    async def test_fixed_coordinate_delivered(self, delegate: RecordingDelegate) -> None:
        provider = _provider(delegate, LocationConfig(lat=33.749, lon=-84.388))
        provider.request_when_in_use_authorization()
        await drain()

        provider.start_updating()
        await drain()

        assert delegate.fixes == [[ATLANTA]]

    @pytest.mark.asyncio()
    async def test_nothing_delivered_without_permission(self, delegate: RecordingDelegate) -> None:
        provider = _provider(delegate, LocationConfig(lat=33.749, lon=-84.388))

        provider.start_updating()
        provider.request_location()
        await drain()

        assert delegate.fixes == []
        assert provider.is_updating is False

    @pytest.mark.asyncio()
    async def test_city_geocoded_once(self, delegate: RecordingDelegate, geocoder: AsyncMock) -> None:
        provider = _provider(delegate, LocationConfig(city_name="Atlanta, GA"), geocoder)
        provider.request_when_in_use_authorization()
        await drain()

        provider.request_location()
        await drain()
        provider.request_location()
        await drain()

        assert delegate.fixes == [[ATLANTA], [ATLANTA]]
        geocoder.resolve.assert_awaited_once_with("Atlanta, GA")

    @pytest.mark.asyncio()
    async def test_geocoding_failure_reported(self, delegate: RecordingDelegate, geocoder: AsyncMock) -> None:
        geocoder.resolve.side_effect = NotFoundError("No such place")
        provider = _provider(delegate, LocationConfig(city_name="Atlantis"), geocoder)
        provider.request_when_in_use_authorization()
        await drain()

        provider.request_location()
        await drain()

        assert delegate.fixes == []
        assert len(delegate.failures) == 1
        failure = delegate.failures[0]
        assert isinstance(failure, LocationAcquisitionError)
        assert isinstance(failure.__cause__, NotFoundError)

    @pytest.mark.asyncio()
    async def test_stop_cancels_pending_update(self, delegate: RecordingDelegate, geocoder: AsyncMock) -> None:
        release = asyncio.Event()

        async def slow_resolve(city_name: str) -> Coordinate:
            await release.wait()
            return ATLANTA

        geocoder.resolve.side_effect = slow_resolve
        provider = _provider(delegate, LocationConfig(city_name="Atlanta"), geocoder)
        provider.request_when_in_use_authorization()
        await drain()

        provider.start_updating()
        await drain()
        provider.stop_updating()
        release.set()
        await drain()

        assert delegate.fixes == []

    @pytest.mark.asyncio()
    async def test_drives_coordinator(
        self, weather_fetcher: AsyncMock, aqi_fetcher: AsyncMock, store: PreferenceStore
    ) -> None:
        """Test permission, fix and refresh flow end to end."""
        provider = ConfiguredLocationProvider(LocationConfig(lat=33.749, lon=-84.388))
        coordinator = LocationCoordinator(
            provider, WeatherOrchestrator(weather_fetcher, store), AQIOrchestrator(aqi_fetcher, store)
        )

        coordinator.start()
        await drain()
        await coordinator.wait_idle()

        assert coordinator.state == LocationState.ACQUIRED
        assert coordinator.coordinate == ATLANTA
        weather_fetcher.fetch_by_coordinates.assert_awaited_once()
        aqi_fetcher.fetch_by_coordinates.assert_awaited_once()


class TestManualLocationProvider:
    """Test the host-driven provider."""

    def test_counts_requests(self) -> None:
        provider = ManualLocationProvider()
        provider.request_when_in_use_authorization()
        provider.request_always_authorization()
        provider.request_location()

        assert (provider.when_in_use_requests, provider.always_requests, provider.location_requests) == (1, 1, 1)

    def test_events_reach_delegate(self, delegate: RecordingDelegate) -> None:
        provider = ManualLocationProvider()
        provider.set_delegate(delegate)

        provider.grant(always=True)
        provider.push_fix(ATLANTA)
        provider.fail(LocationAcquisitionError("lost"))

        assert delegate.statuses == [AuthorizationStatus.AUTHORIZED_ALWAYS]
        assert provider.authorization_status == AuthorizationStatus.AUTHORIZED_ALWAYS
        assert delegate.fixes == [[ATLANTA]]
        assert len(delegate.failures) == 1

    def test_events_without_delegate(self) -> None:
        provider = ManualLocationProvider()
        provider.deny()
        provider.push_fix(ATLANTA)
        assert provider.authorization_status == AuthorizationStatus.DENIED

    def test_updating_flag(self) -> None:
        provider = ManualLocationProvider()
        provider.start_updating()
        assert provider.is_updating is True
        provider.stop_updating()
        assert provider.is_updating is False
