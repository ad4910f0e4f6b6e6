"""Cached fetch with stale fallback, one instance per feed.

Each orchestrator decides, per request, whether to serve the stored snapshot,
fetch a new one, or fall back to the stored snapshot after a failed fetch. It
owns the observable state the presentation layer renders.

All methods run on the event loop; there is no locking. Overlapping requests
for the same feed are resolved by a generation counter: only the most
recently issued request may change state or the store when it completes.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from pydantic import BaseModel

from weather_sync.constants import CACHE_TTL_SECONDS
from weather_sync.exceptions import FetchError, InvalidRequestError, StoreError
from weather_sync.fetchers.aqi import AQIFetcher
from weather_sync.fetchers.weather import WeatherFetcher
from weather_sync.models.state import FeedKind, FeedView, FetchRecord, FetchState
from weather_sync.models.weather import AQISnapshot, Coordinate, WeatherSnapshot
from weather_sync.orchestration.messages import is_connectivity_error, message_for
from weather_sync.utils.error_utils import get_error_location
from weather_sync.utils.freshness import cache_age, is_fresh
from weather_sync.utils.preference_store import PreferenceStore

logger = logging.getLogger(__name__)

SnapshotT = TypeVar("SnapshotT", bound=BaseModel)

# A request target: a coordinate, or a place name for feeds that support it
FetchTarget = Coordinate | str


class FeedStateCallback:
    """Wrapper for feed state change callbacks."""

    def __init__(self, callback: Callable[[FeedView], None]) -> None:
        self.callback = callback


class CachedFetchOrchestrator(ABC, Generic[SnapshotT]):
    """Per-feed state machine: idle -> loading -> succeeded | failed.

    Attributes:
        FEED: Which feed this orchestrator serves
        SNAPSHOT_TYPE: Snapshot model stored for the feed
        store: Shared preference store
        ttl_seconds: Freshness window of the stored snapshot
    """

    FEED: FeedKind
    SNAPSHOT_TYPE: type[SnapshotT]

    def __init__(
        self,
        store: PreferenceStore,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Shared preference store holding the fetch record
            ttl_seconds: Freshness window in seconds
            clock: Source of the current Unix time
        """
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._state = FetchState.IDLE
        self._snapshot: SnapshotT | None = None
        self._is_loading = False
        self._is_offline = False
        self._error_message: str | None = None
        self._last_error: FetchError | None = None
        self._generation = 0
        self._callbacks: list[FeedStateCallback] = []

    # Observable state
    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def snapshot(self) -> SnapshotT | None:
        """Snapshot currently on display, possibly stale after a failure."""
        return self._snapshot

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_offline(self) -> bool:
        return self._is_offline

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def last_error(self) -> FetchError | None:
        return self._last_error

    @property
    def generation(self) -> int:
        """Number of requests issued so far."""
        return self._generation

    @property
    def record(self) -> FetchRecord[SnapshotT]:
        """The stored fetch record of this feed."""
        return self.store.load_fetch_record(self.FEED, self.SNAPSHOT_TYPE)

    @property
    def last_fetch_epoch(self) -> float | None:
        return self.record.last_fetch_epoch

    def view(self) -> FeedView[SnapshotT]:
        """Snapshot of the observable state for the presentation layer."""
        return FeedView[self.SNAPSHOT_TYPE](  # type: ignore[name-defined]
            feed=self.FEED,
            state=self._state,
            snapshot=self._snapshot,
            is_loading=self._is_loading,
            is_offline=self._is_offline,
            error_message=self._error_message,
            last_fetch_epoch=self.last_fetch_epoch,
        )

    def register_state_change_callback(
        self, callback: Callable[[FeedView], None]
    ) -> FeedStateCallback:
        """Register a callback invoked after every state change.

        Args:
            callback: Function receiving the new feed view

        Returns:
            Callback wrapper object, used to unregister.
        """
        callback_obj = FeedStateCallback(callback)
        self._callbacks.append(callback_obj)
        return callback_obj

    def unregister_state_change_callback(self, callback_obj: FeedStateCallback) -> None:
        if callback_obj in self._callbacks:
            self._callbacks.remove(callback_obj)

    def load_cached(self) -> SnapshotT | None:
        """Show the stored snapshot, whatever its age, without fetching.

        Used at start-up so the last known data appears before the first
        location fix. The state machine is left untouched.
        """
        payload = self.record.payload
        if payload is not None and self._snapshot is None:
            self._snapshot = payload
            self._notify()
        return payload

    async def request_data(self, target: FetchTarget, force_refresh: bool = False) -> SnapshotT | None:
        """Serve, fetch or fall back, then return the snapshot on display.

        Args:
            target: Coordinate or place name to query
            force_refresh: Skip the freshness check and always fetch

        Returns:
            The snapshot now on display, or None if there is none.
        """
        self._generation += 1
        generation = self._generation
        self._state = FetchState.LOADING
        self._is_loading = True
        self._notify()

        record = self.record
        now = self._clock()

        if (
            not force_refresh
            and record.payload is not None
            and is_fresh(record.last_fetch_epoch, now, self.ttl_seconds)
        ):
            age = cache_age(record.last_fetch_epoch, now)
            logger.info(f"Using cached {self.FEED.value} data (age: {age:.1f}s, TTL: {self.ttl_seconds}s)")
            self._succeed(record.payload)
            return self._snapshot

        logger.info(
            f"Fetching {self.FEED.value} data for {_describe(target)}"
            + (" (forced)" if force_refresh else "")
        )
        try:
            snapshot = await self._invoke_fetcher(target)
        except FetchError as e:
            if self._is_superseded(generation):
                return self._snapshot
            self._fail(e, record)
            return self._snapshot
        except Exception:
            if not self._is_superseded(generation):
                self._state = FetchState.FAILED
                self._is_loading = False
                self._notify()
            raise

        if self._is_superseded(generation):
            return self._snapshot

        fetched_at = self._clock()
        try:
            self.store.save_fetch_record(
                self.FEED,
                FetchRecord[self.SNAPSHOT_TYPE](last_fetch_epoch=fetched_at, payload=snapshot),  # type: ignore[name-defined]
            )
        except StoreError as e:
            error_location = get_error_location()
            logger.error(f"Could not cache {self.FEED.value} data [{error_location}]: {e}")

        logger.info(f"{self.FEED.value.capitalize()} data updated successfully")
        self._succeed(snapshot)
        return self._snapshot

    @abstractmethod
    async def _invoke_fetcher(self, target: FetchTarget) -> SnapshotT:
        """Call the feed's fetcher once for the target."""

    def _is_superseded(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        logger.debug(
            f"Discarding {self.FEED.value} result of request {generation}, "
            f"request {self._generation} is newer"
        )
        return True

    def _succeed(self, snapshot: SnapshotT) -> None:
        self._snapshot = snapshot
        self._state = FetchState.SUCCEEDED
        self._is_loading = False
        self._is_offline = False
        self._error_message = None
        self._last_error = None
        self._notify()

    def _fail(self, error: FetchError, record: FetchRecord[SnapshotT]) -> None:
        self._state = FetchState.FAILED
        self._is_loading = False
        self._last_error = error
        self._error_message = message_for(error)

        if is_connectivity_error(error):
            self._is_offline = True
            if record.payload is not None:
                logger.warning(f"Using cached {self.FEED.value} data due to error: {error}")
                self._snapshot = record.payload
            else:
                logger.error(f"{self.FEED.value.capitalize()} fetch failed with no cached data: {error}")
        else:
            # The lookup itself was answered; cached data belongs to another place
            self._is_offline = False
            logger.info(f"{self.FEED.value.capitalize()} lookup found nothing: {error}")

        self._notify()

    def _notify(self) -> None:
        if not self._callbacks:
            return
        view = self.view()
        for callback_obj in self._callbacks:
            try:
                callback_obj.callback(view)
            except Exception as e:
                logger.error(f"Error in {self.FEED.value} state callback: {e}")


class WeatherOrchestrator(CachedFetchOrchestrator[WeatherSnapshot]):
    """Orchestrator of the current-weather feed.

    Accepts a coordinate or a place name. Units come from the stored
    preferences at request time.
    """

    FEED = FeedKind.WEATHER
    SNAPSHOT_TYPE = WeatherSnapshot

    def __init__(
        self,
        fetcher: WeatherFetcher,
        store: PreferenceStore,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(store, ttl_seconds, clock)
        self.fetcher = fetcher

    async def _invoke_fetcher(self, target: FetchTarget) -> WeatherSnapshot:
        units = self.store.load_units()
        if isinstance(target, Coordinate):
            return await self.fetcher.fetch_by_coordinates(target.lat, target.lon, units)
        return await self.fetcher.fetch_by_place_name(target, units)


class AQIOrchestrator(CachedFetchOrchestrator[AQISnapshot]):
    """Orchestrator of the air-quality feed. Coordinates only."""

    FEED = FeedKind.AQI
    SNAPSHOT_TYPE = AQISnapshot

    def __init__(
        self,
        fetcher: AQIFetcher,
        store: PreferenceStore,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(store, ttl_seconds, clock)
        self.fetcher = fetcher

    async def _invoke_fetcher(self, target: FetchTarget) -> AQISnapshot:
        if not isinstance(target, Coordinate):
            raise InvalidRequestError("Air quality can only be queried by coordinate", {"target": target})
        return await self.fetcher.fetch_by_coordinates(target.lat, target.lon)


def _describe(target: FetchTarget) -> str:
    if isinstance(target, Coordinate):
        return f"({target.lat}, {target.lon})"
    return repr(target)
