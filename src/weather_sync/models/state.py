"""State models shared by the orchestration and location layers.

Defines the persisted fetch record, the user preferences, the state enums of
the orchestrators and the location coordinator, and the read-only view
models handed to the presentation layer.
"""

from datetime import time
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, computed_field

from weather_sync.models.weather import AQISnapshot, Coordinate, UnitSystem, WeatherSnapshot

SnapshotT = TypeVar("SnapshotT", bound=BaseModel)


class FeedKind(str, Enum):
    """The two independent remote feeds."""

    WEATHER = "weather"
    AQI = "aqi"


class FetchState(str, Enum):
    """Orchestrator state."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class LocationState(str, Enum):
    """Location coordinator state."""

    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"
    ACQUIRING = "acquiring"
    ACQUIRED = "acquired"


class AuthorizationStatus(str, Enum):
    """Permission status reported by a location provider."""

    NOT_DETERMINED = "not_determined"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    AUTHORIZED_ALWAYS = "authorized_always"
    DENIED = "denied"
    RESTRICTED = "restricted"

    @property
    def is_granted(self) -> bool:
        """Whether the status allows position updates."""
        return self in (AuthorizationStatus.AUTHORIZED_WHEN_IN_USE, AuthorizationStatus.AUTHORIZED_ALWAYS)

    @property
    def is_refused(self) -> bool:
        """Whether the user or the system refused access."""
        return self in (AuthorizationStatus.DENIED, AuthorizationStatus.RESTRICTED)


class FetchRecord(BaseModel, Generic[SnapshotT]):
    """Last successful fetch for one feed.

    Stored as a single value so the timestamp and payload can only ever be
    replaced together.
    """

    model_config = ConfigDict(frozen=True)

    last_fetch_epoch: float | None = None
    payload: SnapshotT | None = None

    @property
    def is_empty(self) -> bool:
        """Whether no fetch has ever succeeded."""
        return self.payload is None


class Preferences(BaseModel):
    """User preferences, changed only by explicit user action."""

    units: UnitSystem = UnitSystem.METRIC
    default_city: str | None = None
    notifications_enabled: bool = False
    notification_time: time | None = None


class FeedView(BaseModel, Generic[SnapshotT]):
    """Observable state of one orchestrator."""

    feed: FeedKind
    state: FetchState
    snapshot: SnapshotT | None = None
    is_loading: bool = False
    is_offline: bool = False
    error_message: str | None = None
    last_fetch_epoch: float | None = None


class DisplayState(BaseModel):
    """Everything the presentation layer needs to render one frame."""

    weather: FeedView[WeatherSnapshot]
    aqi: FeedView[AQISnapshot]
    location_state: LocationState
    location_denied: bool = False
    coordinate: Coordinate | None = None
    location_error: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_offline(self) -> bool:
        """True when either feed is showing cached data after a failed fetch."""
        return self.weather.is_offline or self.aqi.is_offline

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_loading(self) -> bool:
        """True while either feed has a fetch in flight."""
        return self.weather.is_loading or self.aqi.is_loading

    @computed_field  # type: ignore[prop-decorator]
    @property
    def error_message(self) -> str | None:
        """The first error to show, location errors first."""
        return self.location_error or self.weather.error_message or self.aqi.error_message


class SearchResult(BaseModel):
    """Result of an uncached place search."""

    query: str
    snapshot: WeatherSnapshot | None = None
    error_message: str | None = None

    @property
    def has_error(self) -> bool:
        """Whether the search failed."""
        return self.error_message is not None
