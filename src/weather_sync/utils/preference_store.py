"""Persisted key/value store for preferences and cached feed data.

The store is constructed once per process and injected into every component
that needs it. Values are strings, booleans, floats or blobs; structured data
(snapshots, fetch records) is encoded to JSON by pydantic and kept as a blob.

A fetch record is saved under a single key, so its timestamp and payload are
replaced in one write and can never be observed out of step.
"""

import base64
import binascii
import logging
from datetime import time
from pathlib import Path
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from weather_sync.constants import (
    FETCH_RECORD_KEY_PREFIX,
    PREF_DEFAULT_CITY,
    PREF_NOTIFICATION_TIME,
    PREF_NOTIFICATIONS_ENABLED,
    PREF_UNITS,
)
from weather_sync.exceptions import StoreError, chain_exception
from weather_sync.models.state import FeedKind, FetchRecord, Preferences
from weather_sync.models.weather import UnitSystem
from weather_sync.utils.error_utils import get_error_location
from weather_sync.utils.file_utils import file_exists, read_json, write_json_atomic

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
SnapshotT = TypeVar("SnapshotT", bound=BaseModel)


class KeyValueBackend(Protocol):
    """Storage surface used by the preference store."""

    def get(self, key: str) -> Any:
        """Return the raw value for a key, or None."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value."""
        ...

    def remove(self, key: str) -> None:
        """Delete a key if present."""
        ...

    def keys(self) -> list[str]:
        """List stored keys."""
        ...


class MemoryBackend:
    """In-process backend, used for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileBackend:
    """Backend persisting all keys in one JSON file.

    The file is read lazily on first access and rewritten atomically on every
    mutation. A missing file is an empty store; an unreadable one is logged
    and treated as empty so a corrupt cache never blocks start-up.

    Attributes:
        path: Location of the JSON file
    """

    def __init__(self, path: Path) -> None:
        """Initialize the backend.

        Args:
            path: Location of the JSON file; parent directories are created
                on first write.
        """
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        self._data = {}
        if not file_exists(self.path):
            return self._data

        try:
            loaded = read_json(self.path)
        except (OSError, ValueError) as e:
            # ValueError covers bad JSON and bad UTF-8
            error_location = get_error_location()
            logger.warning(f"Ignoring unreadable preference store {self.path} [{error_location}]: {e}")
            return self._data

        if isinstance(loaded, dict):
            self._data = loaded
        else:
            logger.warning(f"Ignoring preference store {self.path}: top-level value is not an object")
        return self._data

    def _flush(self) -> None:
        try:
            write_json_atomic(self.path, self._load())
        except OSError as e:
            raise chain_exception(
                StoreError("Failed to persist preference store", {"path": str(self.path), "error": str(e)}),
                e,
            ) from e

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        self._load()[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._flush()

    def keys(self) -> list[str]:
        return list(self._load())


class PreferenceStore:
    """Typed access to user preferences and per-feed fetch records.

    Attributes:
        backend: Underlying key/value backend
    """

    def __init__(self, backend: KeyValueBackend | None = None) -> None:
        """Initialize the store.

        Args:
            backend: Key/value backend; an in-memory one when omitted.
        """
        self.backend: KeyValueBackend = backend or MemoryBackend()

    @classmethod
    def from_path(cls, path: Path) -> "PreferenceStore":
        """Create a store persisted to a JSON file."""
        return cls(JsonFileBackend(path))

    # Primitive accessors
    def get_string(self, key: str, default: str | None = None) -> str | None:
        value = self.backend.get(key)
        return value if isinstance(value, str) else default

    def set_string(self, key: str, value: str) -> None:
        self.backend.set(key, value)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.backend.get(key)
        return value if isinstance(value, bool) else default

    def set_bool(self, key: str, value: bool) -> None:
        self.backend.set(key, value)

    def get_float(self, key: str, default: float | None = None) -> float | None:
        value = self.backend.get(key)
        if isinstance(value, bool) or not isinstance(value, int | float):
            return default
        return float(value)

    def set_float(self, key: str, value: float) -> None:
        self.backend.set(key, float(value))

    def get_blob(self, key: str) -> bytes | None:
        """Return binary data stored under a key.

        Blobs are kept base64-encoded so the backend only ever sees JSON
        values. Undecodable data is logged and reported as absent.
        """
        value = self.backend.get(key)
        if not isinstance(value, str):
            return None
        try:
            return base64.b64decode(value.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            logger.warning(f"Discarding undecodable blob under {key!r}: {e}")
            return None

    def set_blob(self, key: str, data: bytes) -> None:
        self.backend.set(key, base64.b64encode(data).decode("ascii"))

    def remove(self, key: str) -> None:
        self.backend.remove(key)

    # Structured values
    def get_model(self, key: str, model_type: type[ModelT]) -> ModelT | None:
        """Decode a pydantic model stored as a JSON blob.

        Args:
            key: Store key
            model_type: Model class to validate against

        Returns:
            The decoded model, or None if missing or no longer valid.
        """
        blob = self.get_blob(key)
        if blob is None:
            return None
        try:
            return model_type.model_validate_json(blob)
        except ValidationError as e:
            logger.warning(f"Discarding stored {model_type.__name__} under {key!r}: {e.error_count()} errors")
            return None

    def set_model(self, key: str, model: BaseModel) -> None:
        self.set_blob(key, model.model_dump_json().encode("utf-8"))

    # Fetch records
    @staticmethod
    def fetch_record_key(feed: FeedKind) -> str:
        return f"{FETCH_RECORD_KEY_PREFIX}{feed.value}"

    def load_fetch_record(
        self, feed: FeedKind, snapshot_type: type[SnapshotT]
    ) -> FetchRecord[SnapshotT]:
        """Load the fetch record of a feed, empty if none was saved.

        Args:
            feed: Which feed to load
            snapshot_type: Snapshot model of that feed

        Returns:
            The stored record, or an empty record.
        """
        record_type = FetchRecord[snapshot_type]  # type: ignore[valid-type]
        record = self.get_model(self.fetch_record_key(feed), record_type)
        return record if record is not None else record_type()

    def save_fetch_record(self, feed: FeedKind, record: FetchRecord[Any]) -> None:
        """Replace the fetch record of a feed in a single write."""
        self.set_model(self.fetch_record_key(feed), record)
        logger.debug(f"Saved {feed.value} fetch record at {record.last_fetch_epoch}")

    # Preferences
    def load_units(self) -> UnitSystem:
        value = self.get_string(PREF_UNITS)
        try:
            return UnitSystem(value) if value else UnitSystem.METRIC
        except ValueError:
            logger.warning(f"Unknown unit system {value!r}, using metric")
            return UnitSystem.METRIC

    def save_units(self, units: UnitSystem) -> None:
        self.set_string(PREF_UNITS, units.value)

    def load_default_city(self) -> str | None:
        return self.get_string(PREF_DEFAULT_CITY) or None

    def save_default_city(self, city_name: str) -> None:
        self.set_string(PREF_DEFAULT_CITY, city_name)

    def clear_default_city(self) -> None:
        self.remove(PREF_DEFAULT_CITY)

    def load_notification_preference(self) -> bool:
        return self.get_bool(PREF_NOTIFICATIONS_ENABLED)

    def save_notification_preference(self, enabled: bool) -> None:
        self.set_bool(PREF_NOTIFICATIONS_ENABLED, enabled)

    def load_notification_time(self) -> time | None:
        value = self.get_string(PREF_NOTIFICATION_TIME)
        if not value:
            return None
        try:
            return time.fromisoformat(value)
        except ValueError:
            logger.warning(f"Ignoring malformed notification time {value!r}")
            return None

    def save_notification_time(self, at: time) -> None:
        # ISO format keeps seconds; "HH:MM" values still load
        self.set_string(PREF_NOTIFICATION_TIME, at.isoformat())

    def load_preferences(self) -> Preferences:
        """Read all user preferences at once."""
        return Preferences(
            units=self.load_units(),
            default_city=self.load_default_city(),
            notifications_enabled=self.load_notification_preference(),
            notification_time=self.load_notification_time(),
        )

    def save_preferences(self, preferences: Preferences) -> None:
        """Persist all user preferences."""
        self.save_units(preferences.units)
        if preferences.default_city:
            self.save_default_city(preferences.default_city)
        else:
            self.clear_default_city()
        self.save_notification_preference(preferences.notifications_enabled)
        if preferences.notification_time is not None:
            self.save_notification_time(preferences.notification_time)
        else:
            self.remove(PREF_NOTIFICATION_TIME)
