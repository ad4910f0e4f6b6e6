"""Module initialization."""

from weather_sync.utils.freshness import cache_age, is_fresh
from weather_sync.utils.path_utils import path_resolver
from weather_sync.utils.preference_store import (
    JsonFileBackend,
    KeyValueBackend,
    MemoryBackend,
    PreferenceStore,
)

__all__ = [
    # Freshness policy
    "is_fresh",
    "cache_age",
    # Paths
    "path_resolver",
    # Preference store
    "PreferenceStore",
    "KeyValueBackend",
    "MemoryBackend",
    "JsonFileBackend",
]
