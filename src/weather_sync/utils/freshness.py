"""Freshness policy for cached feed data.

A cached value is fresh while it is strictly younger than the TTL. At the
exact boundary it is stale, so the caller refetches instead of serving data
that has just expired.
"""

from weather_sync.constants import CACHE_TTL_SECONDS


def is_fresh(
    last_fetch_epoch: float | None, now: float, ttl_seconds: float = CACHE_TTL_SECONDS
) -> bool:
    """Decide whether a cached value can be served without fetching.

    Args:
        last_fetch_epoch: Unix time of the last successful fetch, or None if
            the feed has never been fetched.
        now: Current Unix time.
        ttl_seconds: Freshness window in seconds.

    Returns:
        True if ``now - last_fetch_epoch < ttl_seconds``, False otherwise.
    """
    if last_fetch_epoch is None:
        return False
    return (now - last_fetch_epoch) < ttl_seconds


def cache_age(last_fetch_epoch: float | None, now: float) -> float | None:
    """Age of a cached value in seconds, or None if there is none."""
    if last_fetch_epoch is None:
        return None
    return now - last_fetch_epoch
