"""Custom exception hierarchy for the weather sync client.

This module defines domain-specific exceptions to provide better error handling,
clearer intent, and improved debugging capabilities throughout the application.

Exception Hierarchy:
    WeatherSyncError (Base)
    ├── ConfigurationError
    │   ├── InvalidConfigError
    │   ├── MissingConfigError
    │   └── ConfigFileNotFoundError
    ├── StoreError
    ├── FetchError
    │   ├── InvalidRequestError
    │   ├── TransportFailureError
    │   ├── NotFoundError
    │   ├── UpstreamError
    │   ├── EmptyResponseError
    │   └── MalformedResponseError
    └── LocationError
        ├── LocationPermissionDeniedError
        └── LocationAcquisitionError
"""

from typing import Any


# Base Exception
class WeatherSyncError(Exception):
    """Base exception for all weather sync errors.

    This is the root exception that all custom exceptions inherit from,
    allowing for broad exception handling when needed.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary containing additional error context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize the exception with message and optional details.

        Args:
            message: Human-readable error description
            details: Optional dictionary containing additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# Configuration Exceptions
class ConfigurationError(WeatherSyncError):
    """Base exception for configuration-related errors."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when configuration contains invalid values.

    Example:
        raise InvalidConfigError(
            "Invalid cache TTL",
            {"field": "cache_ttl_seconds", "value": -5, "reason": "Must be positive"}
        )
    """
    pass


class MissingConfigError(ConfigurationError):
    """Raised when required configuration is missing.

    Example:
        raise MissingConfigError(
            "Required configuration missing",
            {"field": "api_key", "config_section": "weather"}
        )
    """
    pass


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when configuration file cannot be found.

    Example:
        raise ConfigFileNotFoundError(
            "Configuration file not found",
            {"path": "/etc/weather-sync/config.yaml", "search_paths": ["/etc", "/home/user"]}
        )
    """
    pass


# Store Exceptions
class StoreError(WeatherSyncError):
    """Raised when the preference store cannot be read or written.

    Example:
        raise StoreError(
            "Failed to persist preferences",
            {"path": "/var/lib/weather-sync/preferences.json", "error": "Read-only file system"}
        )
    """
    pass


# Fetch Exceptions
class FetchError(WeatherSyncError):
    """Base exception for remote fetch failures.

    Every concrete subclass is one kind of the closed fetch error taxonomy.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        """Initialize fetch exception with additional context.

        Args:
            message: Human-readable error description
            details: Optional dictionary containing additional error context
            status_code: HTTP status code if applicable
            response_body: Raw response body for debugging
        """
        super().__init__(message, details)
        self.status_code = status_code
        self.response_body = response_body


class InvalidRequestError(FetchError):
    """Raised when a request cannot be constructed from its inputs.

    Example:
        raise InvalidRequestError(
            "Latitude out of range",
            {"lat": 123.0, "allowed": [-90, 90]}
        )
    """
    pass


class TransportFailureError(FetchError):
    """Raised when the network transport reports a connectivity error.

    Example:
        raise TransportFailureError(
            "Weather request failed to connect",
            {"endpoint": "/weather", "error": "Name or service not known"}
        )
    """
    pass


class NotFoundError(FetchError):
    """Raised when a place-name query returns HTTP 404.

    Example:
        raise NotFoundError(
            "No such place",
            {"q": "Nowhereville"},
            status_code=404
        )
    """
    pass


class UpstreamError(FetchError):
    """Raised for any other non-2xx upstream response.

    Example:
        raise UpstreamError(
            "Weather API request failed",
            {"endpoint": "/weather"},
            status_code=500,
            response_body="Internal Server Error"
        )
    """
    pass


class EmptyResponseError(FetchError):
    """Raised when a successful response carries no body."""
    pass


class MalformedResponseError(FetchError):
    """Raised when a response body does not match the expected schema.

    Example:
        raise MalformedResponseError(
            "Invalid API response format",
            {"expected_fields": ["main", "wind"], "received": ["main"]},
            status_code=200,
            response_body='{"main": {}}'
        )
    """
    pass


# Location Exceptions
class LocationError(WeatherSyncError):
    """Base exception for location acquisition errors."""
    pass


class LocationPermissionDeniedError(LocationError):
    """Raised when location permission is denied or restricted."""
    pass


class LocationAcquisitionError(LocationError):
    """Raised when a position fix cannot be obtained.

    Example:
        raise LocationAcquisitionError(
            "Could not resolve configured city",
            {"city_name": "Atlantis"}
        )
    """
    pass


# Utility function for exception chaining
def chain_exception(new_exception: WeatherSyncError, cause: Exception) -> WeatherSyncError:
    """Chain a new exception with its underlying cause.

    Args:
        new_exception: The new domain-specific exception to raise
        cause: The underlying exception that caused this error

    Returns:
        The new exception with cause properly chained

    Example:
        try:
            response = await client.get(url)
        except httpx.TransportError as e:
            raise chain_exception(
                TransportFailureError("Failed to fetch weather", {"url": url}),
                e
            ) from e
    """
    new_exception.__cause__ = cause
    return new_exception
