"""Application-wide constants for the weather sync client.

This module centralizes all constants used throughout the application to
ensure consistency and maintainability. Constants are organized into logical
categories for easier reference and documentation.

Constants are grouped into the following categories:
- Path Constants: Directory and file names for configuration and data
- OpenWeatherMap API: Endpoints and query defaults
- Network Constants: HTTP timeouts and server defaults
- Cache Constants: Time-to-live values and preference store keys
- User-facing Messages: Fixed strings surfaced to the presentation layer
"""

# Path constants
APP_DIR_NAME = "weather-sync"  # Directory name for config and data
DEFAULT_CONFIG_PATH = f"/etc/{APP_DIR_NAME}/config.yaml"  # Default config location
DEFAULT_STORE_FILENAME = "preferences.json"  # Preference store file name

# OpenWeatherMap API URLs
OWM_BASE_URL = "https://api.openweathermap.org/data/2.5"  # Current weather + air pollution
OWM_WEATHER_PATH = "/weather"  # Current weather endpoint
OWM_AIR_POLLUTION_PATH = "/air_pollution"  # Air pollution endpoint
OWM_GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"  # Geocoding API
API_LOCATION_LIMIT = 1  # Limit parameter for geocoding API results

# Two-letter codes that mark a "City, ST" query as a US city
US_STATE_CODES = frozenset(
    {
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL", "GA", "HI", "ID", "IL",
        "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE",
        "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC", "SD",
        "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
    }
)

# Network constants
DEFAULT_SERVER_HOST = "127.0.0.1"  # Default host for server
DEFAULT_SERVER_PORT = 8000  # Default port for server
DEFAULT_HTTP_TIMEOUT = 10.0  # HTTP request timeout in seconds
HTTP_NOT_FOUND = 404  # Status code meaning "no such place" for name queries

# Cache constants
CACHE_TTL_SECONDS = 3600  # Freshness window for both feeds
MIN_CACHE_TTL_SECONDS = 60  # Smallest TTL accepted from configuration

# Preference store keys
PREF_UNITS = "units"
PREF_DEFAULT_CITY = "defaultCity"
PREF_NOTIFICATIONS_ENABLED = "notificationsEnabled"
PREF_NOTIFICATION_TIME = "notificationTime"
FETCH_RECORD_KEY_PREFIX = "fetchRecord."  # Followed by the feed name

# AQI (Air Quality Index) levels and descriptions
AQI_LEVELS = {
    1: "Good",
    2: "Fair",
    3: "Moderate",
    4: "Poor",
    5: "Very Poor",
}

# User-facing messages
MSG_INVALID_REQUEST = "Invalid request. Please try again."
MSG_TRANSPORT_FAILURE = "Network error. Please check your connection and try again."
MSG_UPSTREAM_ERROR = "Server error with status code: {status_code}"
MSG_NOT_FOUND = "City not found. Please ensure you have entered a valid city."
MSG_EMPTY_RESPONSE = "No data received. Please try again."
MSG_MALFORMED_RESPONSE = "Failed to parse data. Please try again."
MSG_UNKNOWN_ERROR = "Something went wrong. Please try again."
MSG_LOCATION_DENIED = "Location access is denied. Please enable it in Settings."
MSG_LOCATION_FAILED = "Unable to get your location. Please try again later."
