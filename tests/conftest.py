"""Common fixtures for testing the weather sync client."""

from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from weather_sync.fetchers.aqi import AQIFetcher
from weather_sync.fetchers.weather import WeatherFetcher
from weather_sync.models.config import AppConfig
from weather_sync.models.weather import AQISnapshot, WeatherSnapshot
from weather_sync.utils.file_utils import JsonData, read_json
from weather_sync.utils.preference_store import PreferenceStore

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture()
def test_config_path() -> Path:
    """Get the path to the test config file."""
    return DATA_DIR / "test_config.yaml"


@pytest.fixture()
def test_config_data(test_config_path: Path) -> dict[str, Any]:
    """Load test configuration data from YAML."""
    with open(test_config_path) as f:
        return yaml.safe_load(f)


@pytest.fixture()
def app_config(test_config_data: dict[str, Any]) -> AppConfig:
    """Create a test application configuration."""
    return AppConfig.model_validate(test_config_data)


@pytest.fixture()
def mock_weather_data() -> JsonData:
    """Load a recorded /weather response."""
    return read_json(DATA_DIR / "mock_weather_response.json")


@pytest.fixture()
def mock_air_pollution_data() -> JsonData:
    """Load a recorded /air_pollution response."""
    return read_json(DATA_DIR / "mock_air_pollution_response.json")


@pytest.fixture()
def weather_snapshot(mock_weather_data: JsonData) -> WeatherSnapshot:
    """Parsed weather snapshot for Jakarta."""
    return WeatherSnapshot.model_validate(mock_weather_data)


@pytest.fixture()
def aqi_snapshot(mock_air_pollution_data: dict[str, Any]) -> AQISnapshot:
    """Parsed air-quality snapshot for Jakarta."""
    first = mock_air_pollution_data["list"][0]
    return AQISnapshot.model_validate(
        {"aqi": first["main"]["aqi"], "components": first["components"], "dt": first["dt"]}
    )


@pytest.fixture()
def store() -> PreferenceStore:
    """In-memory preference store."""
    return PreferenceStore()


@pytest.fixture()
def mock_httpx_client() -> Generator[AsyncMock, None, None]:
    """Mock httpx.AsyncClient to avoid actual HTTP requests."""
    with patch("httpx.AsyncClient") as mock:
        mock_client = AsyncMock()
        mock.return_value.__aenter__.return_value = mock_client
        mock.return_value.__aexit__.return_value = None
        yield mock_client


@pytest.fixture()
def weather_fetcher(weather_snapshot: WeatherSnapshot) -> AsyncMock:
    """Weather fetcher double answering every query with the Jakarta snapshot."""
    fetcher = AsyncMock(spec=WeatherFetcher)
    fetcher.fetch_by_coordinates.return_value = weather_snapshot
    fetcher.fetch_by_place_name.return_value = weather_snapshot
    return fetcher


@pytest.fixture()
def aqi_fetcher(aqi_snapshot: AQISnapshot) -> AsyncMock:
    """Air-quality fetcher double."""
    fetcher = AsyncMock(spec=AQIFetcher)
    fetcher.fetch_by_coordinates.return_value = aqi_snapshot
    return fetcher
