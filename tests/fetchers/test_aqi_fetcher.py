"""Tests for the air-quality fetcher."""

# pyright: reportPrivateUsage=false

from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import Request, Response

from weather_sync.exceptions import (
    EmptyResponseError,
    InvalidRequestError,
    MalformedResponseError,
    TransportFailureError,
    UpstreamError,
)
from weather_sync.fetchers.aqi import AQIFetcher
from weather_sync.models.config import AppConfig
from weather_sync.models.weather import AQISnapshot, UnitSystem


def create_mock_response(status_code: int = 200, json_data: Any = None, content: bytes | None = None) -> Response:
    """Create a mock Response object with properly set request property."""
    if content is not None:
        response = Response(status_code, content=content)
    else:
        response = Response(status_code, json=json_data)
    response._request = Request("GET", "https://api.openweathermap.org/data/2.5/air_pollution")
    return response


@pytest.fixture()
def fetcher(app_config: AppConfig) -> AQIFetcher:
    return AQIFetcher(app_config.weather)


@pytest.mark.asyncio()
async def test_fetch_success(
    fetcher: AQIFetcher, mock_httpx_client: AsyncMock, mock_air_pollution_data: dict[str, Any]
) -> None:
    """Test the first list entry becomes the snapshot."""
    mock_httpx_client.get.return_value = create_mock_response(200, mock_air_pollution_data)

    snapshot = await fetcher.fetch_by_coordinates(-6.2, 106.8)

    assert isinstance(snapshot, AQISnapshot)
    assert snapshot.aqi == 4
    assert snapshot.description == "Poor"
    assert snapshot.dt == 1718000000

    args, kwargs = mock_httpx_client.get.call_args
    assert args[0] == "https://api.openweathermap.org/data/2.5/air_pollution"
    assert kwargs["params"] == {"lat": -6.2, "lon": 106.8, "appid": "test_api_key"}


@pytest.mark.asyncio()
async def test_units_are_ignored(
    fetcher: AQIFetcher, mock_httpx_client: AsyncMock, mock_air_pollution_data: dict[str, Any]
) -> None:
    mock_httpx_client.get.return_value = create_mock_response(200, mock_air_pollution_data)

    await fetcher.fetch_by_coordinates(-6.2, 106.8, UnitSystem.IMPERIAL)

    assert "units" not in mock_httpx_client.get.call_args.kwargs["params"]


@pytest.mark.asyncio()
async def test_components_optional(fetcher: AQIFetcher, mock_httpx_client: AsyncMock) -> None:
    mock_httpx_client.get.return_value = create_mock_response(200, {"list": [{"main": {"aqi": 1}}]})

    snapshot = await fetcher.fetch_by_coordinates(0.0, 0.0)

    assert snapshot.aqi == 1
    assert snapshot.components is None


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "payload",
    [
        {"list": []},
        {"coord": {"lat": 0, "lon": 0}},
        {"list": [{"components": {}}]},
        {"list": [{"main": {"aqi": 9}}]},
        {"list": "nope"},
    ],
)
async def test_malformed_payloads(
    fetcher: AQIFetcher, mock_httpx_client: AsyncMock, payload: dict[str, Any]
) -> None:
    mock_httpx_client.get.return_value = create_mock_response(200, payload)

    with pytest.raises(MalformedResponseError):
        await fetcher.fetch_by_coordinates(0.0, 0.0)


@pytest.mark.asyncio()
async def test_404_is_upstream_error(fetcher: AQIFetcher, mock_httpx_client: AsyncMock) -> None:
    mock_httpx_client.get.return_value = create_mock_response(404, {"cod": "404"})

    with pytest.raises(UpstreamError) as exc_info:
        await fetcher.fetch_by_coordinates(0.0, 0.0)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio()
async def test_transport_failure(fetcher: AQIFetcher, mock_httpx_client: AsyncMock) -> None:
    mock_httpx_client.get.side_effect = httpx.ConnectTimeout("timed out")

    with pytest.raises(TransportFailureError):
        await fetcher.fetch_by_coordinates(0.0, 0.0)


@pytest.mark.asyncio()
async def test_empty_body(fetcher: AQIFetcher, mock_httpx_client: AsyncMock) -> None:
    mock_httpx_client.get.return_value = create_mock_response(200, content=b"  ")

    with pytest.raises(EmptyResponseError):
        await fetcher.fetch_by_coordinates(0.0, 0.0)


@pytest.mark.asyncio()
async def test_invalid_coordinates(fetcher: AQIFetcher, mock_httpx_client: AsyncMock) -> None:
    with pytest.raises(InvalidRequestError):
        await fetcher.fetch_by_coordinates(-91.0, 0.0)

    mock_httpx_client.get.assert_not_called()
