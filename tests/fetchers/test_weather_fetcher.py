"""Tests for the current-weather fetcher."""

# pyright: reportPrivateUsage=false

import math
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import Request, Response

from weather_sync.exceptions import (
    EmptyResponseError,
    InvalidRequestError,
    MalformedResponseError,
    NotFoundError,
    TransportFailureError,
    UpstreamError,
)
from weather_sync.fetchers.weather import WeatherFetcher
from weather_sync.models.config import AppConfig, WeatherConfig
from weather_sync.models.weather import UnitSystem, WeatherSnapshot
from weather_sync.utils.file_utils import JsonData


def create_mock_response(
    status_code: int = 200, json_data: Any = None, content: bytes | None = None
) -> Response:
    """Create a mock Response object with properly set request property."""
    if content is not None:
        response = Response(status_code, content=content)
    else:
        response = Response(status_code, json=json_data)
    response._request = Request("GET", "https://api.openweathermap.org/data/2.5/weather")
    return response


@pytest.fixture()
def fetcher(app_config: AppConfig) -> WeatherFetcher:
    return WeatherFetcher(app_config.weather)


class TestFetchByCoordinates:
    """Test coordinate queries."""

    @pytest.mark.asyncio()
    async def test_success(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, mock_weather_data: JsonData
    ) -> None:
        mock_httpx_client.get.return_value = create_mock_response(200, mock_weather_data)

        snapshot = await fetcher.fetch_by_coordinates(-6.2, 106.8)

        assert isinstance(snapshot, WeatherSnapshot)
        assert snapshot.name == "Jakarta"

        args, kwargs = mock_httpx_client.get.call_args
        assert args[0] == "https://api.openweathermap.org/data/2.5/weather"
        assert kwargs["params"] == {"lat": -6.2, "lon": 106.8, "units": "metric", "appid": "test_api_key"}

    @pytest.mark.asyncio()
    async def test_imperial_units(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, mock_weather_data: JsonData
    ) -> None:
        mock_httpx_client.get.return_value = create_mock_response(200, mock_weather_data)

        await fetcher.fetch_by_coordinates(-6.2, 106.8, UnitSystem.IMPERIAL)

        assert mock_httpx_client.get.call_args.kwargs["params"]["units"] == "imperial"

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(("lat", "lon"), [(90.5, 0.0), (0.0, -180.5), (math.nan, 0.0), (0.0, math.inf)])
    async def test_invalid_coordinates(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, lat: float, lon: float
    ) -> None:
        with pytest.raises(InvalidRequestError):
            await fetcher.fetch_by_coordinates(lat, lon)

        mock_httpx_client.get.assert_not_called()

    @pytest.mark.asyncio()
    async def test_404_is_upstream_error(self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock) -> None:
        """Test a 404 means "not found" only for place-name queries."""
        mock_httpx_client.get.return_value = create_mock_response(404, {"cod": "404"})

        with pytest.raises(UpstreamError) as exc_info:
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("status_code", [401, 429, 500, 503])
    async def test_non_success_status(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, status_code: int
    ) -> None:
        mock_httpx_client.get.return_value = create_mock_response(status_code, {"message": "error"})

        with pytest.raises(UpstreamError) as exc_info:
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

        assert exc_info.value.status_code == status_code
        assert "error" in (exc_info.value.response_body or "")

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("Name or service not known"),
            httpx.ReadTimeout("timed out"),
            httpx.RemoteProtocolError("peer closed connection"),
        ],
    )
    async def test_transport_failure(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, error: Exception
    ) -> None:
        mock_httpx_client.get.side_effect = error

        with pytest.raises(TransportFailureError) as exc_info:
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        "error",
        [httpx.DecodingError("bad gzip"), httpx.TooManyRedirects("Exceeded maximum allowed redirects.")],
    )
    async def test_other_request_errors(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, error: Exception
    ) -> None:
        """Test request errors outside TransportError are still translated."""
        mock_httpx_client.get.side_effect = error

        with pytest.raises(TransportFailureError) as exc_info:
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio()
    async def test_empty_body(self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock) -> None:
        mock_httpx_client.get.return_value = create_mock_response(200, content=b"")

        with pytest.raises(EmptyResponseError):
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

    @pytest.mark.asyncio()
    async def test_invalid_json(self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock) -> None:
        mock_httpx_client.get.return_value = create_mock_response(200, content=b"<html>oops</html>")

        with pytest.raises(MalformedResponseError) as exc_info:
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

        assert exc_info.value.response_body == "<html>oops</html>"

    @pytest.mark.asyncio()
    async def test_schema_mismatch(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, mock_weather_data: dict[str, Any]
    ) -> None:
        del mock_weather_data["wind"]
        mock_httpx_client.get.return_value = create_mock_response(200, mock_weather_data)

        with pytest.raises(MalformedResponseError):
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

    @pytest.mark.asyncio()
    async def test_json_array_is_malformed(self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock) -> None:
        mock_httpx_client.get.return_value = create_mock_response(200, [1, 2, 3])

        with pytest.raises(MalformedResponseError):
            await fetcher.fetch_by_coordinates(-6.2, 106.8)


class TestFetchByPlaceName:
    """Test place-name queries."""

    @pytest.mark.asyncio()
    async def test_success(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, mock_weather_data: JsonData
    ) -> None:
        mock_httpx_client.get.return_value = create_mock_response(200, mock_weather_data)

        snapshot = await fetcher.fetch_by_place_name("  Jakarta ")

        assert snapshot.name == "Jakarta"
        params = mock_httpx_client.get.call_args.kwargs["params"]
        assert params == {"q": "Jakarta", "units": "metric", "appid": "test_api_key"}

    @pytest.mark.asyncio()
    async def test_not_found(self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock) -> None:
        mock_httpx_client.get.return_value = create_mock_response(
            404, {"cod": "404", "message": "city not found"}
        )

        with pytest.raises(NotFoundError) as exc_info:
            await fetcher.fetch_by_place_name("Nowhereville")

        assert exc_info.value.status_code == 404
        assert exc_info.value.details["q"] == "Nowhereville"

    @pytest.mark.asyncio()
    async def test_server_error_is_not_not_found(
        self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock
    ) -> None:
        mock_httpx_client.get.return_value = create_mock_response(500, {"message": "boom"})

        with pytest.raises(UpstreamError):
            await fetcher.fetch_by_place_name("Jakarta")

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("name", ["", "   "])
    async def test_empty_name(self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock, name: str) -> None:
        with pytest.raises(InvalidRequestError):
            await fetcher.fetch_by_place_name(name)

        mock_httpx_client.get.assert_not_called()


class TestRequestConstruction:
    """Test behavior shared through the base fetcher."""

    @pytest.mark.asyncio()
    async def test_missing_api_key(self, mock_httpx_client: AsyncMock) -> None:
        fetcher = WeatherFetcher(WeatherConfig(api_key=""))

        with pytest.raises(InvalidRequestError):
            await fetcher.fetch_by_coordinates(0.0, 0.0)

        mock_httpx_client.get.assert_not_called()

    @pytest.mark.asyncio()
    async def test_rejected_url(self, mock_httpx_client: AsyncMock) -> None:
        fetcher = WeatherFetcher(WeatherConfig(api_key="k", base_url="ftp://example.com"))
        mock_httpx_client.get.side_effect = httpx.UnsupportedProtocol("ftp")

        with pytest.raises(InvalidRequestError):
            await fetcher.fetch_by_coordinates(0.0, 0.0)

    @pytest.mark.asyncio()
    async def test_api_key_not_logged(
        self,
        fetcher: WeatherFetcher,
        mock_httpx_client: AsyncMock,
        mock_weather_data: JsonData,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mock_httpx_client.get.return_value = create_mock_response(200, mock_weather_data)

        with caplog.at_level("DEBUG"):
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

        assert "Requesting weather data" in caplog.text
        assert "test_api_key" not in caplog.text

    @pytest.mark.asyncio()
    async def test_shared_client_is_used(self, app_config: AppConfig, mock_weather_data: JsonData) -> None:
        """Test an injected client is used instead of a per-request one."""
        shared = AsyncMock(spec=httpx.AsyncClient)
        shared.get.return_value = create_mock_response(200, mock_weather_data)
        fetcher = WeatherFetcher(app_config.weather, shared)

        await fetcher.fetch_by_coordinates(-6.2, 106.8)

        shared.get.assert_awaited_once()
        shared.aclose.assert_not_called()

    @pytest.mark.asyncio()
    async def test_no_retry(self, fetcher: WeatherFetcher, mock_httpx_client: AsyncMock) -> None:
        mock_httpx_client.get.side_effect = httpx.ConnectError("down")

        with pytest.raises(TransportFailureError):
            await fetcher.fetch_by_coordinates(-6.2, 106.8)

        assert mock_httpx_client.get.call_count == 1
