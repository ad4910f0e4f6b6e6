"""Shared HTTP plumbing for the OpenWeatherMap fetchers.

Builds requests, performs a single attempt over ``httpx`` and translates every
failure into exactly one kind of the fetch error taxonomy. Fetchers never
retry; retry policy belongs to the caller.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from weather_sync.constants import HTTP_NOT_FOUND
from weather_sync.exceptions import (
    EmptyResponseError,
    FetchError,
    InvalidRequestError,
    MalformedResponseError,
    NotFoundError,
    TransportFailureError,
    UpstreamError,
    chain_exception,
)
from weather_sync.models.config import WeatherConfig
from weather_sync.utils.error_utils import get_error_location

ResultT = TypeVar("ResultT", bound=BaseModel)

# Longest slice of a response body kept on an exception
_BODY_PREVIEW_CHARS = 500


def validate_coordinates(lat: float, lon: float) -> None:
    """Check a coordinate pair before building a request.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Raises:
        InvalidRequestError: If either value is not finite or out of range.
    """
    if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
        raise InvalidRequestError("Latitude out of range", {"lat": lat, "allowed": [-90, 90]})
    if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
        raise InvalidRequestError("Longitude out of range", {"lon": lon, "allowed": [-180, 180]})


def validate_place_name(name: str) -> str:
    """Check and normalize a place name query.

    Raises:
        InvalidRequestError: If the name is empty or whitespace.
    """
    cleaned = name.strip() if isinstance(name, str) else ""
    if not cleaned:
        raise InvalidRequestError("Place name must not be empty", {"q": name})
    return cleaned


class OpenWeatherFetcher(ABC, Generic[ResultT]):
    """Base class for single-endpoint OpenWeatherMap clients.

    Attributes:
        config: Weather API configuration
        logger: Logger instance for tracking API operations
        ENDPOINT: Path appended to the configured base URL
        FEED_NAME: Short name used in log lines and error details
    """

    ENDPOINT = ""
    FEED_NAME = "openweather"

    def __init__(self, config: WeatherConfig, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the fetcher.

        Args:
            config: Weather API configuration including API key and base URL.
            client: Shared HTTP client. When omitted a short-lived client is
                opened for each request.
        """
        self.config = config
        self.logger = logging.getLogger(__name__)
        self._client = client

    @property
    def endpoint_url(self) -> str:
        """Absolute URL of this fetcher's endpoint."""
        return self.config.base_url.rstrip("/") + self.ENDPOINT

    @abstractmethod
    def _parse(self, data: Any) -> ResultT:
        """Convert decoded JSON into the result model.

        Implementations raise ``ValidationError``, ``KeyError``,
        ``IndexError`` or ``TypeError`` on unexpected shapes; those are
        reported as malformed responses.
        """

    async def _fetch(self, params: dict[str, Any], *, not_found_on_404: bool = False) -> ResultT:
        """Perform one request and parse the result.

        Args:
            params: Query parameters, without the API key.
            not_found_on_404: Report HTTP 404 as NotFoundError (place lookups)
                rather than as a generic upstream error.

        Returns:
            The parsed result model.

        Raises:
            FetchError: One subclass per failure kind.
        """
        data = await self._get_json(self.endpoint_url, params, not_found_on_404=not_found_on_404)
        try:
            return self._parse(data)
        except FetchError:
            raise
        except (ValidationError, KeyError, IndexError, TypeError) as e:
            self.logger.error(f"Unexpected {self.FEED_NAME} response shape: {e}")
            raise chain_exception(
                MalformedResponseError(
                    f"{self.FEED_NAME} response does not match the expected schema",
                    {"endpoint": self.endpoint_url, "error": str(e)},
                    status_code=200,
                ),
                e,
            ) from e

    async def _get_json(
        self, url: str, params: dict[str, Any], *, not_found_on_404: bool = False
    ) -> Any:
        """Issue a GET request and return the decoded JSON body.

        Raises:
            InvalidRequestError: Missing API key or URL rejected by httpx.
            TransportFailureError: Connect, read or timeout failure, a redirect
                loop or an undecodable body.
            NotFoundError: HTTP 404 when ``not_found_on_404`` is set.
            UpstreamError: Any other non-2xx status.
            EmptyResponseError: 2xx without a body.
            MalformedResponseError: Body that is not JSON.
        """
        if not self.config.api_key:
            raise InvalidRequestError("API key is not configured", {"endpoint": url})

        query = {**params, "appid": self.config.api_key}
        self.logger.info(
            f"Requesting {self.FEED_NAME} data from {url} "
            f"({', '.join(f'{k}={v}' for k, v in params.items())})"
        )

        try:
            response = await self._send(url, query)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise chain_exception(
                InvalidRequestError("Request URL is invalid", {"endpoint": url, "error": str(e)}), e
            ) from e
        except httpx.TransportError as e:
            error_location = get_error_location()
            self.logger.warning(f"Transport failure for {url} [{error_location}]: {e!r}")
            raise chain_exception(
                TransportFailureError(
                    f"{self.FEED_NAME} request failed to reach the server",
                    {"endpoint": url, "error": repr(e)},
                ),
                e,
            ) from e
        except httpx.RequestError as e:
            # Redirect loops and undecodable bodies
            error_location = get_error_location()
            self.logger.warning(f"Request to {url} failed [{error_location}]: {e!r}")
            raise chain_exception(
                TransportFailureError(
                    f"{self.FEED_NAME} request failed", {"endpoint": url, "error": repr(e)}
                ),
                e,
            ) from e

        status = response.status_code
        if status == HTTP_NOT_FOUND and not_found_on_404:
            raise NotFoundError(
                "No such place", {"endpoint": url, **params}, status_code=status, response_body=_preview(response)
            )
        if not response.is_success:
            self.logger.warning(f"{self.FEED_NAME} request returned HTTP {status}")
            raise UpstreamError(
                f"{self.FEED_NAME} API request failed",
                {"endpoint": url},
                status_code=status,
                response_body=_preview(response),
            )

        if not response.content.strip():
            raise EmptyResponseError(
                f"{self.FEED_NAME} API returned an empty body", {"endpoint": url}, status_code=status
            )

        try:
            return response.json()
        except ValueError as e:
            raise chain_exception(
                MalformedResponseError(
                    f"{self.FEED_NAME} API returned invalid JSON",
                    {"endpoint": url},
                    status_code=status,
                    response_body=_preview(response),
                ),
                e,
            ) from e

    async def _send(self, url: str, query: dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=query)

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            return await client.get(url, params=query)


def _preview(response: httpx.Response) -> str:
    return response.text[:_BODY_PREVIEW_CHARS]
