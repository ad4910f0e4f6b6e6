# pyright: reportUnknownMemberType=false

"""HTTP surface of the weather sync client.

Exposes the session facade over a small FastAPI application so that a
presentation layer in another process can drive refreshes, read the display
state and edit preferences. One session lives for the lifetime of the app.
"""

import argparse
import sys
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator

from weather_sync.constants import DEFAULT_CONFIG_PATH, DEFAULT_SERVER_HOST
from weather_sync.exceptions import ConfigFileNotFoundError, FetchError, InvalidRequestError, NotFoundError
from weather_sync.models.config import AppConfig
from weather_sync.models.state import DisplayState, FeedView, Preferences
from weather_sync.models.weather import AQISnapshot, Coordinate, WeatherSnapshot
from weather_sync.orchestration.messages import message_for
from weather_sync.session import WeatherSession
from weather_sync.utils.early_error_handler import handle_startup_error
from weather_sync.utils.error_utils import get_error_location
from weather_sync.utils.logging import setup_logging
from weather_sync.utils.path_utils import validate_config_path


class LocationRequest(BaseModel):
    """Request body for a one-shot location cycle."""

    ignore_cache: bool = False


class RefreshRequest(BaseModel):
    """Request body for the refresh action."""

    force_refresh: bool = True


class WeatherRequest(BaseModel):
    """Request body for a weather feed refresh.

    Exactly one of a coordinate pair or a city name must be given.

    Attributes:
        lat: Latitude in degrees
        lon: Longitude in degrees
        city: Place name to query instead of a coordinate
        force_refresh: Skip the freshness check
    """

    lat: float | None = Field(default=None, ge=-90.0, le=90.0)
    lon: float | None = Field(default=None, ge=-180.0, le=180.0)
    city: str | None = None
    force_refresh: bool = False

    @model_validator(mode="after")
    def validate_target(self) -> "WeatherRequest":
        has_pair = self.lat is not None and self.lon is not None
        if (self.lat is None) != (self.lon is None):
            raise ValueError("Latitude and longitude must be provided together")
        if has_pair == bool(self.city and self.city.strip()):
            raise ValueError("Provide either a coordinate or a city, not both")
        return self

    def target(self) -> Coordinate | str:
        if self.lat is not None and self.lon is not None:
            return Coordinate(lat=self.lat, lon=self.lon)
        return self.city or ""


class AQIRequest(BaseModel):
    """Request body for an air-quality feed refresh."""

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    force_refresh: bool = False


def _status_for(error: FetchError) -> int:
    if isinstance(error, InvalidRequestError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_502_BAD_GATEWAY


class WeatherSyncServer:
    """HTTP server wrapping one weather session.

    Attributes:
        config: Application configuration from YAML
        logger: Configured logger instance
        session: Session facade serving every route
        app: FastAPI application instance
    """

    def __init__(
        self,
        config_path: Path,
        session_factory: Callable[[AppConfig], WeatherSession] = WeatherSession,
    ) -> None:
        """Initialize the server.

        Args:
            config_path: Path to configuration file.
            session_factory: Builds the session from the loaded configuration.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            ValueError: If configuration is invalid.
        """
        self.config = AppConfig.from_yaml(config_path)
        self.logger = setup_logging(self.config.logging, "weather_sync")
        self.session = session_factory(self.config)
        self.app = FastAPI(title="Weather Sync Server", lifespan=self._lifespan)
        self._setup_routes()
        self.logger.info("Weather Sync Server initialized")

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        """Start the session with the app and close it on shutdown."""
        self.logger.info("Starting Weather Sync Server")
        await self.session.start()

        yield

        self.logger.info("Shutting down Weather Sync Server")
        await self.session.aclose()

    def _setup_routes(self) -> None:
        """Set up FastAPI routes.

        - GET /: Server health check
        - GET /state: Current display state
        - POST /location: Start a location cycle
        - POST /refresh: Refresh the default city or the current location
        - POST /weather, POST /aqi: Refresh one feed
        - GET /search: Uncached place search
        - GET /preferences, PUT /preferences: Read or replace preferences
        """
        session = self.session

        @self.app.get("/")
        async def root() -> dict[str, str]:
            return {"status": "ok", "service": "Weather Sync Server"}

        @self.app.get("/state")
        async def get_state() -> DisplayState:
            return session.display_state()

        @self.app.post("/location", status_code=status.HTTP_202_ACCEPTED)
        async def request_location(request: LocationRequest | None = None) -> DisplayState:
            """Start a one-shot location cycle.

            The fix arrives asynchronously; poll ``/state`` for the result.
            """
            session.request_location(ignore_cache=request.ignore_cache if request else False)
            return session.display_state()

        @self.app.post("/refresh")
        async def refresh(request: RefreshRequest | None = None) -> DisplayState:
            await session.refresh(force_refresh=request.force_refresh if request else True)
            return session.display_state()

        @self.app.post("/weather")
        async def fetch_weather(request: WeatherRequest) -> FeedView[WeatherSnapshot]:
            """Refresh the weather feed for a coordinate or a city.

            Fetch failures are reported in the returned view, not as HTTP errors.
            """
            await session.fetch_weather(request.target(), request.force_refresh)
            return session.weather.view()

        @self.app.post("/aqi")
        async def fetch_aqi(request: AQIRequest) -> FeedView[AQISnapshot]:
            coordinate = Coordinate(lat=request.lat, lon=request.lon)
            await session.fetch_aqi(coordinate, request.force_refresh)
            return session.aqi.view()

        @self.app.get("/search")
        async def search(q: str = Query(..., description="Place name")) -> WeatherSnapshot:
            return await self._handle_search(q)

        @self.app.get("/preferences")
        async def get_preferences() -> Preferences:
            return session.preferences

        @self.app.put("/preferences")
        async def put_preferences(preferences: Preferences) -> Preferences:
            try:
                return session.update_preferences(preferences)
            except InvalidRequestError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    async def _handle_search(self, query: str) -> WeatherSnapshot:
        """Handle a place search.

        Args:
            query: Place name from the query string.

        Returns:
            Weather for the place.

        Raises:
            HTTPException: 400, 404 or 502 depending on the fetch failure.
        """
        try:
            return await self.session.lookup_place(query)
        except FetchError as e:
            error_location = get_error_location()
            self.logger.error(f"Search for {query!r} failed [{error_location}]: {e}")
            raise HTTPException(status_code=_status_for(e), detail=message_for(e)) from e

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Run the server.

        Args:
            host: Host to bind to. Defaults to server config or 127.0.0.1 (localhost).
            port: Port to bind to. Defaults to server config or 8000.
        """
        import uvicorn

        bind_host = host or self.config.server.host or DEFAULT_SERVER_HOST
        bind_port = port or self.config.server.port

        self.logger.info(f"Starting Weather Sync Server on {bind_host}:{bind_port}")

        uvicorn.run(self.app, host=bind_host, port=bind_port)


def main() -> None:
    """Main entry point for the server.

    Parses command line arguments, initializes the server with the
    specified configuration, and starts it running.
    """
    parser = argparse.ArgumentParser(description="Weather Sync Server")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--host", type=str, help="Host to bind to (default: 127.0.0.1 or config value)"
    )
    parser.add_argument("--port", type=int, help="Port to bind to (default: 8000 or config value)")
    args = parser.parse_args()

    try:
        config_path = validate_config_path(args.config)
    except ConfigFileNotFoundError as e:
        handle_startup_error("CONFIG_NOT_FOUND", e.message, e.details)
        sys.exit(1)

    server = WeatherSyncServer(config_path)
    server.run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
