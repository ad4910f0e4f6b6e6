"""Path utility module for the weather sync client.

Provides centralized path resolution for configuration files and the
preference store, so the server entry point, the session and the tests
agree on where things live.
"""

from pathlib import Path

from weather_sync.constants import APP_DIR_NAME, DEFAULT_STORE_FILENAME
from weather_sync.exceptions import ConfigFileNotFoundError


class PathResolver:
    """Centralized utility for path resolution and management.

    Attributes:
        system_config_dir: System-wide configuration directory
        user_config_dir: User-specific configuration directory
        data_dir: User-specific data directory holding the preference store
    """

    def __init__(self, home: Path | None = None) -> None:
        """Initialize the path resolver.

        Args:
            home: Home directory to resolve user paths against. Defaults to
                the current user's home.
        """
        base = home or Path.home()
        self.system_config_dir = Path(f"/etc/{APP_DIR_NAME}")
        self.user_config_dir = base / ".config" / APP_DIR_NAME
        self.data_dir = base / ".local" / "share" / APP_DIR_NAME

    def config_candidates(self, config_filename: str = "config.yaml") -> list[Path]:
        """List configuration file locations in priority order.

        1. Current working directory
        2. User's configuration directory
        3. System-wide configuration directory

        Args:
            config_filename: Name of the configuration file

        Returns:
            Candidate paths, highest priority first.
        """
        return [
            Path.cwd() / config_filename,
            self.user_config_dir / config_filename,
            self.system_config_dir / config_filename,
        ]

    def get_config_path(self, config_filename: str = "config.yaml") -> Path:
        """Get the path to a configuration file.

        Args:
            config_filename: Name of the configuration file

        Returns:
            Path to the first existing candidate, or the system config path.
        """
        for path in self.config_candidates(config_filename):
            if path.exists():
                return path

        return self.system_config_dir / config_filename

    def get_store_path(self, configured: str | Path | None = None) -> Path:
        """Get the path of the preference store file.

        Args:
            configured: Explicit path from configuration; empty means default.

        Returns:
            Path to the store file.
        """
        if configured:
            return self.normalize_path(configured)
        return self.data_dir / DEFAULT_STORE_FILENAME

    def normalize_path(self, path: str | Path) -> Path:
        """Convert a string path to a Path object, expanding ``~``.

        Args:
            path: String or Path object

        Returns:
            A Path object.
        """
        return Path(path).expanduser()

    def ensure_dir_exists(self, path: str | Path) -> Path:
        """Ensure a directory exists, creating it if necessary.

        Args:
            path: Directory path

        Returns:
            Path to the directory.
        """
        dir_path = self.normalize_path(path)
        dir_path.mkdir(exist_ok=True, parents=True)
        return dir_path


# Create a global instance for easy import
path_resolver = PathResolver()


def validate_config_path(config_path: str | Path | None = None) -> Path:
    """Validate and resolve the configuration file path.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Resolved Path to the configuration file

    Raises:
        ConfigFileNotFoundError: If the configuration file cannot be found.
    """
    if config_path is None:
        resolved_path = path_resolver.get_config_path("config.yaml")
    else:
        resolved_path = path_resolver.normalize_path(config_path)

    if not resolved_path.exists():
        search_locations: list[str] = []
        if config_path is None:
            search_locations = [str(p) for p in path_resolver.config_candidates("config.yaml")]

        error_details = {
            "path": str(resolved_path),
            "cwd": str(Path.cwd()),
            "searched_locations": search_locations or None,
        }

        error_msg = f"Configuration file not found: {resolved_path}"
        if search_locations:
            error_msg += "\n\nSearched in the following locations:\n"
            error_msg += "\n".join(f"  - {loc}" for loc in search_locations)

        raise ConfigFileNotFoundError(error_msg, error_details)

    return resolved_path
