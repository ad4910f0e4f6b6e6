"""File system helpers for the weather sync client.

Provides a consistent interface for the few file operations the client needs:
reading configuration text and reading/writing the JSON preference store.
JSON writes go through a temporary file and ``os.replace`` so a crash never
leaves a half-written store behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from weather_sync.utils.path_utils import path_resolver

# Type aliases for clarity and documentation
PathLike = str | Path
JsonData = dict[str, Any] | list[Any]


def read_text(file_path: PathLike) -> str:
    """Read text content from a file.

    Args:
        file_path: Path to the file (string or Path object)

    Returns:
        The text content of the file

    Raises:
        FileNotFoundError: If the file does not exist
        PermissionError: If the file cannot be read due to permissions
        UnicodeDecodeError: If the file content cannot be decoded as text
    """
    normalized_path = path_resolver.normalize_path(file_path)
    with open(normalized_path, encoding="utf-8") as f:
        return f.read()


def read_json(file_path: PathLike) -> JsonData:
    """Read and parse JSON content from a file.

    Args:
        file_path: Path to the JSON file (string or Path object)

    Returns:
        The parsed JSON data as a dictionary or list

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file content is not valid JSON
        PermissionError: If the file cannot be read due to permissions
    """
    normalized_path = path_resolver.normalize_path(file_path)
    with open(normalized_path, encoding="utf-8") as f:
        return json.load(f)


def write_json_atomic(
    file_path: PathLike, data: JsonData, make_dirs: bool = True, indent: int = 2
) -> None:
    """Write data as JSON, replacing the target in one step.

    Args:
        file_path: Path to the output JSON file (string or Path object)
        data: Data to be serialized as JSON (dict or list)
        make_dirs: Whether to create parent directories if they don't exist
        indent: Number of spaces for indentation in the JSON output

    Raises:
        FileNotFoundError: If the parent directory does not exist and make_dirs is False
        PermissionError: If the file cannot be written due to permissions
        TypeError: If the data contains objects that cannot be serialized to JSON
    """
    normalized_path = path_resolver.normalize_path(file_path)

    if make_dirs:
        ensure_dir_exists(normalized_path.parent)

    fd, tmp_name = tempfile.mkstemp(
        dir=normalized_path.parent, prefix=f".{normalized_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent)
        os.replace(tmp_name, normalized_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def ensure_dir_exists(dir_path: PathLike) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        dir_path: Path to the directory (string or Path object)

    Returns:
        Path object for the directory
    """
    return path_resolver.ensure_dir_exists(dir_path)


def file_exists(file_path: PathLike) -> bool:
    """Check if a file exists.

    Args:
        file_path: Path to the file (string or Path object)

    Returns:
        True if the file exists and is a regular file, False otherwise
    """
    return path_resolver.normalize_path(file_path).is_file()
