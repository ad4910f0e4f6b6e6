"""Tests for error utility functions."""

from weather_sync.utils.error_utils import get_error_location


def _raise_value_error() -> None:
    raise ValueError("boom")


def test_error_location_points_at_raise_site() -> None:
    """Test the innermost frame is reported."""
    try:
        _raise_value_error()
    except ValueError:
        location = get_error_location()

    filename, line = location.split(":")
    assert filename == "test_error_utils.py"
    assert int(line) == 7


def test_error_location_outside_except() -> None:
    assert get_error_location() == "unknown:0"
