"""Weather sync client: cached, offline-tolerant weather and air-quality feeds."""

__version__ = "0.1.0"
