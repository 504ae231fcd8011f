"""
Exception types raised by citycoder.
"""


class CitycoderError(Exception):
    """Base class for citycoder errors."""


class DatasetError(CitycoderError):
    """A required source feed could not be opened or read."""


class SnapshotError(CitycoderError):
    """A snapshot file is missing, unreadable or from another format version."""
