"""Exception hierarchy shared by the Daily Updates modules."""
from __future__ import annotations


class DailyUpdatesError(Exception):
    """Base error raised by the Daily Updates core."""


class RecordValidationError(DailyUpdatesError, ValueError):
    """Raised when a new record is missing a required field."""


class RecordNotFoundError(DailyUpdatesError, LookupError):
    """Raised when no record with the requested identifier exists."""


class TransportError(DailyUpdatesError):
    """Raised when an HTTP request could not be delivered."""


class SettingsError(DailyUpdatesError):
    """Raised when the settings file cannot be written."""


__all__ = [
    "DailyUpdatesError",
    "RecordNotFoundError",
    "RecordValidationError",
    "SettingsError",
    "TransportError",
]
