"""
errors.py — Error taxonomy for the shutdown scheduler.

The message of every error is a stable string so the UI layer can show it
verbatim (or pattern-match on it) without knowing the exception types.
"""
from __future__ import annotations


class SchedulerError(Exception):
    """Base class for every error raised by the scheduling core."""

    default_message = "Shutdown scheduler error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class ValidationError(SchedulerError):
    """Time or days missing / empty."""

    default_message = "Time and at least one day must be selected"


class InvalidTimeFormat(SchedulerError):
    """A time-of-day did not parse as 24-hour ``HH:MM``."""

    default_message = "Invalid time format"


class NoValidDaysError(SchedulerError):
    """Every supplied day name was unrecognised."""

    default_message = "No valid days selected"


class NotActiveError(SchedulerError):
    """``update`` called while no schedule is active."""

    default_message = "Cannot update: shutdown is not active"


class ShutdownFailedError(SchedulerError):
    """Both the plain and the elevated shutdown attempts failed."""

    default_message = (
        "Shutdown failed. You may need to configure passwordless sudo "
        "for the shutdown command."
    )
