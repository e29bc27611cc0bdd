"""Exceptions raised by the booking engine and its stores.

Raised in the services and repositories, mapped to HTTP responses in main.py.
"""

from __future__ import annotations


class BookingError(Exception):
    """Base exception for all booking engine errors."""


class BookingValidationError(BookingError):
    """Raised for a malformed interval or an empty resource set."""


class ConflictError(BookingError):
    """Raised when a non-cancelled booking already holds a requested resource."""

    def __init__(
        self,
        conflicting_resource_ids: list[str],
        conflicting_resource_names: list[str],
        message: str | None = None,
    ) -> None:
        self.conflicting_resource_ids = conflicting_resource_ids
        self.conflicting_resource_names = conflicting_resource_names
        super().__init__(
            message
            or "Time conflict: already booked during the selected time: "
            + ", ".join(conflicting_resource_names)
        )


class StorageError(BookingError):
    """Raised when reading from or writing to the store fails."""


class NotFoundError(StorageError):
    """Raised when a record id is unknown to the store."""
