"""Domain events emitted when bookings are written or rejected."""

from __future__ import annotations

from pydantic import BaseModel, Field

from booking_desk.domain.models import BookingKind, BookingStatus


class BookingEvent(BaseModel):
    """Base for every booking event."""

    kind: BookingKind
    booking_id: str | None


class BookingCreated(BookingEvent):
    """Fired after a new booking passes the conflict check and is stored."""

    booking_id: str
    resource_ids: list[str]


class BookingUpdated(BookingEvent):
    """Fired after an update is stored."""

    booking_id: str
    changed_fields: list[str]
    revalidated: bool


class BookingCancelled(BookingEvent):
    """Fired when an update moves a booking into ``Cancelled``."""

    booking_id: str
    previous_status: BookingStatus


class ConflictRejected(BookingEvent):
    """Fired when a create or update is refused because of a conflict.

    ``booking_id`` is None for a rejected create.
    """

    conflicting_resource_ids: list[str]
    conflicting_booking_ids: list[str] = Field(default_factory=list)
