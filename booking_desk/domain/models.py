"""Domain models for venue reservations and item borrowings."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, PlainSerializer, model_validator

# Dates travel as ``YYYY-MM-DD`` and times as ``HH:MM`` on the wire.
IsoDate = Annotated[
    date, PlainSerializer(lambda d: d.isoformat(), return_type=str, when_used="json")
]
ClockTime = Annotated[
    time, PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str, when_used="json")
]


class BookingStatus(StrEnum):
    PROCESSING = "Processing"
    RESERVED = "Reserved"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class ItemStatus(StrEnum):
    AVAILABLE = "Available"
    BORROWED = "Borrowed"
    OUT_OF_SERVICE = "Out of Service"
    MAINTENANCE = "Maintenance"


class BookingKind(StrEnum):
    VENUE = "venue"
    ITEM = "item"


class HistoryEntryType(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    CANCELLED = "cancelled"
    CONFLICT_REJECTED = "conflict_rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def check_interval(start_date: date, end_date: date, start_time: time, end_time: time) -> None:
    """Raise ``ValueError`` unless the dates are ordered and the times are non-empty."""
    if start_date > end_date:
        raise ValueError("start_date must not be after end_date")
    if start_time >= end_time:
        raise ValueError("end_time must be after start_time")


# ---------------------------------------------------------------------------
# Intervals
# ---------------------------------------------------------------------------


class Interval(BaseModel):
    """A date range paired with a time-of-day range.

    The time range applies to every day of the date range. Ordering is
    checked by the conflict scanner, not here.
    """

    start_date: IsoDate
    end_date: IsoDate
    start_time: ClockTime
    end_time: ClockTime


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class Venue(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    capacity: int | None = None
    description: str | None = None


class Item(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    description: str = ""
    serial_number: str = ""
    category: str | None = None
    status: ItemStatus = ItemStatus.AVAILABLE
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


class VenueBooking(BaseModel):
    """A reservation of one venue over a (possibly multi-day) date range."""

    kind: Literal[BookingKind.VENUE] = BookingKind.VENUE
    id: str = Field(default_factory=_new_id)
    venue_id: str
    venue_name: str = ""
    department: str = ""
    event_title: str = ""
    reserved_by: str = ""
    contact_no: str = ""
    start_date: IsoDate
    end_date: IsoDate
    start_time: ClockTime
    end_time: ClockTime
    status: BookingStatus = BookingStatus.PROCESSING
    received_by: str = ""
    notes: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _valid_interval(self) -> VenueBooking:
        check_interval(self.start_date, self.end_date, self.start_time, self.end_time)
        return self

    @property
    def resource_ids(self) -> frozenset[str]:
        return frozenset({self.venue_id})

    @property
    def interval(self) -> Interval:
        return Interval(
            start_date=self.start_date,
            end_date=self.end_date,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class ItemBooking(BaseModel):
    """A single-day borrowing of one or more items."""

    kind: Literal[BookingKind.ITEM] = BookingKind.ITEM
    id: str = Field(default_factory=_new_id)
    borrower_name: str = ""
    teacher_adviser_name: str = ""
    department: str = ""
    item_ids: list[str] = Field(min_length=1)
    date: IsoDate
    start_time: ClockTime
    end_time: ClockTime
    room_location: str = ""
    received_by: str = ""
    status: BookingStatus = BookingStatus.RESERVED
    booked_on: datetime = Field(default_factory=_utcnow)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _valid_interval(self) -> ItemBooking:
        check_interval(self.date, self.date, self.start_time, self.end_time)
        return self

    @property
    def resource_ids(self) -> frozenset[str]:
        return frozenset(self.item_ids)

    @property
    def interval(self) -> Interval:
        return Interval(
            start_date=self.date,
            end_date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
        )


Booking = Annotated[Union[VenueBooking, ItemBooking], Field(discriminator="kind")]


class BookingCandidate(BaseModel):
    """What the conflict scanner needs to know about a proposed booking."""

    id: str | None = None
    resource_ids: frozenset[str]
    interval: Interval


class Conflict(BaseModel):
    resource_id: str
    booking_id: str


class ConflictReport(BaseModel):
    """Outcome of a scan: the resources in conflict and where each came from."""

    conflicts: list[Conflict] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts

    @property
    def conflicting_resource_ids(self) -> set[str]:
        return {c.resource_id for c in self.conflicts}

    def bookings_for(self, resource_id: str) -> list[str]:
        return [c.booking_id for c in self.conflicts if c.resource_id == resource_id]


class HistoryEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    booking_id: str
    kind: BookingKind
    timestamp: datetime = Field(default_factory=_utcnow)
    type: HistoryEntryType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class ConflictResult(BaseModel):
    ok: bool
    conflicting_resource_names: list[str] = Field(default_factory=list)


class VenueBookingCreate(BaseModel):
    venue_id: str
    department: str = ""
    event_title: str = ""
    reserved_by: str = ""
    contact_no: str = ""
    start_date: IsoDate
    end_date: IsoDate
    start_time: ClockTime
    end_time: ClockTime
    status: BookingStatus = BookingStatus.PROCESSING
    received_by: str = ""
    notes: str = ""


class VenueBookingUpdate(BaseModel):
    """Partial update; only fields that were sent are applied."""

    venue_id: str | None = None
    department: str | None = None
    event_title: str | None = None
    reserved_by: str | None = None
    contact_no: str | None = None
    start_date: IsoDate | None = None
    end_date: IsoDate | None = None
    start_time: ClockTime | None = None
    end_time: ClockTime | None = None
    status: BookingStatus | None = None
    received_by: str | None = None
    notes: str | None = None


class ItemBookingCreate(BaseModel):
    borrower_name: str = ""
    teacher_adviser_name: str = ""
    department: str = ""
    item_ids: list[str]
    date: IsoDate
    start_time: ClockTime
    end_time: ClockTime
    room_location: str = ""
    received_by: str = ""
    status: BookingStatus = BookingStatus.RESERVED


class ItemBookingUpdate(BaseModel):
    """Partial update; only fields that were sent are applied."""

    borrower_name: str | None = None
    teacher_adviser_name: str | None = None
    department: str | None = None
    item_ids: list[str] | None = None
    date: IsoDate | None = None
    start_time: ClockTime | None = None
    end_time: ClockTime | None = None
    room_location: str | None = None
    received_by: str | None = None
    status: BookingStatus | None = None


class ScheduleDay(BaseModel):
    day: IsoDate
    reservations: list[VenueBooking] = Field(default_factory=list)
