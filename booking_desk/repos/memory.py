"""In-memory repositories for resources, bookings and booking history."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone
from threading import RLock
from typing import Any

from booking_desk.domain.errors import NotFoundError
from booking_desk.domain.models import (
    BookingStatus,
    HistoryEntry,
    Item,
    ItemBooking,
    ItemStatus,
    Venue,
    VenueBooking,
)


class VenueRepository:
    """Dict-backed store for Venue instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Venue] = {}

    def add(self, venue: Venue) -> None:
        self._store[venue.id] = venue

    def get(self, venue_id: str) -> Venue | None:
        return self._store.get(venue_id)

    def list_all(self) -> list[Venue]:
        return sorted(self._store.values(), key=lambda v: v.name)


class ItemRepository:
    """Dict-backed store for Item instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Item] = {}

    def add(self, item: Item) -> None:
        self._store[item.id] = item

    def get(self, item_id: str) -> Item | None:
        return self._store.get(item_id)

    def list_all(self) -> list[Item]:
        return sorted(self._store.values(), key=lambda i: i.name)


class _BookingStore:
    """Shared plumbing for the two booking repositories.

    Every public method takes the store lock. Callers that need to read,
    decide and write as one step wrap the sequence in ``transaction()``.
    """

    model: type

    def __init__(self) -> None:
        self._store: dict[str, Any] = {}
        self._lock = RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    def add(self, booking: Any) -> str:
        with self._lock:
            now = datetime.now(timezone.utc)
            booking.created_at = now
            booking.updated_at = now
            self._store[booking.id] = booking
            return booking.id

    def get(self, booking_id: str) -> Any | None:
        with self._lock:
            return self._store.get(booking_id)

    def get_or_raise(self, booking_id: str) -> Any:
        booking = self.get(booking_id)
        if booking is None:
            raise NotFoundError(f"{self.model.__name__} {booking_id} not found")
        return booking

    def update(self, booking_id: str, changes: dict[str, Any]) -> Any:
        """Apply ``changes`` to a stored booking and return the new record."""
        with self._lock:
            current = self._store.get(booking_id)
            if current is None:
                raise NotFoundError(f"{self.model.__name__} {booking_id} not found")
            data = current.model_dump()
            data.update(changes)
            data["id"] = booking_id
            data["created_at"] = current.created_at
            data["updated_at"] = datetime.now(timezone.utc)
            updated = self.model.model_validate(data)
            self._store[booking_id] = updated
            return updated

    def delete(self, booking_id: str) -> None:
        with self._lock:
            if self._store.pop(booking_id, None) is None:
                raise NotFoundError(f"{self.model.__name__} {booking_id} not found")

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class ReservationRepository(_BookingStore):
    """Store for venue reservations."""

    model = VenueBooking

    def list_all(self) -> list[VenueBooking]:
        with self._lock:
            return sorted(self._store.values(), key=lambda r: (r.start_date, r.start_time))

    def list_for_resource(self, venue_id: str) -> list[VenueBooking]:
        return [r for r in self.list_all() if r.venue_id == venue_id]

    def list_today(self, today: date) -> list[VenueBooking]:
        """Reservations whose date range covers ``today``."""
        return [r for r in self.list_all() if r.start_date <= today <= r.end_date]

    def list_upcoming(self, today: date) -> list[VenueBooking]:
        return [r for r in self.list_all() if r.start_date > today]


class ItemBorrowingRepository(_BookingStore):
    """Store for item borrowings."""

    model = ItemBooking

    def list_all(self) -> list[ItemBooking]:
        with self._lock:
            return sorted(self._store.values(), key=lambda b: (b.date, b.start_time))

    def list_for_date(self, day: date) -> list[ItemBooking]:
        return [b for b in self.list_all() if b.date == day]


class HistoryRepository:
    """List-backed store for HistoryEntry instances."""

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def add(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def list_for_booking(self, booking_id: str) -> list[HistoryEntry]:
        return sorted(
            [e for e in self._entries if e.booking_id == booking_id],
            key=lambda e: e.timestamp,
        )

    def clear(self) -> None:
        self._entries.clear()


# ---------------------------------------------------------------------------
# Seed data – a couple of resources and bookings for local use
# ---------------------------------------------------------------------------


def seed_sample_data(
    venues: VenueRepository,
    items: ItemRepository,
    reservations: ReservationRepository,
    borrowings: ItemBorrowingRepository,
) -> None:
    today = date.today()

    hall = Venue(name="Main Hall", capacity=300, description="Ground floor auditorium")
    av_room = Venue(name="AV Room", capacity=40)
    for venue in (hall, av_room):
        venues.add(venue)

    projector = Item(name="Projector", serial_number="PJ-001", category="AV")
    speaker = Item(name="Portable Speaker", serial_number="SP-014", category="AV")
    mic = Item(name="Wireless Microphone", serial_number="MC-203", category="AV")
    easel = Item(
        name="Easel",
        serial_number="EA-002",
        category="Furniture",
        status=ItemStatus.MAINTENANCE,
    )
    for item in (projector, speaker, mic, easel):
        items.add(item)

    reservations.add(
        VenueBooking(
            venue_id=hall.id,
            venue_name=hall.name,
            department="Science",
            event_title="Science Fair",
            reserved_by="J. Santos",
            start_date=today + timedelta(days=2),
            end_date=today + timedelta(days=3),
            start_time=time(8, 0),
            end_time=time(17, 0),
            status=BookingStatus.CONFIRMED,
            notes="Tables along the east wall",
        )
    )
    reservations.add(
        VenueBooking(
            venue_id=av_room.id,
            venue_name=av_room.name,
            department="English",
            event_title="Film viewing",
            reserved_by="M. Reyes",
            start_date=today,
            end_date=today,
            start_time=time(13, 0),
            end_time=time(15, 0),
            status=BookingStatus.RESERVED,
            notes="Needs blackout curtains",
        )
    )
    borrowings.add(
        ItemBooking(
            borrower_name="A. Cruz",
            teacher_adviser_name="M. Reyes",
            department="English",
            item_ids=[projector.id, speaker.id],
            date=today,
            start_time=time(13, 0),
            end_time=time(15, 0),
            room_location="AV Room",
        )
    )
