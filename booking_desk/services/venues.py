"""Service for creating and updating venue reservations.

A venue reservation holds exactly one venue over an inclusive date range,
with the same time-of-day window on every day of the range.
"""

from __future__ import annotations

from datetime import date, time

from booking_desk.config import RevalidatePolicy
from booking_desk.domain.bus import EventBus
from booking_desk.domain.errors import BookingValidationError
from booking_desk.domain.models import (
    BookingCandidate,
    BookingKind,
    ConflictReport,
    ConflictResult,
    Interval,
    VenueBooking,
    VenueBookingCreate,
    VenueBookingUpdate,
)
from booking_desk.repos.memory import ReservationRepository, VenueRepository
from booking_desk.services.base import BookingService, storage_guard
from booking_desk.services.conflicts import find_conflicts, validate_candidate


def venue_candidate(
    venue_id: str,
    start_date: date,
    end_date: date,
    start_time: time,
    end_time: time,
    booking_id: str | None = None,
) -> BookingCandidate:
    candidate = BookingCandidate(
        id=booking_id,
        resource_ids=frozenset({venue_id}),
        interval=Interval(
            start_date=start_date,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time,
        ),
    )
    validate_candidate(candidate)
    return candidate


class VenueBookingService(BookingService):
    kind = BookingKind.VENUE
    schedule_fields = ("venue_id", "start_date", "end_date", "start_time", "end_time")

    def __init__(
        self,
        reservations: ReservationRepository,
        venues: VenueRepository,
        bus: EventBus,
        revalidate_on_update: RevalidatePolicy = RevalidatePolicy.FIELDS_COMPLETE_ONLY,
    ) -> None:
        super().__init__(bus, revalidate_on_update)
        self.reservations = reservations
        self.venues = venues

    def _venue_name(self, venue_id: str) -> str:
        venue = self.venues.get(venue_id)
        if venue is None:
            raise BookingValidationError(f"Unknown venue: {venue_id}")
        return venue.name

    def scan(self, candidate: BookingCandidate) -> ConflictReport:
        """Fetch the venue's reservations and scan them against ``candidate``."""
        (venue_id,) = candidate.resource_ids
        with storage_guard("fetch reservations"):
            existing = self.reservations.list_for_resource(venue_id)
        return find_conflicts(candidate, existing)

    def check_venue_conflict(
        self, data: VenueBookingCreate, booking_id: str | None = None
    ) -> ConflictResult:
        """Dry-run the conflict check without writing anything."""
        name = self._venue_name(data.venue_id)
        candidate = venue_candidate(
            data.venue_id,
            data.start_date,
            data.end_date,
            data.start_time,
            data.end_time,
            booking_id=booking_id,
        )
        report = self.scan(candidate)
        if report.ok:
            return ConflictResult(ok=True)
        return ConflictResult(ok=False, conflicting_resource_names=[name])

    def create(self, data: VenueBookingCreate) -> VenueBooking:
        name = self._venue_name(data.venue_id)
        candidate = venue_candidate(
            data.venue_id, data.start_date, data.end_date, data.start_time, data.end_time
        )
        with self.reservations.transaction():
            report = self.scan(candidate)
            if not report.ok:
                self.reject(report, [data.venue_id], {data.venue_id: name})

            reservation = VenueBooking(venue_name=name, **data.model_dump())
            with storage_guard("create reservation"):
                booking_id = self.reservations.add(reservation)

        self.publish_created(booking_id, [data.venue_id])
        return reservation

    def update(self, booking_id: str, data: VenueBookingUpdate) -> VenueBooking:
        """Apply a partial update.

        The conflict check runs only when ``should_revalidate`` says so; the
        merged interval is always checked for ordering.
        """
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        with self.reservations.transaction():
            with storage_guard("fetch reservation"):
                current = self.reservations.get_or_raise(booking_id)

            merged = current.model_copy(update=changes)
            if "venue_id" in changes:
                changes["venue_name"] = self._venue_name(changes["venue_id"])
            candidate = venue_candidate(
                merged.venue_id,
                merged.start_date,
                merged.end_date,
                merged.start_time,
                merged.end_time,
                booking_id=booking_id,
            )

            revalidated = self.should_revalidate(changes)
            if revalidated:
                report = self.scan(candidate)
                if not report.ok:
                    name = changes.get("venue_name") or current.venue_name or merged.venue_id
                    self.reject(report, [merged.venue_id], {merged.venue_id: name}, booking_id)

            with storage_guard("update reservation"):
                updated = self.reservations.update(booking_id, changes)

        self.publish_updated(booking_id, changes, revalidated, current.status)
        return updated
