"""Service for detecting scheduling conflicts between bookings."""

from __future__ import annotations

from collections.abc import Iterable

from booking_desk.domain.errors import BookingValidationError
from booking_desk.domain.models import (
    Booking,
    BookingCandidate,
    BookingStatus,
    Conflict,
    ConflictReport,
    Interval,
)


def intervals_overlap(a: Interval, b: Interval) -> bool:
    """Return True if two (date range, time range) intervals intersect.

    Date ranges are inclusive on both ends. Time ranges are half-open, so a
    booking ending at 11:00 does not collide with one starting at 11:00.
    Time is only compared once the date ranges are known to overlap.
    """
    if not (a.start_date <= b.end_date and b.start_date <= a.end_date):
        return False
    return a.start_time < b.end_time and b.start_time < a.end_time


def validate_interval(interval: Interval) -> None:
    if interval.start_date > interval.end_date:
        raise BookingValidationError("start date must not be after end date")
    if interval.start_time >= interval.end_time:
        raise BookingValidationError("end time must be after start time")


def validate_candidate(candidate: BookingCandidate) -> None:
    if not candidate.resource_ids:
        raise BookingValidationError("at least one resource is required")
    validate_interval(candidate.interval)


def find_conflicts(
    candidate: BookingCandidate,
    existing_bookings: Iterable[Booking],
    exclude_id: str | None = None,
) -> ConflictReport:
    """Return every (resource, booking) pair that blocks the candidate.

    An existing booking is skipped when it is cancelled, when its id is
    ``exclude_id`` (``candidate.id`` when not given), or when it shares no
    resource with the candidate. The result does not depend on the order of
    ``existing_bookings``.
    """
    validate_candidate(candidate)
    if exclude_id is None:
        exclude_id = candidate.id

    conflicts: list[Conflict] = []
    for booking in existing_bookings:
        if booking.status == BookingStatus.CANCELLED:
            continue
        if exclude_id is not None and booking.id == exclude_id:
            continue
        shared = candidate.resource_ids & booking.resource_ids
        if not shared:
            continue
        if intervals_overlap(candidate.interval, booking.interval):
            conflicts.extend(
                Conflict(resource_id=rid, booking_id=booking.id) for rid in shared
            )

    conflicts.sort(key=lambda c: (c.resource_id, c.booking_id))
    return ConflictReport(conflicts=conflicts)
