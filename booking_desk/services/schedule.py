"""Service for laying out venue reservations day by day."""

from __future__ import annotations

from datetime import date, datetime

from dateutil.rrule import DAILY, rrule

from booking_desk.domain.errors import BookingValidationError
from booking_desk.domain.models import BookingStatus, ScheduleDay, VenueBooking

# Longest window a single schedule request may cover.
MAX_SCHEDULE_DAYS = 62


def expand_days(start: date, end: date) -> list[date]:
    """Return every calendar day from ``start`` to ``end`` inclusive."""
    if start > end:
        raise BookingValidationError("schedule start must not be after end")
    return [
        occurrence.date()
        for occurrence in rrule(
            DAILY,
            dtstart=datetime.combine(start, datetime.min.time()),
            until=datetime.combine(end, datetime.min.time()),
        )
    ]


def build_schedule(
    reservations: list[VenueBooking],
    start: date,
    end: date,
) -> list[ScheduleDay]:
    """Group non-cancelled reservations under each day they are active.

    A multi-day reservation is listed on every day of its date range, using
    the same time window each day. Reservations within a day are ordered by
    start time.
    """
    if (end - start).days >= MAX_SCHEDULE_DAYS:
        raise BookingValidationError(f"schedule window is limited to {MAX_SCHEDULE_DAYS} days")
    days = expand_days(start, end)

    active = [r for r in reservations if r.status != BookingStatus.CANCELLED]
    schedule = []
    for day in days:
        todays = sorted(
            (r for r in active if r.start_date <= day <= r.end_date),
            key=lambda r: r.start_time,
        )
        schedule.append(ScheduleDay(day=day, reservations=todays))
    return schedule
