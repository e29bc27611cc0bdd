"""Plumbing shared by the venue and item booking services."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from booking_desk.config import RevalidatePolicy
from booking_desk.domain.bus import EventBus
from booking_desk.domain.errors import BookingError, ConflictError, StorageError
from booking_desk.domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingUpdated,
    ConflictRejected,
)
from booking_desk.domain.models import BookingKind, BookingStatus, ConflictReport


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Re-raise unexpected store failures as ``StorageError``.

    Booking errors raised by the store itself (e.g. ``NotFoundError``) pass
    through unchanged.
    """
    try:
        yield
    except BookingError:
        raise
    except Exception as exc:
        raise StorageError(f"{operation} failed: {exc}") from exc


class BookingService:
    """Base for the services that validate and write bookings.

    Subclasses set ``kind`` and ``schedule_fields``: the update fields that
    together pin down a booking's resources and interval.
    """

    kind: BookingKind
    schedule_fields: tuple[str, ...]

    def __init__(
        self,
        bus: EventBus,
        revalidate_on_update: RevalidatePolicy = RevalidatePolicy.FIELDS_COMPLETE_ONLY,
    ) -> None:
        self.bus = bus
        self.revalidate_on_update = revalidate_on_update

    def should_revalidate(self, changes: dict) -> bool:
        if self.revalidate_on_update == RevalidatePolicy.ALWAYS:
            return True
        return all(field in changes for field in self.schedule_fields)

    def reject(
        self,
        report: ConflictReport,
        ordered_resource_ids: Iterable[str],
        names: dict[str, str],
        booking_id: str | None = None,
    ) -> None:
        """Publish the rejection and raise ``ConflictError``."""
        conflicting = report.conflicting_resource_ids
        resource_ids = [rid for rid in ordered_resource_ids if rid in conflicting]
        booking_ids = sorted({c.booking_id for c in report.conflicts})
        self.bus.publish(
            ConflictRejected(
                kind=self.kind,
                booking_id=booking_id,
                conflicting_resource_ids=resource_ids,
                conflicting_booking_ids=booking_ids,
            )
        )
        raise ConflictError(
            conflicting_resource_ids=resource_ids,
            conflicting_resource_names=[names.get(rid, rid) for rid in resource_ids],
        )

    def publish_created(self, booking_id: str, resource_ids: Iterable[str]) -> None:
        self.bus.publish(
            BookingCreated(kind=self.kind, booking_id=booking_id, resource_ids=list(resource_ids))
        )

    def publish_updated(
        self,
        booking_id: str,
        changes: dict,
        revalidated: bool,
        previous_status: BookingStatus,
    ) -> None:
        self.bus.publish(
            BookingUpdated(
                kind=self.kind,
                booking_id=booking_id,
                changed_fields=sorted(changes),
                revalidated=revalidated,
            )
        )
        new_status = changes.get("status")
        if new_status == BookingStatus.CANCELLED and previous_status != BookingStatus.CANCELLED:
            self.bus.publish(
                BookingCancelled(
                    kind=self.kind, booking_id=booking_id, previous_status=previous_status
                )
            )
