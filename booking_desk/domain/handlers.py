"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging

from booking_desk.domain.bus import EventBus
from booking_desk.domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingEvent,
    BookingUpdated,
    ConflictRejected,
)
from booking_desk.domain.models import HistoryEntry, HistoryEntryType
from booking_desk.repos.memory import HistoryRepository

audit_logger = logging.getLogger("booking_desk.audit")


class HandlerRegistry:
    """Wires booking-event handlers to the bus with access to the history store."""

    def __init__(self, bus: EventBus, history_repo: HistoryRepository) -> None:
        self.bus = bus
        self.history_repo = history_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingUpdated, self.on_booking_updated)
        self.bus.subscribe(BookingCancelled, self.on_booking_cancelled)
        self.bus.subscribe(ConflictRejected, self.on_conflict_rejected)
        self.bus.subscribe(BookingEvent, self.audit)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        self.history_repo.add(
            HistoryEntry(
                booking_id=event.booking_id,
                kind=event.kind,
                type=HistoryEntryType.CREATED,
                payload={"resource_ids": event.resource_ids},
            )
        )

    def on_booking_updated(self, event: BookingUpdated) -> None:
        self.history_repo.add(
            HistoryEntry(
                booking_id=event.booking_id,
                kind=event.kind,
                type=HistoryEntryType.UPDATED,
                payload={
                    "changed_fields": event.changed_fields,
                    "revalidated": event.revalidated,
                },
            )
        )

    def on_booking_cancelled(self, event: BookingCancelled) -> None:
        self.history_repo.add(
            HistoryEntry(
                booking_id=event.booking_id,
                kind=event.kind,
                type=HistoryEntryType.CANCELLED,
                payload={"previous_status": event.previous_status},
            )
        )

    def on_conflict_rejected(self, event: ConflictRejected) -> None:
        # Rejected creates have no record to attach history to.
        if event.booking_id is None:
            return
        self.history_repo.add(
            HistoryEntry(
                booking_id=event.booking_id,
                kind=event.kind,
                type=HistoryEntryType.CONFLICT_REJECTED,
                payload={
                    "conflicting_resource_ids": event.conflicting_resource_ids,
                    "conflicting_booking_ids": event.conflicting_booking_ids,
                },
            )
        )

    def audit(self, event: BookingEvent) -> None:
        audit_logger.info(
            "%s | kind=%s | booking=%s | %s",
            type(event).__name__,
            event.kind,
            event.booking_id or "-",
            event.model_dump(exclude={"kind", "booking_id"}, mode="json"),
        )
