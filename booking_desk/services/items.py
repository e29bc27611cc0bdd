"""Service for item borrowings and item availability.

An item borrowing is always a single day and may hold several items at
once. Conflicts are reported per item, so one error can name every item
that is already taken.
"""

from __future__ import annotations

from collections.abc import Iterable
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
    Item,
    ItemBooking,
    ItemBookingCreate,
    ItemBookingUpdate,
    ItemStatus,
)
from booking_desk.repos.memory import ItemBorrowingRepository, ItemRepository
from booking_desk.services.base import BookingService, storage_guard
from booking_desk.services.conflicts import (
    find_conflicts,
    validate_candidate,
    validate_interval,
)


def _unique(item_ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(item_ids))


def item_candidate(
    item_ids: Iterable[str],
    day: date,
    start_time: time,
    end_time: time,
    booking_id: str | None = None,
) -> BookingCandidate:
    candidate = BookingCandidate(
        id=booking_id,
        resource_ids=frozenset(item_ids),
        interval=Interval(start_date=day, end_date=day, start_time=start_time, end_time=end_time),
    )
    validate_candidate(candidate)
    return candidate


class ItemBookingService(BookingService):
    kind = BookingKind.ITEM
    schedule_fields = ("item_ids", "date", "start_time", "end_time")

    def __init__(
        self,
        borrowings: ItemBorrowingRepository,
        items: ItemRepository,
        bus: EventBus,
        revalidate_on_update: RevalidatePolicy = RevalidatePolicy.FIELDS_COMPLETE_ONLY,
    ) -> None:
        super().__init__(bus, revalidate_on_update)
        self.borrowings = borrowings
        self.items = items

    def _item_names(self, item_ids: Iterable[str]) -> dict[str, str]:
        names = {}
        unknown = []
        for item_id in item_ids:
            item = self.items.get(item_id)
            if item is None:
                unknown.append(item_id)
            else:
                names[item_id] = item.name
        if unknown:
            raise BookingValidationError(f"Unknown items: {', '.join(unknown)}")
        return names

    def _fetch_for_date(self, day: date) -> list[ItemBooking]:
        with storage_guard("fetch item borrowings"):
            return self.borrowings.list_for_date(day)

    def query_available_items(
        self,
        day: date,
        time_range: tuple[time, time],
        all_items: list[Item] | None = None,
    ) -> list[str]:
        """Return ids of items that are in service and free for the whole window.

        Advisory only: the same check runs again when the borrowing is
        submitted. ``all_items`` defaults to every item in the inventory.
        """
        start_time, end_time = time_range
        if all_items is None:
            all_items = self.items.list_all()
        validate_interval(
            Interval(start_date=day, end_date=day, start_time=start_time, end_time=end_time)
        )

        existing = self._fetch_for_date(day)
        available = []
        for item in all_items:
            if item.status != ItemStatus.AVAILABLE:
                continue
            candidate = item_candidate({item.id}, day, start_time, end_time)
            if find_conflicts(candidate, existing).ok:
                available.append(item.id)
        return available

    def scan(self, candidate: BookingCandidate) -> ConflictReport:
        """Fetch the day's borrowings and scan them against ``candidate``."""
        existing = self._fetch_for_date(candidate.interval.start_date)
        return find_conflicts(candidate, existing)

    def check_item_conflict(
        self, data: ItemBookingCreate, booking_id: str | None = None
    ) -> ConflictResult:
        """Dry-run the conflict check without writing anything."""
        item_ids = _unique(data.item_ids)
        candidate = item_candidate(
            item_ids, data.date, data.start_time, data.end_time, booking_id=booking_id
        )
        names = self._item_names(item_ids)
        report = self.scan(candidate)
        if report.ok:
            return ConflictResult(ok=True)
        conflicting = report.conflicting_resource_ids
        return ConflictResult(
            ok=False,
            conflicting_resource_names=[names[i] for i in item_ids if i in conflicting],
        )

    def create(self, data: ItemBookingCreate) -> ItemBooking:
        item_ids = _unique(data.item_ids)
        candidate = item_candidate(item_ids, data.date, data.start_time, data.end_time)
        names = self._item_names(item_ids)

        with self.borrowings.transaction():
            report = self.scan(candidate)
            if not report.ok:
                self.reject(report, item_ids, names)

            borrowing = ItemBooking(**(data.model_dump() | {"item_ids": item_ids}))
            with storage_guard("create item borrowing"):
                booking_id = self.borrowings.add(borrowing)

        self.publish_created(booking_id, item_ids)
        return borrowing

    def update(self, booking_id: str, data: ItemBookingUpdate) -> ItemBooking:
        """Apply a partial update, re-checking conflicts per ``should_revalidate``."""
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "item_ids" in changes:
            changes["item_ids"] = _unique(changes["item_ids"])

        with self.borrowings.transaction():
            with storage_guard("fetch item borrowing"):
                current = self.borrowings.get_or_raise(booking_id)

            merged = current.model_copy(update=changes)
            candidate = item_candidate(
                merged.item_ids,
                merged.date,
                merged.start_time,
                merged.end_time,
                booking_id=booking_id,
            )
            if "item_ids" in changes:
                self._item_names(changes["item_ids"])

            revalidated = self.should_revalidate(changes)
            if revalidated:
                report = self.scan(candidate)
                if not report.ok:
                    names = self._item_names(merged.item_ids)
                    self.reject(report, merged.item_ids, names, booking_id)

            with storage_guard("update item borrowing"):
                updated = self.borrowings.update(booking_id, changes)

        self.publish_updated(booking_id, changes, revalidated, current.status)
        return updated
