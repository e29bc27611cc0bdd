"""Tests for item borrowings and item availability."""

from __future__ import annotations

from datetime import date, time

import pytest

from booking_desk.domain.errors import BookingValidationError, ConflictError, StorageError
from booking_desk.domain.models import (
    BookingStatus,
    Item,
    ItemBookingCreate,
    ItemBookingUpdate,
    ItemStatus,
)

_DAY = date(2024, 3, 5)


def _request(item_ids: list[str], **overrides) -> ItemBookingCreate:
    defaults = dict(
        borrower_name="A. Cruz",
        item_ids=item_ids,
        date=_DAY,
        start_time=time(13, 0),
        end_time=time(14, 0),
    )
    defaults.update(overrides)
    return ItemBookingCreate(**defaults)


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


def test_available_items_excludes_booked_ones(env):
    env.item_service.create(_request(["item1", "item2"]))

    available = env.item_service.query_available_items(
        _DAY, (time(13, 30), time(13, 45)), [env.item1, env.item2, env.item3]
    )
    assert available == ["item3"]


def test_available_items_on_another_day(env):
    env.item_service.create(_request(["item1", "item2"]))

    available = env.item_service.query_available_items(
        date(2024, 3, 6), (time(13, 30), time(13, 45)), [env.item1, env.item2, env.item3]
    )
    assert available == ["item1", "item2", "item3"]


def test_available_items_ignores_cancelled_borrowings(env):
    borrowing = env.item_service.create(_request(["item1"]))
    env.item_service.update(borrowing.id, ItemBookingUpdate(status=BookingStatus.CANCELLED))

    available = env.item_service.query_available_items(
        _DAY, (time(13, 0), time(14, 0)), [env.item1]
    )
    assert available == ["item1"]


def test_available_items_skips_items_out_of_service(env):
    broken = Item(id="item4", name="Old Projector", status=ItemStatus.OUT_OF_SERVICE)
    env.item_repo.add(broken)

    available = env.item_service.query_available_items(_DAY, (time(8, 0), time(9, 0)))
    assert "item4" not in available
    assert set(available) == {"item1", "item2", "item3"}


def test_available_items_rejects_empty_window(env):
    with pytest.raises(BookingValidationError):
        env.item_service.query_available_items(_DAY, (time(9, 0), time(9, 0)), [env.item1])


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def test_create_stores_borrowing(env):
    borrowing = env.item_service.create(_request(["item1", "item2"]))
    stored = env.borrowing_repo.get(borrowing.id)
    assert stored.item_ids == ["item1", "item2"]
    assert stored.status == BookingStatus.RESERVED


def test_duplicate_item_ids_are_collapsed(env):
    borrowing = env.item_service.create(_request(["item1", "item1", "item2"]))
    assert borrowing.item_ids == ["item1", "item2"]


def test_conflict_names_every_conflicting_item(env):
    env.item_service.create(_request(["item1"]))
    env.item_service.create(_request(["item3"], start_time=time(13, 30), end_time=time(15, 0)))

    with pytest.raises(ConflictError) as exc_info:
        env.item_service.create(
            _request(["item1", "item2", "item3"], start_time=time(13, 45), end_time=time(14, 15))
        )

    assert exc_info.value.conflicting_resource_names == ["Projector", "Microphone"]
    assert exc_info.value.conflicting_resource_ids == ["item1", "item3"]
    assert len(env.borrowing_repo.list_all()) == 2


def test_shared_item_conflicts_disjoint_items_do_not(env):
    env.item_service.create(_request(["item1", "item2"]))

    with pytest.raises(ConflictError) as exc_info:
        env.item_service.create(_request(["item2", "item3"], start_time=time(13, 30)))
    assert exc_info.value.conflicting_resource_ids == ["item2"]

    env.item_service.create(_request(["item3"]))


def test_same_items_on_different_days_do_not_conflict(env):
    env.item_service.create(_request(["item1"]))
    env.item_service.create(_request(["item1"], date=date(2024, 3, 6)))
    assert len(env.borrowing_repo.list_all()) == 2


def test_empty_item_list_is_rejected(env):
    with pytest.raises(BookingValidationError):
        env.item_service.create(_request([]))
    assert env.borrowing_repo.list_all() == []


def test_unknown_item_is_rejected(env):
    with pytest.raises(BookingValidationError):
        env.item_service.create(_request(["item1", "ghost"]))


def test_check_item_conflict(env):
    env.item_service.create(_request(["item2"]))

    result = env.item_service.check_item_conflict(_request(["item1", "item2"]))
    assert result.ok is False
    assert result.conflicting_resource_names == ["Speaker"]
    assert env.item_service.check_item_conflict(_request(["item1"])).ok is True


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def test_update_excludes_itself(env):
    borrowing = env.item_service.create(_request(["item1", "item2"]))

    updated = env.item_service.update(
        borrowing.id,
        ItemBookingUpdate(
            item_ids=["item1", "item2", "item3"],
            date=_DAY,
            start_time=time(13, 0),
            end_time=time(14, 30),
        ),
    )
    assert updated.item_ids == ["item1", "item2", "item3"]
    assert updated.end_time == time(14, 30)


def test_update_adding_a_taken_item_is_rejected(env):
    env.item_service.create(_request(["item3"]))
    borrowing = env.item_service.create(_request(["item1"]))

    with pytest.raises(ConflictError) as exc_info:
        env.item_service.update(
            borrowing.id,
            ItemBookingUpdate(
                item_ids=["item1", "item3"],
                date=_DAY,
                start_time=time(13, 0),
                end_time=time(14, 0),
            ),
        )
    assert exc_info.value.conflicting_resource_names == ["Microphone"]
    assert env.borrowing_repo.get(borrowing.id).item_ids == ["item1"]


def test_partial_update_skips_conflict_check(env):
    env.item_service.create(_request(["item1"]))
    borrowing = env.item_service.create(_request(["item2"]))

    # item_ids alone is not a complete schedule, so no conflict check runs.
    updated = env.item_service.update(borrowing.id, ItemBookingUpdate(item_ids=["item1"]))
    assert updated.item_ids == ["item1"]


def test_always_policy_checks_partial_update(always_env):
    env = always_env
    env.item_service.create(_request(["item1"]))
    borrowing = env.item_service.create(_request(["item2"]))

    with pytest.raises(ConflictError):
        env.item_service.update(borrowing.id, ItemBookingUpdate(item_ids=["item1"]))


class _BrokenDayFetch:
    def __init__(self, repo):
        self._repo = repo

    def __getattr__(self, name):
        return getattr(self._repo, name)

    def list_for_date(self, day):
        raise ConnectionError("store offline")


def test_failed_day_fetch_is_a_storage_error(env):
    env.item_service.borrowings = _BrokenDayFetch(env.borrowing_repo)

    with pytest.raises(StorageError) as exc_info:
        env.item_service.create(_request(["item1"]))
    assert isinstance(exc_info.value.__cause__, ConnectionError)

    with pytest.raises(StorageError):
        env.item_service.query_available_items(_DAY, (time(13, 0), time(14, 0)), [env.item1])

    assert env.borrowing_repo.list_all() == []
