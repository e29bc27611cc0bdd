"""Shared fixtures: a fresh bus, repositories and services per test."""

from __future__ import annotations

import pytest

from booking_desk.config import RevalidatePolicy
from booking_desk.domain.bus import EventBus
from booking_desk.domain.handlers import HandlerRegistry
from booking_desk.domain.models import Item, Venue
from booking_desk.repos.memory import (
    HistoryRepository,
    ItemBorrowingRepository,
    ItemRepository,
    ReservationRepository,
    VenueRepository,
)
from booking_desk.services.items import ItemBookingService
from booking_desk.services.venues import VenueBookingService


class Env:
    pass


def build_env(policy: RevalidatePolicy = RevalidatePolicy.FIELDS_COMPLETE_ONLY) -> Env:
    e = Env()
    e.bus = EventBus()
    e.venue_repo = VenueRepository()
    e.item_repo = ItemRepository()
    e.reservation_repo = ReservationRepository()
    e.borrowing_repo = ItemBorrowingRepository()
    e.history_repo = HistoryRepository()
    e.registry = HandlerRegistry(bus=e.bus, history_repo=e.history_repo)
    e.venue_service = VenueBookingService(
        reservations=e.reservation_repo,
        venues=e.venue_repo,
        bus=e.bus,
        revalidate_on_update=policy,
    )
    e.item_service = ItemBookingService(
        borrowings=e.borrowing_repo,
        items=e.item_repo,
        bus=e.bus,
        revalidate_on_update=policy,
    )

    e.hall = Venue(id="V", name="Main Hall", capacity=300)
    e.gym = Venue(id="G", name="Gymnasium")
    for venue in (e.hall, e.gym):
        e.venue_repo.add(venue)

    e.item1 = Item(id="item1", name="Projector")
    e.item2 = Item(id="item2", name="Speaker")
    e.item3 = Item(id="item3", name="Microphone")
    for item in (e.item1, e.item2, e.item3):
        e.item_repo.add(item)
    return e


@pytest.fixture()
def env() -> Env:
    """Fresh bus + repos + services for each test."""
    return build_env()


@pytest.fixture()
def always_env() -> Env:
    """Like ``env`` but every update re-runs the conflict check."""
    return build_env(RevalidatePolicy.ALWAYS)
