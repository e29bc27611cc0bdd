"""FastAPI application — entry point for the booking desk service."""

from __future__ import annotations

import logging
from datetime import date, time

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from booking_desk.config import get_settings
from booking_desk.domain.bus import EventBus
from booking_desk.domain.errors import (
    BookingValidationError,
    ConflictError,
    NotFoundError,
    StorageError,
)
from booking_desk.domain.handlers import HandlerRegistry
from booking_desk.domain.models import (
    ConflictResult,
    HistoryEntry,
    Item,
    ItemBooking,
    ItemBookingCreate,
    ItemBookingUpdate,
    ScheduleDay,
    Venue,
    VenueBooking,
    VenueBookingCreate,
    VenueBookingUpdate,
)
from booking_desk.logging_config import add_audit_middleware, configure_logging
from booking_desk.repos.memory import (
    HistoryRepository,
    ItemBorrowingRepository,
    ItemRepository,
    ReservationRepository,
    VenueRepository,
    seed_sample_data,
)
from booking_desk.services.items import ItemBookingService
from booking_desk.services.schedule import build_schedule
from booking_desk.services.venues import VenueBookingService

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger("booking_desk.api")

app = FastAPI(title=settings.app_name)
add_audit_middleware(app)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
venue_repo = VenueRepository()
item_repo = ItemRepository()
reservation_repo = ReservationRepository()
borrowing_repo = ItemBorrowingRepository()
history_repo = HistoryRepository()

handler_registry = HandlerRegistry(bus=event_bus, history_repo=history_repo)

venue_service = VenueBookingService(
    reservations=reservation_repo,
    venues=venue_repo,
    bus=event_bus,
    revalidate_on_update=settings.revalidate_on_update,
)
item_service = ItemBookingService(
    borrowings=borrowing_repo,
    items=item_repo,
    bus=event_bus,
    revalidate_on_update=settings.revalidate_on_update,
)

if settings.seed_sample_data:
    seed_sample_data(venue_repo, item_repo, reservation_repo, borrowing_repo)


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(BookingValidationError)
async def _validation_error(request: Request, exc: BookingValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def _conflict_error(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "conflicting_resource_ids": exc.conflicting_resource_ids,
            "conflicting_resource_names": exc.conflicting_resource_names,
        },
    )


@app.exception_handler(NotFoundError)
async def _not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


# ── Resources ─────────────────────────────────────────────────────────


@app.get("/venues", response_model=list[Venue])
def list_venues() -> list[Venue]:
    return venue_repo.list_all()


@app.get("/items", response_model=list[Item])
def list_items() -> list[Item]:
    return item_repo.list_all()


@app.get("/items/available", response_model=list[str])
def available_items(
    start_time: time, end_time: time, day: date = Query(alias="date")
) -> list[str]:
    """Return ids of in-service items free on *date* between the two times."""
    return item_service.query_available_items(day, (start_time, end_time))


# ── Venue reservations ────────────────────────────────────────────────


@app.get("/reservations", response_model=list[VenueBooking])
def list_reservations() -> list[VenueBooking]:
    return reservation_repo.list_all()


@app.get("/reservations/today", response_model=list[VenueBooking])
def list_today_reservations(today: date | None = None) -> list[VenueBooking]:
    """Reservations covering today. Pass *today* to pin the date."""
    return reservation_repo.list_today(today or date.today())


@app.get("/reservations/upcoming", response_model=list[VenueBooking])
def list_upcoming_reservations(today: date | None = None) -> list[VenueBooking]:
    return reservation_repo.list_upcoming(today or date.today())


@app.get("/venues/{venue_id}/reservations", response_model=list[VenueBooking])
def list_venue_reservations(venue_id: str) -> list[VenueBooking]:
    if venue_repo.get(venue_id) is None:
        raise HTTPException(status_code=404, detail="Venue not found")
    return reservation_repo.list_for_resource(venue_id)


@app.get("/venues/{venue_id}/schedule", response_model=list[ScheduleDay])
def venue_schedule(venue_id: str, start: date, end: date) -> list[ScheduleDay]:
    """Day-by-day view of a venue's active reservations between two dates."""
    if venue_repo.get(venue_id) is None:
        raise HTTPException(status_code=404, detail="Venue not found")
    return build_schedule(reservation_repo.list_for_resource(venue_id), start, end)


@app.post("/reservations/check", response_model=ConflictResult)
def check_reservation(
    payload: VenueBookingCreate, exclude_id: str | None = None
) -> ConflictResult:
    """Dry-run the conflict check. *exclude_id* skips the reservation being edited."""
    return venue_service.check_venue_conflict(payload, booking_id=exclude_id)


@app.post("/reservations", response_model=VenueBooking, status_code=201)
def create_reservation(payload: VenueBookingCreate) -> VenueBooking:
    return venue_service.create(payload)


@app.get("/reservations/{reservation_id}", response_model=VenueBooking)
def get_reservation(reservation_id: str) -> VenueBooking:
    return reservation_repo.get_or_raise(reservation_id)


@app.patch("/reservations/{reservation_id}", response_model=VenueBooking)
def update_reservation(reservation_id: str, payload: VenueBookingUpdate) -> VenueBooking:
    return venue_service.update(reservation_id, payload)


@app.delete("/reservations/{reservation_id}", status_code=204)
def delete_reservation(reservation_id: str) -> Response:
    reservation_repo.delete(reservation_id)
    return Response(status_code=204)


@app.get("/reservations/{reservation_id}/history", response_model=list[HistoryEntry])
def reservation_history(reservation_id: str) -> list[HistoryEntry]:
    return history_repo.list_for_booking(reservation_id)


# ── Item borrowings ───────────────────────────────────────────────────


@app.get("/item-borrowings", response_model=list[ItemBooking])
def list_item_borrowings(day: date | None = Query(None, alias="date")) -> list[ItemBooking]:
    """All borrowings, or only those on *date* when given."""
    if day is not None:
        return borrowing_repo.list_for_date(day)
    return borrowing_repo.list_all()


@app.post("/item-borrowings/check", response_model=ConflictResult)
def check_item_borrowing(
    payload: ItemBookingCreate, exclude_id: str | None = None
) -> ConflictResult:
    return item_service.check_item_conflict(payload, booking_id=exclude_id)


@app.post("/item-borrowings", response_model=ItemBooking, status_code=201)
def create_item_borrowing(payload: ItemBookingCreate) -> ItemBooking:
    return item_service.create(payload)


@app.get("/item-borrowings/{borrowing_id}", response_model=ItemBooking)
def get_item_borrowing(borrowing_id: str) -> ItemBooking:
    return borrowing_repo.get_or_raise(borrowing_id)


@app.patch("/item-borrowings/{borrowing_id}", response_model=ItemBooking)
def update_item_borrowing(borrowing_id: str, payload: ItemBookingUpdate) -> ItemBooking:
    return item_service.update(borrowing_id, payload)


@app.delete("/item-borrowings/{borrowing_id}", status_code=204)
def delete_item_borrowing(borrowing_id: str) -> Response:
    borrowing_repo.delete(borrowing_id)
    return Response(status_code=204)


@app.get("/item-borrowings/{borrowing_id}/history", response_model=list[HistoryEntry])
def item_borrowing_history(borrowing_id: str) -> list[HistoryEntry]:
    return history_repo.list_for_booking(borrowing_id)
