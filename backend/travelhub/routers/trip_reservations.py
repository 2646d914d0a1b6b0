"""
Trip reservation routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from travelhub.config import settings
from travelhub.database import get_db
from travelhub.models.ontology import ReservationStatus
from travelhub.models.schemas import (
    OwnStatusChange, PageResponse, QuoteResponse, ReservationDecision, TripQuoteRequest,
    TripReservationCreate, TripReservationResponse
)
from travelhub.security.auth import get_request_context, require_manager, require_reserver
from travelhub.security.context import RequestContext
from travelhub.services.pagination import paginate
from travelhub.services.reservation_service import ReservationLifecycle, quote_trip
from travelhub.routers.paging import page_payload

router = APIRouter(prefix="/trip-reservations", tags=["Trip reservations"])


@router.post("/quote", response_model=QuoteResponse)
def quote_trip_reservation(data: TripQuoteRequest, db: Session = Depends(get_db)):
    quote = quote_trip(db, data.trip_id, data.guests)
    return QuoteResponse(unit_price=quote.unit_price, quantity=quote.quantity, total_price=quote.total_price)


@router.post("", response_model=TripReservationResponse, status_code=status.HTTP_201_CREATED)
def create_trip_reservation(
    data: TripReservationCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    reservation = ReservationLifecycle(db).create_trip_reservation(ctx, data)
    return TripReservationResponse.from_reservation(reservation)


@router.get("/me", response_model=List[TripReservationResponse])
def list_my_trip_reservations(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_reserver)
):
    reservations = ReservationLifecycle(db).list_mine_trips(ctx)
    return [TripReservationResponse.from_reservation(r) for r in reservations]


@router.get("/me/{reservation_id}", response_model=TripReservationResponse)
def get_my_trip_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_reserver)
):
    return TripReservationResponse.from_reservation(
        ReservationLifecycle(db).get_mine_trip(ctx, reservation_id)
    )


@router.patch("/me/{reservation_id}/cancel", response_model=TripReservationResponse)
def cancel_my_trip_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    reservation = ReservationLifecycle(db).cancel_own_trip(ctx, reservation_id)
    return TripReservationResponse.from_reservation(reservation)


@router.patch("/me/{reservation_id}/status", response_model=TripReservationResponse)
def set_my_trip_reservation_status(
    reservation_id: int,
    data: OwnStatusChange,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Same as /cancel; the body must be {"status": "CANCELLED"}"""
    return cancel_my_trip_reservation(reservation_id, db, ctx)


@router.get("", response_model=PageResponse[TripReservationResponse])
def list_trip_reservations(
    status: Optional[ReservationStatus] = None,
    page: int = 1,
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    reservations = ReservationLifecycle(db).list_all_trips(ctx, status)
    return page_payload(paginate(reservations, page, page_size), TripReservationResponse.from_reservation)


@router.patch("/{reservation_id}/status", response_model=TripReservationResponse)
def decide_trip_reservation(
    reservation_id: int,
    data: ReservationDecision,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    reservation = ReservationLifecycle(db).decide_trip(ctx, reservation_id, data.status)
    return TripReservationResponse.from_reservation(reservation)


@router.post("/{reservation_id}/revoke", response_model=TripReservationResponse)
def revoke_trip_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    reservation = ReservationLifecycle(db).revoke_trip(ctx, reservation_id)
    return TripReservationResponse.from_reservation(reservation)
