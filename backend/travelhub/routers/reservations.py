"""
Hotel reservation routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from travelhub.config import settings
from travelhub.database import get_db
from travelhub.models.ontology import ReservationStatus
from travelhub.models.schemas import (
    HotelReservationCreate, OwnStatusChange, PageResponse, QuoteResponse, ReservationDecision,
    ReservationResponse, StayQuoteRequest
)
from travelhub.security.auth import get_request_context, require_manager, require_reserver
from travelhub.security.context import RequestContext
from travelhub.services.pagination import paginate
from travelhub.services.reservation_service import ReservationLifecycle, quote_stay
from travelhub.routers.paging import page_payload

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("/quote", response_model=QuoteResponse)
def quote_reservation(data: StayQuoteRequest, db: Session = Depends(get_db)):
    """Price preview; identical to the total a reservation would freeze"""
    quote = quote_stay(db, data.room_type_id, data.start_date, data.end_date)
    return QuoteResponse(unit_price=quote.unit_price, quantity=quote.quantity, total_price=quote.total_price)


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: HotelReservationCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Reserve a room; the reservation starts PENDING"""
    reservation = ReservationLifecycle(db).create_hotel_reservation(ctx, data)
    return ReservationResponse.from_reservation(reservation)


@router.get("/me", response_model=List[ReservationResponse])
def list_my_reservations(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_reserver)
):
    reservations = ReservationLifecycle(db).list_mine(ctx)
    return [ReservationResponse.from_reservation(r) for r in reservations]


@router.get("/me/{reservation_id}", response_model=ReservationResponse)
def get_my_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_reserver)
):
    return ReservationResponse.from_reservation(ReservationLifecycle(db).get_mine(ctx, reservation_id))


@router.patch("/me/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_my_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Cancel a PENDING reservation (owner or manager)"""
    reservation = ReservationLifecycle(db).cancel_own(ctx, reservation_id)
    return ReservationResponse.from_reservation(reservation)


@router.patch("/me/{reservation_id}/status", response_model=ReservationResponse)
def set_my_reservation_status(
    reservation_id: int,
    data: OwnStatusChange,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Same as /cancel; the body must be {"status": "CANCELLED"}"""
    return cancel_my_reservation(reservation_id, db, ctx)


@router.get("", response_model=PageResponse[ReservationResponse])
def list_reservations(
    status: Optional[ReservationStatus] = None,
    page: int = 1,
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    """All reservations, newest first"""
    reservations = ReservationLifecycle(db).list_all(ctx, status)
    return page_payload(paginate(reservations, page, page_size), ReservationResponse.from_reservation)


@router.patch("/{reservation_id}/status", response_model=ReservationResponse)
def decide_reservation(
    reservation_id: int,
    data: ReservationDecision,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Confirm or reject a PENDING reservation"""
    reservation = ReservationLifecycle(db).decide(ctx, reservation_id, data.status)
    return ReservationResponse.from_reservation(reservation)


@router.post("/{reservation_id}/revoke", response_model=ReservationResponse)
def revoke_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Cancel a CONFIRMED reservation"""
    reservation = ReservationLifecycle(db).revoke(ctx, reservation_id)
    return ReservationResponse.from_reservation(reservation)
