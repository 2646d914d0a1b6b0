"""
Hotel room type routes
Everyone sees prices and how many rooms are free; managers also see the rooms
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from travelhub.database import get_db
from travelhub.errors import InvalidRequest
from travelhub.models.schemas import RoomResponse, RoomTypeResponse
from travelhub.security.auth import get_request_context
from travelhub.security.capabilities import Capability, has_capability
from travelhub.security.context import RequestContext
from travelhub.services.availability_ledger import AvailabilityLedger
from travelhub.services.catalog_service import CatalogGraph

router = APIRouter(prefix="/hotels", tags=["Hotels"])


@router.get("/{hotel_id}/room-types", response_model=List[RoomTypeResponse])
def list_room_types(
    hotel_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Room types of a hotel with availability for an optional date range"""
    if (start_date is None) != (end_date is None):
        raise InvalidRequest("start_date and end_date must be given together")

    room_types = CatalogGraph(db).list_room_types(hotel_id)
    ledger = AvailabilityLedger(db)
    show_rooms = has_capability(ctx, Capability.MANAGE)

    result = []
    for room_type in room_types:
        response = RoomTypeResponse.model_validate(room_type)
        response.available_rooms_count = ledger.available_rooms_count(room_type.id, start_date, end_date)
        response.rooms = (
            [RoomResponse.model_validate(r) for r in room_type.rooms] if show_rooms else None
        )
        result.append(response)
    return result
