"""
Catalog administration routes (manage capability)
CRUD for every catalog kind is registered from one table; room types and
rooms have their own endpoints under /catalog/hotels/{hotel_id}/room-types
"""
from typing import List, Type

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from travelhub.database import get_db
from travelhub.models.schemas import (
    ActivityCreate, ActivityResponse, ActivityUpdate,
    BulkAddRooms, BulkRemoveRooms,
    CityCreate, CityResponse, CityUpdate,
    CountryCreate, CountryResponse, CountryUpdate,
    HotelCreate, HotelResponse, HotelUpdate,
    PlaceCreate, PlaceResponse, PlaceUpdate,
    RoomCreate, RoomResponse, RoomStatusUpdate,
    RoomTypeCreate, RoomTypeResponse, RoomTypeUpdate,
    TagCreate, TagResponse,
    TripCreate, TripResponse, TripUpdate
)
from travelhub.security.auth import require_manager
from travelhub.security.context import RequestContext
from travelhub.services.availability_ledger import AvailabilityLedger
from travelhub.services.catalog_service import CatalogGraph, get_kind

router = APIRouter(prefix="/catalog", tags=["Catalog admin"])

CATALOG_SCHEMAS = {
    "countries": (CountryCreate, CountryUpdate, CountryResponse),
    "cities": (CityCreate, CityUpdate, CityResponse),
    "places": (PlaceCreate, PlaceUpdate, PlaceResponse),
    "activities": (ActivityCreate, ActivityUpdate, ActivityResponse),
    "hotels": (HotelCreate, HotelUpdate, HotelResponse),
    "trips": (TripCreate, TripUpdate, TripResponse),
}


# ============== Room types / Rooms ==============
# Declared before the generic /{kind}/{id} routes

@router.get("/hotels/{hotel_id}/room-types", response_model=List[RoomTypeResponse])
def list_room_types(
    hotel_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    """Room types with their rooms"""
    return CatalogGraph(db).list_room_types(hotel_id)


@router.post("/hotels/{hotel_id}/room-types", response_model=RoomTypeResponse,
             status_code=status.HTTP_201_CREATED)
def create_room_type(
    hotel_id: int,
    data: RoomTypeCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    return CatalogGraph(db).create_room_type(ctx, hotel_id, data)


@router.patch("/hotels/{hotel_id}/room-types/{room_type_id}", response_model=RoomTypeResponse)
def update_room_type(
    hotel_id: int,
    room_type_id: int,
    data: RoomTypeUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    return CatalogGraph(db).update_room_type(ctx, hotel_id, room_type_id, data)


@router.delete("/hotels/{hotel_id}/room-types/{room_type_id}")
def delete_room_type(
    hotel_id: int,
    room_type_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    CatalogGraph(db).delete_room_type(ctx, hotel_id, room_type_id)
    return {"message": "Room type deleted"}


@router.post("/hotels/{hotel_id}/room-types/{room_type_id}/rooms", response_model=RoomResponse,
             status_code=status.HTTP_201_CREATED)
def create_room(
    hotel_id: int,
    room_type_id: int,
    data: RoomCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    return CatalogGraph(db).create_room(ctx, hotel_id, room_type_id, data)


@router.post("/hotels/{hotel_id}/room-types/{room_type_id}/rooms/bulk-add",
             response_model=List[RoomResponse], status_code=status.HTTP_201_CREATED)
def bulk_add_rooms(
    hotel_id: int,
    room_type_id: int,
    data: BulkAddRooms,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    return CatalogGraph(db).bulk_add_rooms(ctx, hotel_id, room_type_id, data)


@router.post("/hotels/{hotel_id}/room-types/{room_type_id}/rooms/bulk-remove")
def bulk_remove_rooms(
    hotel_id: int,
    room_type_id: int,
    data: BulkRemoveRooms,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    """Removes only rooms that were never reserved"""
    removed = CatalogGraph(db).bulk_remove_rooms(ctx, hotel_id, room_type_id, data)
    return {"removed": removed}


@router.patch("/rooms/{room_id}/status", response_model=RoomResponse)
def update_room_status(
    room_id: int,
    data: RoomStatusUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_manager)
):
    """Put a room into or take it out of maintenance"""
    return AvailabilityLedger(db).set_room_status(ctx, room_id, data.status)


# ============== Categories / Themes ==============

def _register_tags(tag_kind: str) -> None:
    def create_tag(
        data: TagCreate,
        db: Session = Depends(get_db),
        ctx: RequestContext = Depends(require_manager)
    ):
        return CatalogGraph(db).create_tag(ctx, tag_kind, data)

    def delete_tag(
        tag_id: int,
        db: Session = Depends(get_db),
        ctx: RequestContext = Depends(require_manager)
    ):
        CatalogGraph(db).delete_tag(ctx, tag_kind, tag_id)
        return {"message": "Deleted"}

    router.add_api_route(
        f"/{tag_kind}", create_tag, methods=["POST"], response_model=TagResponse,
        status_code=status.HTTP_201_CREATED, name=f"create_{tag_kind}"
    )
    router.add_api_route(
        f"/{tag_kind}/{{tag_id}}", delete_tag, methods=["DELETE"], name=f"delete_{tag_kind}"
    )


# ============== Catalog entities ==============

def _register_kind(kind_name: str, create_schema: Type[BaseModel],
                   update_schema: Type[BaseModel], response_schema: Type[BaseModel]) -> None:
    label = get_kind(kind_name).label

    def create_entity(
        data: create_schema,
        db: Session = Depends(get_db),
        ctx: RequestContext = Depends(require_manager)
    ):
        return CatalogGraph(db).create(ctx, kind_name, data)

    def update_entity(
        entity_id: int,
        data: update_schema,
        db: Session = Depends(get_db),
        ctx: RequestContext = Depends(require_manager)
    ):
        return CatalogGraph(db).update(ctx, kind_name, entity_id, data)

    def delete_entity(
        entity_id: int,
        db: Session = Depends(get_db),
        ctx: RequestContext = Depends(require_manager)
    ):
        CatalogGraph(db).delete(ctx, kind_name, entity_id)
        return {"message": f"{label} deleted"}

    router.add_api_route(
        f"/{kind_name}", create_entity, methods=["POST"], response_model=response_schema,
        status_code=status.HTTP_201_CREATED, name=f"create_{kind_name}"
    )
    router.add_api_route(
        f"/{kind_name}/{{entity_id}}", update_entity, methods=["PATCH"],
        response_model=response_schema, name=f"update_{kind_name}"
    )
    router.add_api_route(
        f"/{kind_name}/{{entity_id}}", delete_entity, methods=["DELETE"], name=f"delete_{kind_name}"
    )


for _tag_kind in ("categories", "themes"):
    _register_tags(_tag_kind)

for _kind_name, (_create, _update, _response) in CATALOG_SCHEMAS.items():
    _register_kind(_kind_name, _create, _update, _response)
