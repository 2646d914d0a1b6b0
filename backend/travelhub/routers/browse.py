"""
Public browse routes
Paged, filtered listings of every catalog kind; open to anonymous visitors
"""
from decimal import Decimal
from typing import List, Optional, Type

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from travelhub.config import settings
from travelhub.database import get_db
from travelhub.models.schemas import (
    ActivityResponse, CityResponse, CountryResponse, HotelResponse, PageResponse,
    PlaceResponse, TagResponse, TripResponse
)
from travelhub.services.catalog_service import CatalogGraph, get_kind
from travelhub.services.pagination import BrowseFilter, filter_and_paginate
from travelhub.routers.paging import page_payload

router = APIRouter(prefix="/browse", tags=["Browse"])

BROWSE_SCHEMAS = {
    "countries": CountryResponse,
    "cities": CityResponse,
    "places": PlaceResponse,
    "activities": ActivityResponse,
    "hotels": HotelResponse,
    "trips": TripResponse,
}


@router.get("/categories", response_model=List[TagResponse])
def list_categories(db: Session = Depends(get_db)):
    return CatalogGraph(db).list_categories()


@router.get("/themes", response_model=List[TagResponse])
def list_themes(db: Session = Depends(get_db)):
    return CatalogGraph(db).list_themes()


def _register_kind(kind_name: str, schema: Type[BaseModel]) -> None:
    kind = get_kind(kind_name)

    def list_entities(
        q: Optional[str] = None,
        parent_id: Optional[int] = None,
        category_id: Optional[int] = None,
        theme_id: Optional[int] = None,
        min_price: Optional[Decimal] = Query(None, ge=0),
        max_price: Optional[Decimal] = Query(None, ge=0),
        page: int = 1,
        page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
        filter_key: Optional[str] = None,
        db: Session = Depends(get_db)
    ):
        flt = BrowseFilter(
            q=q or None,
            parent_id=parent_id,
            category_id=category_id,
            theme_id=theme_id,
            min_price=min_price,
            max_price=max_price,
        )
        items = CatalogGraph(db).list_entities(kind_name)
        result = filter_and_paginate(
            items, flt, page, page_size,
            previous_filter_key=filter_key,
            parent_attr=kind.parent_attr,
            price_attr=kind.price_attr,
        )
        return page_payload(result, schema.model_validate, flt.filter_key)

    def get_entity(entity_id: int, db: Session = Depends(get_db)):
        return CatalogGraph(db).get_one(kind_name, entity_id)

    list_entities.__doc__ = f"Browse {kind_name} (filtered, then paged)"
    get_entity.__doc__ = f"One {kind.label.lower()}"

    router.add_api_route(
        f"/{kind_name}", list_entities, methods=["GET"],
        response_model=PageResponse[schema], name=f"browse_{kind_name}"
    )
    router.add_api_route(
        f"/{kind_name}/{{entity_id}}", get_entity, methods=["GET"],
        response_model=schema, name=f"get_{kind_name}"
    )


for _kind_name, _schema in BROWSE_SCHEMAS.items():
    _register_kind(_kind_name, _schema)
