"""
Pydantic schemas
Request/response validation for the HTTP layer; every operation has its own typed payload
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Dict, Optional, List, Generic, TypeVar
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from travelhub.models.ontology import Role, RoomStatus, ReservationStatus

T = TypeVar("T")


# ============== Common ==============

class PageResponse(BaseModel, Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool
    filter_key: Optional[str] = None


def _clean_image_urls(value: Optional[List[str]]) -> List[str]:
    """Drop blank entries; an empty list means the entity has no image"""
    if not value:
        return []
    return [url.strip() for url in value if url and url.strip()]


class CatalogEntityBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = ""
    image_urls: List[str] = Field(default_factory=list)

    @field_validator("image_urls", mode="before")
    @classmethod
    def clean_image_urls(cls, v):
        return _clean_image_urls(v)


class CatalogEntityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    image_urls: Optional[List[str]] = None

    @field_validator("image_urls", mode="before")
    @classmethod
    def clean_image_urls(cls, v):
        if v is None:
            return None
        return _clean_image_urls(v)


class CatalogEntityResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = ""
    image_urls: List[str] = Field(default_factory=list)
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Users ==============

class UserResponse(BaseModel):
    id: int
    email: str
    role: Role
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Countries / Cities ==============

class CountryCreate(CatalogEntityBase):
    pass


class CountryUpdate(CatalogEntityUpdate):
    pass


class CountryResponse(CatalogEntityResponse):
    pass


class CityCreate(CatalogEntityBase):
    country_id: int


class CityUpdate(CatalogEntityUpdate):
    country_id: Optional[int] = None


class CityResponse(CatalogEntityResponse):
    country_id: int


# ============== Categories / Themes ==============

class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TagResponse(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)


# ============== Places / Activities ==============

class PlaceCreate(CatalogEntityBase):
    city_id: int
    category_ids: List[int] = Field(default_factory=list)
    theme_ids: List[int] = Field(default_factory=list)


class PlaceUpdate(CatalogEntityUpdate):
    city_id: Optional[int] = None
    category_ids: Optional[List[int]] = None
    theme_ids: Optional[List[int]] = None


class PlaceResponse(CatalogEntityResponse):
    city_id: int
    categories: List[TagResponse] = Field(default_factory=list)
    themes: List[TagResponse] = Field(default_factory=list)


class ActivityCreate(CatalogEntityBase):
    place_id: int


class ActivityUpdate(CatalogEntityUpdate):
    place_id: Optional[int] = None


class ActivityResponse(CatalogEntityResponse):
    place_id: int


# ============== Hotels / Room types / Rooms ==============

class HotelCreate(CatalogEntityBase):
    city_id: int
    price_per_night: Decimal = Field(default=Decimal("0"), ge=0)


class HotelUpdate(CatalogEntityUpdate):
    city_id: Optional[int] = None
    price_per_night: Optional[Decimal] = Field(None, ge=0)


class HotelResponse(CatalogEntityResponse):
    city_id: int
    price_per_night: Decimal


class RoomResponse(BaseModel):
    id: int
    room_type_id: int
    room_number: Optional[str] = None
    status: RoomStatus
    model_config = ConfigDict(from_attributes=True)


class RoomCreate(BaseModel):
    room_number: Optional[str] = Field(None, max_length=20)


class RoomStatusUpdate(BaseModel):
    """Only maintenance can be toggled by hand; BOOKED is derived from reservations"""
    status: RoomStatus

    @field_validator("status")
    @classmethod
    def not_booked(cls, v):
        if v == RoomStatus.BOOKED:
            raise ValueError("BOOKED is derived from reservations and cannot be set directly")
        return v


class BulkAddRooms(BaseModel):
    count: int = Field(..., ge=1, le=500)
    room_number_prefix: Optional[str] = Field(None, max_length=10)


class BulkRemoveRooms(BaseModel):
    count: int = Field(..., ge=1, le=500)


class RoomTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    max_guests: int = Field(..., ge=1)
    price_per_night: Decimal = Field(..., ge=0)
    capacity: int = Field(..., ge=0)
    initial_room_count: Optional[int] = Field(None, ge=0)
    room_number_prefix: Optional[str] = Field(None, max_length=10)


class RoomTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    max_guests: Optional[int] = Field(None, ge=1)
    price_per_night: Optional[Decimal] = Field(None, ge=0)
    capacity: Optional[int] = Field(None, ge=0)


class RoomTypeResponse(BaseModel):
    id: int
    hotel_id: int
    name: str
    description: Optional[str] = None
    max_guests: int
    price_per_night: Decimal
    capacity: int
    available_rooms_count: Optional[int] = None
    rooms: Optional[List[RoomResponse]] = None
    model_config = ConfigDict(from_attributes=True)


# ============== Trips ==============

class TripCreate(CatalogEntityBase):
    city_id: int
    hotel_id: Optional[int] = None
    activity_ids: List[int] = Field(default_factory=list)
    price: Decimal = Field(..., ge=0)


class TripUpdate(CatalogEntityUpdate):
    city_id: Optional[int] = None
    hotel_id: Optional[int] = None
    activity_ids: Optional[List[int]] = None
    price: Optional[Decimal] = Field(None, ge=0)


class TripResponse(CatalogEntityResponse):
    city_id: int
    hotel_id: Optional[int] = None
    price: Decimal
    activities: List[ActivityResponse] = Field(default_factory=list)


# ============== Reservations ==============

class HotelReservationCreate(BaseModel):
    """Either a room type (any free room) or one specific room"""
    room_type_id: Optional[int] = None
    room_id: Optional[int] = None
    start_date: date
    end_date: date
    guests: int = Field(..., ge=1)

    @model_validator(mode="after")
    def check_target_and_dates(self):
        if (self.room_type_id is None) == (self.room_id is None):
            raise ValueError("Exactly one of room_type_id or room_id is required")
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class TripReservationCreate(BaseModel):
    trip_id: int
    guests: int = Field(..., ge=1)


class ReservationDecision(BaseModel):
    status: ReservationStatus

    @field_validator("status")
    @classmethod
    def decided_status(cls, v):
        if v == ReservationStatus.PENDING:
            raise ValueError("A decision must be CONFIRMED or CANCELLED")
        return v


class OwnStatusChange(BaseModel):
    """Body of an owner's status change; CANCELLED is the only choice"""
    status: ReservationStatus

    @field_validator("status")
    @classmethod
    def cancelled_only(cls, v):
        if v != ReservationStatus.CANCELLED:
            raise ValueError("Owners can only set a reservation to CANCELLED")
        return v


class ReservationResponse(BaseModel):
    id: int
    user_id: int
    room_id: int
    room_type_id: int
    room_number: Optional[str] = None
    start_date: date
    end_date: date
    nights: int
    guests: int
    total_price: Decimal
    status: ReservationStatus
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_reservation(cls, reservation) -> "ReservationResponse":
        return cls(
            id=reservation.id,
            user_id=reservation.user_id,
            room_id=reservation.room_id,
            room_type_id=reservation.room_type_id,
            room_number=reservation.room.room_number if reservation.room else None,
            start_date=reservation.start_date,
            end_date=reservation.end_date,
            nights=reservation.nights,
            guests=reservation.guests,
            total_price=reservation.total_price,
            status=reservation.status,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


class TripReservationResponse(BaseModel):
    id: int
    user_id: int
    trip_id: int
    trip_name: Optional[str] = None
    guests: int
    total_price: Decimal
    status: ReservationStatus
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_reservation(cls, reservation) -> "TripReservationResponse":
        return cls(
            id=reservation.id,
            user_id=reservation.user_id,
            trip_id=reservation.trip_id,
            trip_name=reservation.trip.name if reservation.trip else None,
            guests=reservation.guests,
            total_price=reservation.total_price,
            status=reservation.status,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


# ============== Quotes ==============

class StayQuoteRequest(BaseModel):
    room_type_id: int
    start_date: date
    end_date: date


class TripQuoteRequest(BaseModel):
    trip_id: int
    guests: int = Field(..., ge=1)


class QuoteResponse(BaseModel):
    unit_price: Decimal
    quantity: int
    total_price: Decimal


# ============== Dashboard ==============

class RevenueSummary(BaseModel):
    hotel: Decimal
    trip: Decimal
    total: Decimal


class AdminDashboardResponse(BaseModel):
    catalog: Dict[str, int]
    users: Dict[str, int]
    rooms: Dict[str, int]
    reservations: Dict[str, int]
    trip_reservations: Dict[str, int]
    revenue: RevenueSummary


class UserDashboardResponse(BaseModel):
    user_id: int
    reservations: Dict[str, int]
    trip_reservations: Dict[str, int]
    confirmed_spend: Decimal
