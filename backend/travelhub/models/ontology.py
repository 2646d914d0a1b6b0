"""
Domain object definitions
Catalog hierarchy (Country -> City -> Place -> Activity, plus Hotel and Trip),
hotel inventory (RoomType -> Room) and the two reservation aggregates
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Text, Table, Index,
    Enum as SQLEnum, Numeric, JSON
)
from sqlalchemy.orm import relationship
from travelhub.database import Base


# ============== Enums ==============

class Role(str, Enum):
    """User role; capabilities are derived from it (see security.capabilities)"""
    ADMIN = "ADMIN"
    SUB_ADMIN = "SUB_ADMIN"
    USER = "USER"


class RoomStatus(str, Enum):
    """Room status, maintained by the availability ledger"""
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    MAINTENANCE = "MAINTENANCE"


class ReservationStatus(str, Enum):
    """Status shared by hotel and trip reservations"""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


# Statuses that hold a room for their date range
ACTIVE_RESERVATION_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


# ============== Association tables ==============

place_categories = Table(
    "place_categories",
    Base.metadata,
    Column("place_id", Integer, ForeignKey("places.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

place_themes = Table(
    "place_themes",
    Base.metadata,
    Column("place_id", Integer, ForeignKey("places.id", ondelete="CASCADE"), primary_key=True),
    Column("theme_id", Integer, ForeignKey("themes.id", ondelete="CASCADE"), primary_key=True),
)

trip_activities = Table(
    "trip_activities",
    Base.metadata,
    Column("trip_id", Integer, ForeignKey("trips.id", ondelete="CASCADE"), primary_key=True),
    Column("activity_id", Integer, ForeignKey("activities.id", ondelete="CASCADE"), primary_key=True),
)


# ============== Users ==============

class User(Base):
    """
    User account
    The role stored here must match the role embedded in the session token
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(SQLEnum(Role), nullable=False, default=Role.USER)
    created_at = Column(DateTime, default=datetime.utcnow)

    reservations = relationship("Reservation", back_populates="user")
    trip_reservations = relationship("TripReservation", back_populates="user")


# ============== Catalog ==============

class Country(Base):
    """Root of the catalog hierarchy"""
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, default="")
    image_urls = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cities = relationship("City", back_populates="country", order_by="City.id")


class City(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, default="")
    image_urls = Column(JSON, default=list, nullable=False)
    country_id = Column(Integer, ForeignKey("countries.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    country = relationship("Country", back_populates="cities")
    places = relationship("Place", back_populates="city", order_by="Place.id")
    hotels = relationship("Hotel", back_populates="city", order_by="Hotel.id")
    trips = relationship("Trip", back_populates="city", order_by="Trip.id")


class Category(Base):
    """Place category, used as a browse filter"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Theme(Base):
    """Place theme, used as a browse filter"""
    __tablename__ = "themes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Place(Base):
    __tablename__ = "places"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, default="")
    image_urls = Column(JSON, default=list, nullable=False)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    city = relationship("City", back_populates="places")
    activities = relationship("Activity", back_populates="place", order_by="Activity.id")
    categories = relationship("Category", secondary=place_categories, order_by="Category.id")
    themes = relationship("Theme", secondary=place_themes, order_by="Theme.id")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, default="")
    image_urls = Column(JSON, default=list, nullable=False)
    place_id = Column(Integer, ForeignKey("places.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    place = relationship("Place", back_populates="activities")


class Hotel(Base):
    """
    Hotel
    price_per_night is a display default; bookings are priced from the room type
    """
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, default="")
    image_urls = Column(JSON, default=list, nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False, default=0)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    city = relationship("City", back_populates="hotels")
    room_types = relationship("RoomType", back_populates="hotel", order_by="RoomType.id")


class RoomType(Base):
    """
    Priced class of room within a hotel; the unit of selection
    capacity is the intended room count
    """
    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    max_guests = Column(Integer, nullable=False, default=2)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="room_types")
    rooms = relationship("Room", back_populates="room_type", order_by="Room.id")


class Room(Base):
    """
    Concrete bookable unit; the unit of reservation and overlap checking
    status is written only by the availability ledger
    """
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False, index=True)
    room_number = Column(String(20))
    status = Column(SQLEnum(RoomStatus), nullable=False, default=RoomStatus.AVAILABLE)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room_type = relationship("RoomType", back_populates="rooms")
    reservations = relationship("Reservation", back_populates="room")


class Trip(Base):
    """Trip package with a flat per-guest price"""
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, default="")
    image_urls = Column(JSON, default=list, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    city = relationship("City", back_populates="trips")
    hotel = relationship("Hotel")
    activities = relationship("Activity", secondary=trip_activities, order_by="Activity.id")


# ============== Reservations ==============

class Reservation(Base):
    """
    Hotel reservation - bound to one room for [start_date, end_date)
    total_price is frozen at creation
    """
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(SQLEnum(ReservationStatus), nullable=False, default=ReservationStatus.PENDING)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="reservations")
    room = relationship("Room", back_populates="reservations")
    room_type = relationship("RoomType")

    __table_args__ = (
        Index("ix_reservations_room_dates", "room_id", "start_date", "end_date"),
    )

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days


class TripReservation(Base):
    """Trip reservation - a headcount on a trip; total_price is frozen at creation"""
    __tablename__ = "trip_reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    guests = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(SQLEnum(ReservationStatus), nullable=False, default=ReservationStatus.PENDING)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="trip_reservations")
    trip = relationship("Trip")
