"""
Pytest configuration and shared fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from travelhub.database import Base, get_db
from travelhub.models import ontology  # noqa: F401
from travelhub.models.ontology import (
    City, Country, Hotel, Role, Room, RoomStatus, RoomType, Trip, User
)
from travelhub.security.auth import create_access_token
from travelhub.security.context import RequestContext
from travelhub.main import app


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Test client sharing the test session"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== Users ==============

def _make_user(db_session, email: str, role: Role) -> User:
    user = User(email=email, role=role)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user(db_session):
    return _make_user(db_session, "traveller@example.com", Role.USER)


@pytest.fixture
def other_user(db_session):
    return _make_user(db_session, "someone.else@example.com", Role.USER)


@pytest.fixture
def sub_admin(db_session):
    return _make_user(db_session, "desk@example.com", Role.SUB_ADMIN)


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "admin@example.com", Role.ADMIN)


@pytest.fixture
def user_ctx(user):
    return RequestContext(user_id=user.id, role=user.role)


@pytest.fixture
def other_user_ctx(other_user):
    return RequestContext(user_id=other_user.id, role=other_user.role)


@pytest.fixture
def sub_admin_ctx(sub_admin):
    return RequestContext(user_id=sub_admin.id, role=sub_admin.role)


@pytest.fixture
def admin_ctx(admin):
    return RequestContext(user_id=admin.id, role=admin.role)


def _headers(u: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(u.id, u.role)}"}


@pytest.fixture
def user_headers(user):
    return _headers(user)


@pytest.fixture
def other_user_headers(other_user):
    return _headers(other_user)


@pytest.fixture
def sub_admin_headers(sub_admin):
    return _headers(sub_admin)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


# ============== Catalog ==============

@pytest.fixture
def sample_country(db_session):
    country = Country(name="Portugal", description="", image_urls=[])
    db_session.add(country)
    db_session.commit()
    db_session.refresh(country)
    return country


@pytest.fixture
def sample_city(db_session, sample_country):
    city = City(name="Lisbon", description="", image_urls=[], country_id=sample_country.id)
    db_session.add(city)
    db_session.commit()
    db_session.refresh(city)
    return city


@pytest.fixture
def sample_hotel(db_session, sample_city):
    hotel = Hotel(
        name="Hotel Alfama",
        description="",
        image_urls=[],
        price_per_night=Decimal("100.00"),
        city_id=sample_city.id
    )
    db_session.add(hotel)
    db_session.commit()
    db_session.refresh(hotel)
    return hotel


@pytest.fixture
def sample_room_type(db_session, sample_hotel):
    """Standard room, $100/night, one room"""
    room_type = RoomType(
        hotel_id=sample_hotel.id,
        name="Standard",
        description="Standard double",
        max_guests=2,
        price_per_night=Decimal("100.00"),
        capacity=1
    )
    db_session.add(room_type)
    db_session.commit()
    db_session.refresh(room_type)
    return room_type


@pytest.fixture
def sample_room(db_session, sample_room_type):
    """Room R101"""
    room = Room(room_type_id=sample_room_type.id, room_number="R101", status=RoomStatus.AVAILABLE)
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_room_102(db_session, sample_room_type):
    room = Room(room_type_id=sample_room_type.id, room_number="R102", status=RoomStatus.AVAILABLE)
    db_session.add(room)
    sample_room_type.capacity = 2
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_trip(db_session, sample_city, sample_hotel):
    """Trip priced $50 per guest"""
    trip = Trip(
        name="Sintra day trip",
        description="",
        image_urls=[],
        price=Decimal("50.00"),
        city_id=sample_city.id,
        hotel_id=sample_hotel.id
    )
    db_session.add(trip)
    db_session.commit()
    db_session.refresh(trip)
    return trip

