# Domain models
from travelhub.models.ontology import (
    Role, RoomStatus, ReservationStatus,
    User, Country, City, Category, Theme, Place, Activity,
    Hotel, RoomType, Room, Trip, Reservation, TripReservation
)

__all__ = [
    'Role', 'RoomStatus', 'ReservationStatus',
    'User', 'Country', 'City', 'Category', 'Theme', 'Place', 'Activity',
    'Hotel', 'RoomType', 'Room', 'Trip', 'Reservation', 'TripReservation'
]
