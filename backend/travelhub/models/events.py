"""
Domain events
Published by the reservation lifecycle after a successful commit
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime, date
from typing import Optional, Dict, Any


class EventType(str, Enum):
    """Event type enumeration"""
    # Hotel reservations
    RESERVATION_CREATED = "reservation.created"
    RESERVATION_CONFIRMED = "reservation.confirmed"
    RESERVATION_CANCELLED = "reservation.cancelled"

    # Trip reservations
    TRIP_RESERVATION_CREATED = "trip_reservation.created"
    TRIP_RESERVATION_CONFIRMED = "trip_reservation.confirmed"
    TRIP_RESERVATION_CANCELLED = "trip_reservation.cancelled"

    # Rooms
    ROOM_STATUS_CHANGED = "room.status_changed"


@dataclass
class BaseEventData:
    """Base class for event payloads"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, (datetime, date)):
                result[key] = value.isoformat()
        return result


@dataclass
class ReservationEventData(BaseEventData):
    """Hotel reservation created or changed status"""
    reservation_id: int = 0
    user_id: int = 0
    room_id: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_price: str = ""
    old_status: Optional[str] = None
    new_status: str = ""
    actor_id: Optional[int] = None


@dataclass
class TripReservationEventData(BaseEventData):
    """Trip reservation created or changed status"""
    reservation_id: int = 0
    user_id: int = 0
    trip_id: int = 0
    guests: int = 0
    total_price: str = ""
    old_status: Optional[str] = None
    new_status: str = ""
    actor_id: Optional[int] = None


@dataclass
class RoomStatusChangedData(BaseEventData):
    """Room status recomputed by the availability ledger"""
    room_id: int = 0
    room_number: Optional[str] = None
    old_status: str = ""
    new_status: str = ""
