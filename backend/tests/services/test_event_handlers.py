"""
Audit log handlers
"""
import logging
from datetime import datetime

from travelhub.models.events import EventType, ReservationEventData, RoomStatusChangedData
from travelhub.services.event_bus import Event, EventBus
from travelhub.services.event_handlers import register_event_handlers


def test_reservation_transition_logged(caplog):
    bus = EventBus()
    bus.clear_subscribers()
    register_event_handlers()
    try:
        data = ReservationEventData(
            reservation_id=3, user_id=1, room_id=2, total_price="200.00",
            old_status="PENDING", new_status="CONFIRMED", actor_id=9
        ).to_dict()
        with caplog.at_level(logging.INFO, logger="travelhub.audit"):
            bus.publish(Event(
                event_type=EventType.RESERVATION_CONFIRMED.value,
                timestamp=datetime.now(), data=data, source="test"
            ))
        assert "reservation=3" in caplog.text
        assert "PENDING->CONFIRMED" in caplog.text
        assert "actor=9" in caplog.text
    finally:
        bus.clear_subscribers()


def test_room_status_logged(caplog):
    bus = EventBus()
    bus.clear_subscribers()
    register_event_handlers()
    try:
        data = RoomStatusChangedData(
            room_id=5, room_number="R101", old_status="AVAILABLE", new_status="BOOKED"
        ).to_dict()
        with caplog.at_level(logging.INFO, logger="travelhub.audit"):
            bus.publish(Event(
                event_type=EventType.ROOM_STATUS_CHANGED.value,
                timestamp=datetime.now(), data=data, source="test"
            ))
        assert "room 5 (R101) AVAILABLE -> BOOKED" in caplog.text
    finally:
        bus.clear_subscribers()


def test_register_twice_does_not_duplicate(caplog):
    bus = EventBus()
    bus.clear_subscribers()
    register_event_handlers()
    register_event_handlers()
    try:
        data = RoomStatusChangedData(room_id=5, old_status="BOOKED", new_status="AVAILABLE").to_dict()
        with caplog.at_level(logging.INFO, logger="travelhub.audit"):
            bus.publish(Event(
                event_type=EventType.ROOM_STATUS_CHANGED.value,
                timestamp=datetime.now(), data=data, source="test"
            ))
        assert caplog.text.count("room 5") == 1
    finally:
        bus.clear_subscribers()
