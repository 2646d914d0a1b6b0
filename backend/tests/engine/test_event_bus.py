"""
Tests for travelhub.services.event_bus
"""
import pytest
from datetime import datetime

from travelhub.services.event_bus import Event, EventBus, event_bus


@pytest.fixture
def bus():
    bus = EventBus()
    bus.clear_subscribers()
    bus.clear_history()
    yield bus
    bus.clear_subscribers()
    bus.clear_history()


def _event(event_type="reservation.created", **data):
    return Event(event_type=event_type, timestamp=datetime.now(), data=data, source="test")


def test_event_creation():
    event = _event(reservation_id=1)
    assert event.event_type == "reservation.created"
    assert event.data == {"reservation_id": 1}
    assert event.source == "test"
    assert event.event_id


def test_singleton():
    assert EventBus() is EventBus()
    assert event_bus is EventBus()


def test_subscribe_and_publish(bus):
    received = []
    bus.subscribe("reservation.created", received.append)

    event = _event(reservation_id=7)
    bus.publish(event)

    assert received == [event]


def test_only_matching_type_delivered(bus):
    received = []
    bus.subscribe("reservation.confirmed", received.append)
    bus.publish(_event("reservation.created"))
    assert received == []


def test_same_handler_subscribed_once(bus):
    received = []

    def handler(event):
        received.append(event)

    bus.subscribe("reservation.created", handler)
    bus.subscribe("reservation.created", handler)
    bus.publish(_event())
    assert len(received) == 1


def test_failing_handler_does_not_stop_others(bus):
    """A handler error is logged; later handlers still run"""
    received = []

    def broken(event):
        raise RuntimeError("handler failure")

    def working(event):
        received.append(event)

    bus.subscribe("reservation.created", broken)
    bus.subscribe("reservation.created", working)
    bus.publish(_event())

    assert len(received) == 1


def test_history_newest_first(bus):
    bus.publish(_event("reservation.created", reservation_id=1))
    bus.publish(_event("reservation.confirmed", reservation_id=1))
    bus.publish(_event("reservation.created", reservation_id=2))

    history = bus.get_history()
    assert [e.data["reservation_id"] for e in history] == [2, 1, 1]

    created = bus.get_history("reservation.created")
    assert [e.data["reservation_id"] for e in created] == [2, 1]

    assert len(bus.get_history(limit=1)) == 1
