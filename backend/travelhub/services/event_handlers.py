"""
Event handlers
Write an audit trail of reservation transitions and room status changes to the log
"""
import logging

from travelhub.models.events import EventType
from travelhub.services.event_bus import event_bus, Event

logger = logging.getLogger("travelhub.audit")


def log_reservation_event(event: Event) -> None:
    data = event.data
    logger.info(
        "%s reservation=%s user=%s room=%s %s->%s actor=%s total=%s",
        event.event_type,
        data.get("reservation_id"),
        data.get("user_id"),
        data.get("room_id"),
        data.get("old_status"),
        data.get("new_status"),
        data.get("actor_id"),
        data.get("total_price"),
    )


def log_trip_reservation_event(event: Event) -> None:
    data = event.data
    logger.info(
        "%s trip_reservation=%s user=%s trip=%s guests=%s %s->%s actor=%s",
        event.event_type,
        data.get("reservation_id"),
        data.get("user_id"),
        data.get("trip_id"),
        data.get("guests"),
        data.get("old_status"),
        data.get("new_status"),
        data.get("actor_id"),
    )


def log_room_status_changed(event: Event) -> None:
    data = event.data
    logger.info(
        "room %s (%s) %s -> %s",
        data.get("room_id"),
        data.get("room_number") or "-",
        data.get("old_status"),
        data.get("new_status"),
    )


def register_event_handlers() -> None:
    """Subscribe all handlers; safe to call more than once"""
    for event_type in (
        EventType.RESERVATION_CREATED,
        EventType.RESERVATION_CONFIRMED,
        EventType.RESERVATION_CANCELLED,
    ):
        event_bus.subscribe(event_type.value, log_reservation_event)

    for event_type in (
        EventType.TRIP_RESERVATION_CREATED,
        EventType.TRIP_RESERVATION_CONFIRMED,
        EventType.TRIP_RESERVATION_CANCELLED,
    ):
        event_bus.subscribe(event_type.value, log_trip_reservation_event)

    event_bus.subscribe(EventType.ROOM_STATUS_CHANGED.value, log_room_status_changed)
