"""
Reservation lifecycle - hotel and trip reservations
PENDING -> CONFIRMED | CANCELLED; CANCELLED is terminal; CONFIRMED -> CANCELLED
only through an explicit revoke by a manager.

Every mutation commits all-or-nothing and publishes its events after the commit.
"""
import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from travelhub.config import settings
from travelhub.engine.state_machine import StateMachine, StateMachineConfig, StateTransition
from travelhub.errors import Forbidden, InvalidRequest, InvalidTransition, NotFound, RoomUnavailable
from travelhub.models.events import EventType, ReservationEventData, TripReservationEventData
from travelhub.models.ontology import (
    Reservation, ReservationStatus, Room, RoomType, Trip, TripReservation
)
from travelhub.models.schemas import HotelReservationCreate, TripReservationCreate
from travelhub.security.capabilities import Capability, ensure_capability, has_capability
from travelhub.security.context import RequestContext
from travelhub.services import pricing
from travelhub.services.availability_ledger import AvailabilityLedger, trip_locks
from travelhub.services.event_bus import Event, event_bus

logger = logging.getLogger(__name__)


# ============== Lifecycle definition ==============

TRIGGER_CONFIRM = "confirm"
TRIGGER_REJECT = "reject"
TRIGGER_CANCEL_OWN = "cancel_own"
TRIGGER_REVOKE = "revoke"

RESERVATION_LIFECYCLE = StateMachineConfig(
    name="reservation",
    states=[s.value for s in ReservationStatus],
    transitions=[
        StateTransition(ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value, TRIGGER_CONFIRM),
        StateTransition(ReservationStatus.PENDING.value, ReservationStatus.CANCELLED.value, TRIGGER_REJECT),
        StateTransition(ReservationStatus.PENDING.value, ReservationStatus.CANCELLED.value, TRIGGER_CANCEL_OWN),
        StateTransition(ReservationStatus.CONFIRMED.value, ReservationStatus.CANCELLED.value, TRIGGER_REVOKE),
    ],
    initial_state=ReservationStatus.PENDING.value,
)

_STATUS_EVENTS = {
    ReservationStatus.PENDING: EventType.RESERVATION_CREATED,
    ReservationStatus.CONFIRMED: EventType.RESERVATION_CONFIRMED,
    ReservationStatus.CANCELLED: EventType.RESERVATION_CANCELLED,
}

_TRIP_STATUS_EVENTS = {
    ReservationStatus.PENDING: EventType.TRIP_RESERVATION_CREATED,
    ReservationStatus.CONFIRMED: EventType.TRIP_RESERVATION_CONFIRMED,
    ReservationStatus.CANCELLED: EventType.TRIP_RESERVATION_CANCELLED,
}


def _apply_transition(reservation, target: ReservationStatus, trigger: str) -> ReservationStatus:
    """Move a reservation along the lifecycle; returns the previous status"""
    machine = StateMachine(RESERVATION_LIFECYCLE, current_state=reservation.status.value)
    if not machine.transition_to(target.value, trigger):
        raise InvalidTransition(reservation.status.value, target.value, machine.allowed_triggers())
    old_status = reservation.status
    reservation.status = target
    return old_status


def _decision_trigger(new_status: ReservationStatus) -> str:
    if new_status == ReservationStatus.CONFIRMED:
        return TRIGGER_CONFIRM
    if new_status == ReservationStatus.CANCELLED:
        return TRIGGER_REJECT
    raise InvalidRequest("A decision must be CONFIRMED or CANCELLED")


class ReservationLifecycle:
    """Reservation lifecycle service"""

    def __init__(self, db: Session,
                 ledger: Optional[AvailabilityLedger] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.ledger = ledger or AvailabilityLedger(db, event_publisher=self._publish_event)

    # ============== Hotel reservations ==============

    def create_hotel_reservation(self, ctx: RequestContext, data: HotelReservationCreate) -> Reservation:
        """
        Reserve a room for [start_date, end_date)

        Raises:
            Forbidden: caller cannot reserve
            InvalidRequest: bad dates or too many guests
            NotFound: unknown room type or room
            RoomUnavailable: no free room for the range
            Busy: capacity lock not acquired in time
        """
        ensure_capability(ctx, Capability.RESERVE)
        pricing.nights(data.start_date, data.end_date)
        if data.guests < 1:
            raise InvalidRequest("guests must be at least 1")

        if data.room_id is not None:
            found = self.db.query(Room.room_type_id).filter(Room.id == data.room_id).first()
            if not found:
                raise NotFound("Room", data.room_id)
            if data.room_type_id is not None and data.room_type_id != found.room_type_id:
                raise InvalidRequest(f"Room {data.room_id} does not belong to room type {data.room_type_id}")
            room_type_id = found.room_type_id
        elif data.room_type_id is not None:
            room_type_id = data.room_type_id
            if not self.db.query(RoomType.id).filter(RoomType.id == room_type_id).first():
                raise NotFound("Room type", room_type_id)
        else:
            raise InvalidRequest("Either room_type_id or room_id is required")

        with self.ledger.capacity_section(room_type_id):
            try:
                room_type = self.ledger.lock_room_type(room_type_id)
                if data.guests > room_type.max_guests:
                    raise InvalidRequest(
                        f"{room_type.name} takes at most {room_type.max_guests} guests"
                    )

                room = self.ledger.allocate(room_type_id, data.start_date, data.end_date, data.room_id)
                quote = pricing.quote_stay(room_type, data.start_date, data.end_date)

                reservation = Reservation(
                    user_id=ctx.user_id,
                    room_id=room.id,
                    room_type_id=room_type.id,
                    start_date=data.start_date,
                    end_date=data.end_date,
                    guests=data.guests,
                    total_price=quote.total_price,
                    status=ReservationStatus.PENDING,
                )
                self.db.add(reservation)
                self.db.flush()

                # Insert-then-verify
                if self.ledger.has_overlap(room.id, data.start_date, data.end_date,
                                           exclude_reservation_id=reservation.id):
                    raise RoomUnavailable("Room was taken by a concurrent reservation")

                self.ledger.refresh_room_status(room)
                self.db.commit()
            except Exception:
                self.db.rollback()
                self.ledger.discard_changes()
                raise

        self.db.refresh(reservation)
        logger.info(
            f"Reservation {reservation.id} created: user {ctx.user_id}, room {room.id}, "
            f"{data.start_date} -> {data.end_date}, total {reservation.total_price}"
        )
        self.ledger.publish_changes()
        self._publish_reservation(reservation, None, ctx.user_id)
        return reservation

    def decide(self, ctx: RequestContext, reservation_id: int,
               new_status: ReservationStatus) -> Reservation:
        """Confirm or reject a PENDING reservation"""
        ensure_capability(ctx, Capability.MANAGE)
        trigger = _decision_trigger(new_status)
        return self._transition_hotel(ctx, reservation_id, new_status, trigger)

    def cancel_own(self, ctx: RequestContext, reservation_id: int) -> Reservation:
        """Owner (or a manager) cancels a PENDING reservation"""
        ensure_capability(ctx, Capability.RESERVE)
        reservation = self._get_hotel(reservation_id)
        self._ensure_owner_or_manager(ctx, reservation)
        return self._transition_hotel(ctx, reservation_id, ReservationStatus.CANCELLED, TRIGGER_CANCEL_OWN)

    def revoke(self, ctx: RequestContext, reservation_id: int) -> Reservation:
        """Manager cancels a CONFIRMED reservation"""
        ensure_capability(ctx, Capability.MANAGE)
        return self._transition_hotel(ctx, reservation_id, ReservationStatus.CANCELLED, TRIGGER_REVOKE)

    def _transition_hotel(self, ctx: RequestContext, reservation_id: int,
                          target: ReservationStatus, trigger: str) -> Reservation:
        reservation = self._get_hotel(reservation_id)

        with self.ledger.capacity_section(reservation.room_type_id):
            try:
                self.ledger.lock_room_type(reservation.room_type_id)
                # Status may have moved while waiting for the lock
                reservation = self._lock_row(Reservation, reservation_id)
                old_status = _apply_transition(reservation, target, trigger)
                room = self._lock_row(Room, reservation.room_id)
                if target == ReservationStatus.CANCELLED:
                    self.ledger.release(room)
                else:
                    self.ledger.refresh_room_status(room)
                self.db.commit()
            except Exception:
                self.db.rollback()
                self.ledger.discard_changes()
                raise

        self.db.refresh(reservation)
        logger.info(
            f"Reservation {reservation.id} {old_status.value} -> {reservation.status.value} "
            f"({trigger} by user {ctx.user_id})"
        )
        self.ledger.publish_changes()
        self._publish_reservation(reservation, old_status, ctx.user_id)
        return reservation

    def _get_hotel(self, reservation_id: int) -> Reservation:
        reservation = self.db.query(Reservation).filter(Reservation.id == reservation_id).first()
        if not reservation:
            raise NotFound("Reservation", reservation_id)
        return reservation

    def list_mine(self, ctx: RequestContext) -> List[Reservation]:
        ensure_capability(ctx, Capability.RESERVE)
        return self.db.query(Reservation).filter(
            Reservation.user_id == ctx.user_id
        ).order_by(Reservation.id.desc()).all()

    def get_mine(self, ctx: RequestContext, reservation_id: int) -> Reservation:
        """Another user's reservation is reported as not found"""
        ensure_capability(ctx, Capability.RESERVE)
        reservation = self.db.query(Reservation).filter(
            Reservation.id == reservation_id,
            Reservation.user_id == ctx.user_id
        ).first()
        if not reservation:
            raise NotFound("Reservation", reservation_id)
        return reservation

    def list_all(self, ctx: RequestContext,
                 status: Optional[ReservationStatus] = None) -> List[Reservation]:
        ensure_capability(ctx, Capability.MANAGE)
        query = self.db.query(Reservation)
        if status:
            query = query.filter(Reservation.status == status)
        return query.order_by(Reservation.id.desc()).all()

    # ============== Trip reservations ==============

    def create_trip_reservation(self, ctx: RequestContext, data: TripReservationCreate) -> TripReservation:
        """Reserve places on a trip; no capacity is modelled"""
        ensure_capability(ctx, Capability.RESERVE)
        if data.guests < 1:
            raise InvalidRequest("guests must be at least 1")

        with trip_locks.hold(data.trip_id, settings.CAPACITY_LOCK_TIMEOUT_SECONDS):
            try:
                trip = self.db.query(Trip).filter(
                    Trip.id == data.trip_id
                ).with_for_update().populate_existing().first()
                if not trip:
                    raise NotFound("Trip", data.trip_id)

                quote = pricing.quote_trip(trip, data.guests)
                reservation = TripReservation(
                    user_id=ctx.user_id,
                    trip_id=trip.id,
                    guests=data.guests,
                    total_price=quote.total_price,
                    status=ReservationStatus.PENDING,
                )
                self.db.add(reservation)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(reservation)
        logger.info(
            f"Trip reservation {reservation.id} created: user {ctx.user_id}, trip {trip.id}, "
            f"{data.guests} guests, total {reservation.total_price}"
        )
        self._publish_trip_reservation(reservation, None, ctx.user_id)
        return reservation

    def decide_trip(self, ctx: RequestContext, reservation_id: int,
                    new_status: ReservationStatus) -> TripReservation:
        ensure_capability(ctx, Capability.MANAGE)
        trigger = _decision_trigger(new_status)
        return self._transition_trip(ctx, reservation_id, new_status, trigger)

    def cancel_own_trip(self, ctx: RequestContext, reservation_id: int) -> TripReservation:
        ensure_capability(ctx, Capability.RESERVE)
        reservation = self._get_trip(reservation_id)
        self._ensure_owner_or_manager(ctx, reservation)
        return self._transition_trip(ctx, reservation_id, ReservationStatus.CANCELLED, TRIGGER_CANCEL_OWN)

    def revoke_trip(self, ctx: RequestContext, reservation_id: int) -> TripReservation:
        ensure_capability(ctx, Capability.MANAGE)
        return self._transition_trip(ctx, reservation_id, ReservationStatus.CANCELLED, TRIGGER_REVOKE)

    def _transition_trip(self, ctx: RequestContext, reservation_id: int,
                         target: ReservationStatus, trigger: str) -> TripReservation:
        reservation = self._get_trip(reservation_id)

        with trip_locks.hold(reservation.trip_id, settings.CAPACITY_LOCK_TIMEOUT_SECONDS):
            try:
                reservation = self._lock_row(TripReservation, reservation_id)
                old_status = _apply_transition(reservation, target, trigger)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(reservation)
        logger.info(
            f"Trip reservation {reservation.id} {old_status.value} -> {reservation.status.value} "
            f"({trigger} by user {ctx.user_id})"
        )
        self._publish_trip_reservation(reservation, old_status, ctx.user_id)
        return reservation

    def _get_trip(self, reservation_id: int) -> TripReservation:
        reservation = self.db.query(TripReservation).filter(TripReservation.id == reservation_id).first()
        if not reservation:
            raise NotFound("Trip reservation", reservation_id)
        return reservation

    def list_mine_trips(self, ctx: RequestContext) -> List[TripReservation]:
        ensure_capability(ctx, Capability.RESERVE)
        return self.db.query(TripReservation).filter(
            TripReservation.user_id == ctx.user_id
        ).order_by(TripReservation.id.desc()).all()

    def get_mine_trip(self, ctx: RequestContext, reservation_id: int) -> TripReservation:
        ensure_capability(ctx, Capability.RESERVE)
        reservation = self.db.query(TripReservation).filter(
            TripReservation.id == reservation_id,
            TripReservation.user_id == ctx.user_id
        ).first()
        if not reservation:
            raise NotFound("Trip reservation", reservation_id)
        return reservation

    def list_all_trips(self, ctx: RequestContext,
                       status: Optional[ReservationStatus] = None) -> List[TripReservation]:
        ensure_capability(ctx, Capability.MANAGE)
        query = self.db.query(TripReservation)
        if status:
            query = query.filter(TripReservation.status == status)
        return query.order_by(TripReservation.id.desc()).all()

    # ============== Helpers ==============

    def _lock_row(self, model, entity_id: int):
        """Re-read a row with FOR UPDATE, replacing any stale copy in the session"""
        return self.db.query(model).filter(
            model.id == entity_id
        ).with_for_update().populate_existing().one()

    def _ensure_owner_or_manager(self, ctx: RequestContext, reservation) -> None:
        if ctx.is_user(reservation.user_id):
            return
        if has_capability(ctx, Capability.MANAGE):
            return
        raise Forbidden("Only the owner or a manager can cancel this reservation")

    def _publish_reservation(self, reservation: Reservation,
                             old_status: Optional[ReservationStatus], actor_id: Optional[int]) -> None:
        self._publish_event(Event(
            event_type=_STATUS_EVENTS[reservation.status],
            timestamp=datetime.now(),
            data=ReservationEventData(
                reservation_id=reservation.id,
                user_id=reservation.user_id,
                room_id=reservation.room_id,
                start_date=reservation.start_date,
                end_date=reservation.end_date,
                total_price=str(reservation.total_price),
                old_status=old_status.value if old_status else None,
                new_status=reservation.status.value,
                actor_id=actor_id,
            ).to_dict(),
            source="reservation_service"
        ))

    def _publish_trip_reservation(self, reservation: TripReservation,
                                  old_status: Optional[ReservationStatus], actor_id: Optional[int]) -> None:
        self._publish_event(Event(
            event_type=_TRIP_STATUS_EVENTS[reservation.status],
            timestamp=datetime.now(),
            data=TripReservationEventData(
                reservation_id=reservation.id,
                user_id=reservation.user_id,
                trip_id=reservation.trip_id,
                guests=reservation.guests,
                total_price=str(reservation.total_price),
                old_status=old_status.value if old_status else None,
                new_status=reservation.status.value,
                actor_id=actor_id,
            ).to_dict(),
            source="reservation_service"
        ))


def quote_stay(db: Session, room_type_id: int, start_date: date, end_date: date) -> pricing.Quote:
    """Preview of a stay price; same calculation as the frozen total"""
    room_type = db.query(RoomType).filter(RoomType.id == room_type_id).first()
    if not room_type:
        raise NotFound("Room type", room_type_id)
    return pricing.quote_stay(room_type, start_date, end_date)


def quote_trip(db: Session, trip_id: int, guests: int) -> pricing.Quote:
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise NotFound("Trip", trip_id)
    return pricing.quote_trip(trip, guests)
