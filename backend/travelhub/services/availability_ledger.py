"""
Availability ledger
Owns room allocation, overlap checks and Room.status. Nothing else writes Room.status.

Concurrency: anything that allocates, releases or removes rooms of a RoomType
(creations, transitions, maintenance toggles, room removal) runs inside
capacity_section() for that RoomType. That is an in-process lock with a bounded
wait, plus the RoomType row selected FOR UPDATE where the database supports it.
Callers re-verify the overlap after inserting.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import and_, exists
from sqlalchemy.orm import Session

from travelhub.config import settings
from travelhub.errors import Busy, InvalidRequest, NotFound, RoomUnavailable
from travelhub.models.events import EventType, RoomStatusChangedData
from travelhub.models.ontology import (
    ACTIVE_RESERVATION_STATUSES, Reservation, Room, RoomStatus, RoomType
)
from travelhub.security.capabilities import Capability, ensure_capability
from travelhub.security.context import RequestContext
from travelhub.services.event_bus import Event, event_bus

logger = logging.getLogger(__name__)


class KeyedLockRegistry:
    """One lock per key (e.g. RoomType id), created on first use"""

    def __init__(self, label: str):
        self.label = label
        self._locks: Dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, key: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: int, timeout: float):
        """
        Hold the lock of one key

        Raises:
            Busy: the lock was not acquired within timeout seconds
        """
        lock = self.lock_for(key)
        if not lock.acquire(timeout=timeout):
            logger.warning(f"Lock for {self.label} {key} not acquired within {timeout}s")
            raise Busy(f"{self.label.capitalize()} {key} is busy, retry shortly")
        try:
            yield
        finally:
            lock.release()


# Process-wide registries
capacity_locks = KeyedLockRegistry("room type")
trip_locks = KeyedLockRegistry("trip")


class AvailabilityLedger:
    """Availability ledger"""

    def __init__(self, db: Session,
                 today_provider: Callable[[], date] = date.today,
                 locks: KeyedLockRegistry = None,
                 lock_timeout: Optional[float] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._today = today_provider
        self._locks = locks or capacity_locks
        self._lock_timeout = settings.CAPACITY_LOCK_TIMEOUT_SECONDS if lock_timeout is None else lock_timeout
        self._publish_event = event_publisher or event_bus.publish
        self._pending_changes: List[Tuple[Room, RoomStatus, RoomStatus]] = []

    # ============== Capacity critical section ==============

    def capacity_section(self, room_type_id: int):
        """Context manager serialising allocations for one RoomType"""
        return self._locks.hold(room_type_id, self._lock_timeout)

    def lock_room_type(self, room_type_id: int) -> RoomType:
        """Load a RoomType fresh, with a row lock (no-op on SQLite)"""
        room_type = self.db.query(RoomType).filter(
            RoomType.id == room_type_id
        ).with_for_update().populate_existing().first()
        if not room_type:
            raise NotFound("Room type", room_type_id)
        return room_type

    # ============== Overlap ==============

    def _overlap_clause(self, start_date: date, end_date: date):
        # Half-open ranges: [a, b) and [c, d) overlap iff a < d and c < b
        return and_(
            Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            Reservation.start_date < end_date,
            Reservation.end_date > start_date,
        )

    def overlapping_reservations(self, room_id: int, start_date: date, end_date: date,
                                 exclude_reservation_id: Optional[int] = None) -> List[Reservation]:
        query = self.db.query(Reservation).filter(
            Reservation.room_id == room_id,
            self._overlap_clause(start_date, end_date),
        )
        if exclude_reservation_id is not None:
            query = query.filter(Reservation.id != exclude_reservation_id)
        return query.all()

    def has_overlap(self, room_id: int, start_date: date, end_date: date,
                    exclude_reservation_id: Optional[int] = None) -> bool:
        return bool(self.overlapping_reservations(room_id, start_date, end_date, exclude_reservation_id))

    def _free_rooms_query(self, room_type_id: int, start_date: date, end_date: date):
        busy = exists().where(and_(
            Reservation.room_id == Room.id,
            self._overlap_clause(start_date, end_date),
        ))
        return self.db.query(Room).filter(
            Room.room_type_id == room_type_id,
            Room.status != RoomStatus.MAINTENANCE,
            ~busy,
        )

    def find_free_room(self, room_type_id: int, start_date: date, end_date: date) -> Optional[Room]:
        """Lowest-id room of the type that is not in maintenance and free for the range"""
        return self._free_rooms_query(
            room_type_id, start_date, end_date
        ).order_by(Room.id).populate_existing().first()

    def is_room_free(self, room: Room, start_date: date, end_date: date) -> bool:
        if room.status == RoomStatus.MAINTENANCE:
            return False
        return not self.has_overlap(room.id, start_date, end_date)

    def allocate(self, room_type_id: int, start_date: date, end_date: date,
                 room_id: Optional[int] = None) -> Room:
        """
        Choose the room for a new reservation; call inside capacity_section

        Args:
            room_type_id: room type being booked
            room_id: a specific room, or None for any free room of the type

        Raises:
            NotFound: room_id does not exist
            InvalidRequest: room_id belongs to another room type
            RoomUnavailable: no free room for the range
        """
        if room_id is not None:
            room = self.db.query(Room).filter(Room.id == room_id).populate_existing().first()
            if not room:
                raise NotFound("Room", room_id)
            if room.room_type_id != room_type_id:
                raise InvalidRequest(f"Room {room_id} does not belong to room type {room_type_id}")
            if not self.is_room_free(room, start_date, end_date):
                raise RoomUnavailable(f"Room {room.room_number or room.id} is not available for these dates")
            return room

        room = self.find_free_room(room_type_id, start_date, end_date)
        if room is None:
            raise RoomUnavailable("No rooms of this type are available for these dates")
        return room

    def available_rooms_count(self, room_type_id: int,
                              start_date: Optional[date] = None,
                              end_date: Optional[date] = None) -> int:
        """
        Rooms a user could book

        With a date range: rooms not in maintenance and free for it.
        Without: rooms currently AVAILABLE.
        """
        if start_date is not None and end_date is not None:
            if end_date <= start_date:
                raise InvalidRequest("end_date must be after start_date")
            return self._free_rooms_query(room_type_id, start_date, end_date).count()
        return self.db.query(Room).filter(
            Room.room_type_id == room_type_id,
            Room.status == RoomStatus.AVAILABLE,
        ).count()

    # ============== Room status ==============

    def derive_status(self, room: Room) -> RoomStatus:
        """MAINTENANCE is kept; otherwise BOOKED while an active reservation has not ended"""
        if room.status == RoomStatus.MAINTENANCE:
            return RoomStatus.MAINTENANCE
        held = self.db.query(Reservation.id).filter(
            Reservation.room_id == room.id,
            Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            Reservation.end_date > self._today(),
        ).first()
        return RoomStatus.BOOKED if held else RoomStatus.AVAILABLE

    def refresh_room_status(self, room: Room) -> RoomStatus:
        """
        Recompute Room.status inside the caller's transaction

        The change is queued and announced by publish_changes() after commit.
        """
        self.db.flush()
        new_status = self.derive_status(room)
        old_status = room.status
        if new_status != old_status:
            room.status = new_status
            self._pending_changes.append((room, old_status, new_status))
        return new_status

    def release(self, room: Room) -> RoomStatus:
        """A reservation on the room stopped holding it"""
        return self.refresh_room_status(room)

    def publish_changes(self) -> None:
        """Announce status changes queued since the last call; call after commit"""
        changes, self._pending_changes = self._pending_changes, []
        for room, old_status, new_status in changes:
            logger.info(f"Room {room.id} status {old_status.value} -> {new_status.value}")
            self._publish_event(Event(
                event_type=EventType.ROOM_STATUS_CHANGED,
                timestamp=datetime.now(),
                data=RoomStatusChangedData(
                    room_id=room.id,
                    room_number=room.room_number,
                    old_status=old_status.value,
                    new_status=new_status.value,
                ).to_dict(),
                source="availability_ledger"
            ))

    def discard_changes(self) -> None:
        self._pending_changes = []

    def set_room_status(self, ctx: RequestContext, room_id: int, status: RoomStatus) -> Room:
        """
        Manager toggle between MAINTENANCE and normal service

        AVAILABLE means "back in service": the stored value is re-derived and may
        come out as BOOKED. BOOKED itself cannot be requested.
        """
        ensure_capability(ctx, Capability.MANAGE)
        if status == RoomStatus.BOOKED:
            raise InvalidRequest("BOOKED is derived from reservations and cannot be set directly")

        found = self.db.query(Room.room_type_id).filter(Room.id == room_id).first()
        if not found:
            raise NotFound("Room", room_id)

        with self.capacity_section(found.room_type_id):
            try:
                self.lock_room_type(found.room_type_id)
                room = self.db.query(Room).filter(Room.id == room_id).populate_existing().first()
                if not room:
                    raise NotFound("Room", room_id)

                old_status = room.status
                if status == RoomStatus.MAINTENANCE:
                    if old_status != RoomStatus.MAINTENANCE:
                        room.status = RoomStatus.MAINTENANCE
                        self._pending_changes.append((room, old_status, RoomStatus.MAINTENANCE))
                elif old_status == RoomStatus.MAINTENANCE:
                    room.status = RoomStatus.AVAILABLE
                    new_status = self.derive_status(room)
                    room.status = new_status
                    self._pending_changes.append((room, old_status, new_status))
                else:
                    self.refresh_room_status(room)
                self.db.commit()
            except Exception:
                self.db.rollback()
                self.discard_changes()
                raise

        self.db.refresh(room)
        self.publish_changes()
        return room
