"""
Catalog graph - Country -> City -> Place -> Activity, plus Hotel and Trip
Reads are open to everyone; writes require the manage capability and keep
the hierarchy consistent (parents exist, no orphaned children).
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import Session

from travelhub.config import settings
from travelhub.errors import InvalidRequest, NotFound
from travelhub.models.ontology import (
    Activity, Category, City, Country, Hotel, Place, Reservation, Room, RoomType,
    Theme, Trip, TripReservation
)
from travelhub.models.schemas import (
    BulkAddRooms, BulkRemoveRooms, RoomCreate, RoomTypeCreate, RoomTypeUpdate, TagCreate
)
from travelhub.security.capabilities import Capability, ensure_capability
from travelhub.security.context import RequestContext
from travelhub.services.availability_ledger import AvailabilityLedger, trip_locks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogKind:
    """
    One browsable entity kind

    Attributes:
        name: URL segment ("countries", "cities", ...)
        label: human name used in errors
        model: ORM class
        parent_attr: foreign key column naming the parent
        parent_model: ORM class of the parent
        price_attr: column used by price filters
    """
    name: str
    label: str
    model: type
    parent_attr: Optional[str] = None
    parent_model: Optional[type] = None
    price_attr: Optional[str] = None


CATALOG_KINDS: Dict[str, CatalogKind] = {
    kind.name: kind for kind in (
        CatalogKind("countries", "Country", Country),
        CatalogKind("cities", "City", City, "country_id", Country),
        CatalogKind("places", "Place", Place, "city_id", City),
        CatalogKind("activities", "Activity", Activity, "place_id", Place),
        CatalogKind("hotels", "Hotel", Hotel, "city_id", City, "price_per_night"),
        CatalogKind("trips", "Trip", Trip, "city_id", City, "price"),
    )
}

TAG_KINDS: Dict[str, Tuple[str, type]] = {
    "categories": ("Category", Category),
    "themes": ("Theme", Theme),
}


def get_kind(name: str) -> CatalogKind:
    kind = CATALOG_KINDS.get(name)
    if not kind:
        raise NotFound("Catalog kind", name)
    return kind


class CatalogGraph:
    """Catalog service"""

    def __init__(self, db: Session, ledger: Optional[AvailabilityLedger] = None):
        self.db = db
        self.ledger = ledger or AvailabilityLedger(db)

    # ============== Reads ==============

    def list_entities(self, kind_name: str, parent_id: Optional[int] = None) -> List[Any]:
        """Entities of one kind in insertion order, optionally under one parent"""
        kind = get_kind(kind_name)
        query = self.db.query(kind.model)
        if parent_id is not None and kind.parent_attr:
            query = query.filter(getattr(kind.model, kind.parent_attr) == parent_id)
        return query.order_by(kind.model.id).all()

    def list_countries(self) -> List[Country]:
        return self.list_entities("countries")

    def list_cities(self, country_id: Optional[int] = None) -> List[City]:
        return self.list_entities("cities", country_id)

    def list_places(self, city_id: Optional[int] = None) -> List[Place]:
        return self.list_entities("places", city_id)

    def list_activities(self, place_id: Optional[int] = None) -> List[Activity]:
        return self.list_entities("activities", place_id)

    def list_hotels(self, city_id: Optional[int] = None) -> List[Hotel]:
        return self.list_entities("hotels", city_id)

    def list_trips(self, city_id: Optional[int] = None) -> List[Trip]:
        return self.list_entities("trips", city_id)

    def list_categories(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.id).all()

    def list_themes(self) -> List[Theme]:
        return self.db.query(Theme).order_by(Theme.id).all()

    def get_one(self, kind_name: str, entity_id: int):
        kind = get_kind(kind_name)
        entity = self.db.query(kind.model).filter(kind.model.id == entity_id).first()
        if not entity:
            raise NotFound(kind.label, entity_id)
        return entity

    # ============== Writes ==============

    def create(self, ctx: RequestContext, kind_name: str, data: BaseModel):
        ensure_capability(ctx, Capability.MANAGE)
        kind = get_kind(kind_name)
        values = data.model_dump()
        relations = self._resolve_relations(self._pop_relations(values))
        self._check_references(kind, values)

        entity = kind.model(**values, **relations)
        return self._save(entity, f"Created {kind.label}")

    def update(self, ctx: RequestContext, kind_name: str, entity_id: int, data: BaseModel):
        ensure_capability(ctx, Capability.MANAGE)
        kind = get_kind(kind_name)
        entity = self.get_one(kind_name, entity_id)

        values = data.model_dump(exclude_unset=True)
        relations = self._resolve_relations(self._pop_relations(values))
        for required in (kind.parent_attr, "name", "price_per_night", "price"):
            if required in values and values[required] is None:
                raise InvalidRequest(f"{required} cannot be empty")
        if values.get("image_urls", []) is None:
            values["image_urls"] = []
        self._check_references(kind, values)

        for key, value in {**values, **relations}.items():
            setattr(entity, key, value)
        return self._save(entity, f"Updated {kind.label}")

    def delete(self, ctx: RequestContext, kind_name: str, entity_id: int) -> bool:
        ensure_capability(ctx, Capability.MANAGE)
        kind = get_kind(kind_name)
        self.get_one(kind_name, entity_id)

        if kind.model is Trip:
            # Trip reservations are created under the same lock
            with trip_locks.hold(entity_id, settings.CAPACITY_LOCK_TIMEOUT_SECONDS):
                self._delete_entity(kind, entity_id)
        else:
            self._delete_entity(kind, entity_id)
        logger.info(f"Deleted {kind.label} {entity_id}")
        return True

    def _delete_entity(self, kind: CatalogKind, entity_id: int) -> None:
        try:
            entity = self.db.query(kind.model).filter(
                kind.model.id == entity_id
            ).with_for_update().populate_existing().first()
            if not entity:
                raise NotFound(kind.label, entity_id)

            blocker = self._delete_blocker(entity)
            if blocker:
                raise InvalidRequest(f"Cannot delete {kind.label} {entity_id}: {blocker}")

            if isinstance(entity, Place):
                entity.categories = []
                entity.themes = []
            elif isinstance(entity, Trip):
                entity.activities = []
            self.db.delete(entity)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _pop_relations(self, values: Dict[str, Any]) -> Dict[str, List[int]]:
        return {
            key: values.pop(key)
            for key in ("category_ids", "theme_ids", "activity_ids")
            if key in values
        }

    def _check_references(self, kind: CatalogKind, values: Dict[str, Any]) -> None:
        parent_id = values.get(kind.parent_attr) if kind.parent_attr else None
        if parent_id is not None:
            if not self.db.query(kind.parent_model.id).filter(kind.parent_model.id == parent_id).first():
                raise InvalidRequest(f"{kind.parent_model.__name__} {parent_id} does not exist")

        hotel_id = values.get("hotel_id") if kind.model is Trip else None
        if hotel_id is not None:
            hotel = self.db.query(Hotel).filter(Hotel.id == hotel_id).first()
            if not hotel:
                raise InvalidRequest(f"Hotel {hotel_id} does not exist")

    def _load_all(self, model, ids: List[int], label: str) -> List[Any]:
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        found = self.db.query(model).filter(model.id.in_(wanted)).all()
        by_id = {e.id: e for e in found}
        missing = [i for i in wanted if i not in by_id]
        if missing:
            raise InvalidRequest(f"{label} {', '.join(str(i) for i in missing)} does not exist")
        return [by_id[i] for i in wanted]

    def _resolve_relations(self, relations: Dict[str, Optional[List[int]]]) -> Dict[str, List[Any]]:
        """Load related tags/activities; raises before anything is modified"""
        targets = {
            "category_ids": ("categories", Category, "Category"),
            "theme_ids": ("themes", Theme, "Theme"),
            "activity_ids": ("activities", Activity, "Activity"),
        }
        resolved = {}
        for key, ids in relations.items():
            if ids is None:
                continue
            attr, model, label = targets[key]
            resolved[attr] = self._load_all(model, ids, label)
        return resolved

    def _delete_blocker(self, entity) -> Optional[str]:
        """Reason an entity cannot be deleted, or None"""
        checks = []
        if isinstance(entity, Country):
            checks.append((City.country_id == entity.id, City, "it has cities"))
        elif isinstance(entity, City):
            checks.append((Place.city_id == entity.id, Place, "it has places"))
            checks.append((Hotel.city_id == entity.id, Hotel, "it has hotels"))
            checks.append((Trip.city_id == entity.id, Trip, "it has trips"))
        elif isinstance(entity, Place):
            checks.append((Activity.place_id == entity.id, Activity, "it has activities"))
        elif isinstance(entity, Hotel):
            checks.append((RoomType.hotel_id == entity.id, RoomType, "it has room types"))
            checks.append((Trip.hotel_id == entity.id, Trip, "trips include it"))
        elif isinstance(entity, Trip):
            checks.append((TripReservation.trip_id == entity.id, TripReservation, "it has reservations"))

        for condition, model, reason in checks:
            if self.db.query(model.id).filter(condition).first():
                return reason

        if isinstance(entity, Activity):
            if self.db.query(Trip.id).filter(Trip.activities.any(Activity.id == entity.id)).first():
                return "trips include it"
        return None

    def _save(self, entity, message: str):
        try:
            self.db.add(entity)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(entity)
        logger.info(f"{message} {entity.id}")
        return entity

    # ============== Categories / Themes ==============

    def create_tag(self, ctx: RequestContext, tag_kind: str, data: TagCreate):
        ensure_capability(ctx, Capability.MANAGE)
        label, model = self._tag_kind(tag_kind)
        name = data.name.strip()
        if self.db.query(model.id).filter(model.name == name).first():
            raise InvalidRequest(f"{label} '{name}' already exists")
        return self._save(model(name=name), f"Created {label}")

    def delete_tag(self, ctx: RequestContext, tag_kind: str, tag_id: int) -> bool:
        ensure_capability(ctx, Capability.MANAGE)
        label, model = self._tag_kind(tag_kind)
        tag = self.db.query(model).filter(model.id == tag_id).first()
        if not tag:
            raise NotFound(label, tag_id)

        attr = "categories" if model is Category else "themes"
        try:
            for place in self.db.query(Place).filter(getattr(Place, attr).any(model.id == tag_id)).all():
                setattr(place, attr, [t for t in getattr(place, attr) if t.id != tag_id])
            self.db.delete(tag)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted {label} {tag_id}")
        return True

    def _tag_kind(self, tag_kind: str) -> Tuple[str, type]:
        if tag_kind not in TAG_KINDS:
            raise NotFound("Catalog kind", tag_kind)
        return TAG_KINDS[tag_kind]

    # ============== Room types / Rooms ==============

    def list_room_types(self, hotel_id: int) -> List[RoomType]:
        self.get_one("hotels", hotel_id)
        return self.db.query(RoomType).filter(
            RoomType.hotel_id == hotel_id
        ).order_by(RoomType.id).all()

    def get_room_type(self, room_type_id: int, hotel_id: Optional[int] = None) -> RoomType:
        query = self.db.query(RoomType).filter(RoomType.id == room_type_id)
        if hotel_id is not None:
            query = query.filter(RoomType.hotel_id == hotel_id)
        room_type = query.first()
        if not room_type:
            raise NotFound("Room type", room_type_id)
        return room_type

    def create_room_type(self, ctx: RequestContext, hotel_id: int, data: RoomTypeCreate) -> RoomType:
        """
        Create a room type and its initial rooms

        initial_room_count defaults to capacity; rooms are numbered
        "<prefix>-1", "<prefix>-2", ... (plain numbers without a prefix).
        """
        ensure_capability(ctx, Capability.MANAGE)
        self.get_one("hotels", hotel_id)

        values = data.model_dump(exclude={"initial_room_count", "room_number_prefix"})
        room_count = data.initial_room_count if data.initial_room_count is not None else data.capacity

        try:
            room_type = RoomType(hotel_id=hotel_id, **values)
            self.db.add(room_type)
            self.db.flush()
            self._add_rooms(room_type, room_count, data.room_number_prefix)
            if room_count > room_type.capacity:
                room_type.capacity = room_count
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(room_type)
        logger.info(f"Created room type {room_type.id} for hotel {hotel_id} with {room_count} rooms")
        return room_type

    def update_room_type(self, ctx: RequestContext, hotel_id: int, room_type_id: int,
                         data: RoomTypeUpdate) -> RoomType:
        """Price changes never touch existing reservations (their totals are frozen)"""
        ensure_capability(ctx, Capability.MANAGE)
        room_type = self.get_room_type(room_type_id, hotel_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is None and key in ("name", "max_guests", "price_per_night", "capacity"):
                raise InvalidRequest(f"{key} cannot be empty")
            setattr(room_type, key, value)
        return self._save(room_type, "Updated room type")

    def delete_room_type(self, ctx: RequestContext, hotel_id: int, room_type_id: int) -> bool:
        ensure_capability(ctx, Capability.MANAGE)
        self.get_room_type(room_type_id, hotel_id)

        with self.ledger.capacity_section(room_type_id):
            try:
                room_type = self.ledger.lock_room_type(room_type_id)
                if self.db.query(Reservation.id).filter(Reservation.room_type_id == room_type_id).first():
                    raise InvalidRequest(f"Cannot delete room type {room_type_id}: it has reservations")
                for room in self.db.query(Room).filter(Room.room_type_id == room_type_id).all():
                    self.db.delete(room)
                self.db.delete(room_type)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
        logger.info(f"Deleted room type {room_type_id}")
        return True

    def create_room(self, ctx: RequestContext, hotel_id: int, room_type_id: int,
                    data: RoomCreate) -> Room:
        ensure_capability(ctx, Capability.MANAGE)
        room_type = self.get_room_type(room_type_id, hotel_id)
        if data.room_number and self._room_number_taken(room_type, data.room_number):
            raise InvalidRequest(f"Room number {data.room_number} already exists in {room_type.name}")
        room = Room(room_type_id=room_type.id, room_number=data.room_number)
        try:
            self.db.add(room)
            self.db.flush()
            room_count = self.db.query(Room).filter(Room.room_type_id == room_type.id).count()
            if room_count > room_type.capacity:
                room_type.capacity = room_count
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(room)
        return room

    def bulk_add_rooms(self, ctx: RequestContext, hotel_id: int, room_type_id: int,
                       data: BulkAddRooms) -> List[Room]:
        """Add rooms and raise capacity by the same amount"""
        ensure_capability(ctx, Capability.MANAGE)
        room_type = self.get_room_type(room_type_id, hotel_id)
        try:
            rooms = self._add_rooms(room_type, data.count, data.room_number_prefix)
            room_type.capacity = (room_type.capacity or 0) + data.count
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Added {data.count} rooms to room type {room_type_id}")
        return rooms

    def bulk_remove_rooms(self, ctx: RequestContext, hotel_id: int, room_type_id: int,
                          data: BulkRemoveRooms) -> int:
        """
        Remove up to count rooms that were never reserved, newest first

        Returns:
            number of rooms removed; capacity drops by the same amount
        """
        ensure_capability(ctx, Capability.MANAGE)
        self.get_room_type(room_type_id, hotel_id)

        with self.ledger.capacity_section(room_type_id):
            try:
                room_type = self.ledger.lock_room_type(room_type_id)
                removable = self.db.query(Room).filter(
                    Room.room_type_id == room_type.id,
                    ~Room.reservations.any()
                ).order_by(Room.id.desc()).limit(data.count).all()
                if not removable:
                    raise InvalidRequest("Every room of this type has reservation history")

                for room in removable:
                    self.db.delete(room)
                room_type.capacity = max(0, (room_type.capacity or 0) - len(removable))
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
        logger.info(f"Removed {len(removable)} rooms from room type {room_type_id}")
        return len(removable)

    def _room_number_taken(self, room_type: RoomType, room_number: str) -> bool:
        return self.db.query(Room.id).filter(
            Room.room_type_id == room_type.id,
            Room.room_number == room_number
        ).first() is not None

    def _add_rooms(self, room_type: RoomType, count: int, prefix: Optional[str]) -> List[Room]:
        existing = {
            number for (number,) in
            self.db.query(Room.room_number).filter(Room.room_type_id == room_type.id).all()
        }
        prefix = prefix.strip() if prefix else ""
        rooms = []
        n = len(existing)
        while len(rooms) < count:
            n += 1
            number = f"{prefix}-{n}" if prefix else str(n)
            if number in existing:
                continue
            room = Room(room_type_id=room_type.id, room_number=number)
            self.db.add(room)
            rooms.append(room)
        self.db.flush()
        return rooms
