"""
Dashboard summaries for managers and for individual users
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from travelhub.models.ontology import (
    Reservation, ReservationStatus, Role, Room, RoomStatus, TripReservation, User
)
from travelhub.security.capabilities import Capability, ensure_capability
from travelhub.security.context import RequestContext
from travelhub.services.catalog_service import CATALOG_KINDS
from travelhub.services.pricing import to_money


class DashboardService:
    """Dashboard service"""

    def __init__(self, db: Session):
        self.db = db

    def admin_summary(self, ctx: RequestContext) -> Dict[str, Any]:
        ensure_capability(ctx, Capability.MANAGE)

        catalog = {
            name: self.db.query(func.count(kind.model.id)).scalar()
            for name, kind in CATALOG_KINDS.items()
        }

        users = {role.value: 0 for role in Role}
        for role, count in self.db.query(User.role, func.count(User.id)).group_by(User.role).all():
            users[role.value] = count

        rooms = {status.value: 0 for status in RoomStatus}
        for status, count in self.db.query(Room.status, func.count(Room.id)).group_by(Room.status).all():
            rooms[status.value] = count

        hotel = self._status_counts(Reservation)
        trip = self._status_counts(TripReservation)
        hotel_revenue = self._confirmed_revenue(Reservation)
        trip_revenue = self._confirmed_revenue(TripReservation)

        return {
            "catalog": catalog,
            "users": users,
            "rooms": rooms,
            "reservations": hotel,
            "trip_reservations": trip,
            "revenue": {
                "hotel": hotel_revenue,
                "trip": trip_revenue,
                "total": to_money(hotel_revenue + trip_revenue),
            },
        }

    def user_summary(self, ctx: RequestContext) -> Dict[str, Any]:
        ensure_capability(ctx, Capability.RESERVE)
        hotel = self._status_counts(Reservation, ctx.user_id)
        trip = self._status_counts(TripReservation, ctx.user_id)
        spent = self._confirmed_revenue(Reservation, ctx.user_id) + self._confirmed_revenue(TripReservation, ctx.user_id)
        return {
            "user_id": ctx.user_id,
            "reservations": hotel,
            "trip_reservations": trip,
            "confirmed_spend": to_money(spent),
        }

    def _status_counts(self, model, user_id: Optional[int] = None) -> Dict[str, int]:
        query = self.db.query(model.status, func.count(model.id))
        if user_id is not None:
            query = query.filter(model.user_id == user_id)
        counts = {status.value: 0 for status in ReservationStatus}
        for status, count in query.group_by(model.status).all():
            counts[status.value] = count
        counts["total"] = sum(counts.values())
        return counts

    def _confirmed_revenue(self, model, user_id: Optional[int] = None) -> Decimal:
        query = self.db.query(func.coalesce(func.sum(model.total_price), 0)).filter(
            model.status == ReservationStatus.CONFIRMED
        )
        if user_id is not None:
            query = query.filter(model.user_id == user_id)
        return to_money(query.scalar() or 0)
