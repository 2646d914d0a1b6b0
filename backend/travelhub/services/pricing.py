"""
Pricing
One calculator for both previews and the totals frozen onto reservations
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from travelhub.errors import InvalidRequest

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Quote:
    unit_price: Decimal
    quantity: int
    total_price: Decimal


def to_money(value) -> Decimal:
    """Quantize to cents"""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def nights(start_date: date, end_date: date) -> int:
    """Whole nights in [start_date, end_date)"""
    if end_date <= start_date:
        raise InvalidRequest("end_date must be after start_date")
    return (end_date - start_date).days


def quote_stay(room_type, start_date: date, end_date: date) -> Quote:
    """price_per_night x nights"""
    unit_price = to_money(room_type.price_per_night)
    n = nights(start_date, end_date)
    return Quote(unit_price=unit_price, quantity=n, total_price=to_money(unit_price * n))


def quote_trip(trip, guests: int) -> Quote:
    """price x guests"""
    if guests < 1:
        raise InvalidRequest("guests must be at least 1")
    unit_price = to_money(trip.price)
    return Quote(unit_price=unit_price, quantity=guests, total_price=to_money(unit_price * guests))
