"""
Pricing calculator tests
"""
import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from travelhub.errors import InvalidRequest
from travelhub.services.pricing import nights, quote_stay, quote_trip, to_money


class TestNights:

    def test_two_nights(self):
        assert nights(date(2024, 6, 1), date(2024, 6, 3)) == 2

    def test_across_month_end(self):
        assert nights(date(2024, 1, 30), date(2024, 2, 2)) == 3

    def test_same_day_rejected(self):
        with pytest.raises(InvalidRequest):
            nights(date(2024, 6, 1), date(2024, 6, 1))

    def test_reversed_rejected(self):
        with pytest.raises(InvalidRequest):
            nights(date(2024, 6, 3), date(2024, 6, 1))


class TestQuotes:

    def test_stay_price_per_night_times_nights(self):
        room_type = SimpleNamespace(price_per_night=Decimal("100.00"))
        quote = quote_stay(room_type, date(2024, 6, 1), date(2024, 6, 3))
        assert quote.unit_price == Decimal("100.00")
        assert quote.quantity == 2
        assert quote.total_price == Decimal("200.00")

    def test_trip_price_times_guests(self):
        trip = SimpleNamespace(price=Decimal("50"))
        quote = quote_trip(trip, 3)
        assert quote.total_price == Decimal("150.00")
        assert quote.quantity == 3

    def test_trip_needs_a_guest(self):
        with pytest.raises(InvalidRequest):
            quote_trip(SimpleNamespace(price=Decimal("50")), 0)

    def test_no_binary_float_drift(self):
        room_type = SimpleNamespace(price_per_night=Decimal("0.10"))
        quote = quote_stay(room_type, date(2024, 6, 1), date(2024, 6, 4))
        assert quote.total_price == Decimal("0.30")

    def test_to_money_quantizes_to_cents(self):
        assert to_money("19.999") == Decimal("20.00")
        assert to_money(7) == Decimal("7.00")
