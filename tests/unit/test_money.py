"""Unit tests for fixed-point money helpers."""

from decimal import Decimal

import pytest

from app.core.money import to_money


class TestToMoney:
    def test_quantizes_to_cents(self):
        assert to_money("10") == Decimal("10.00")
        assert to_money(Decimal("10.5")) == Decimal("10.50")

    def test_rounds_half_up(self):
        assert to_money("0.005") == Decimal("0.01")
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("-2.345") == Decimal("-2.35")

    def test_accepts_int(self):
        assert to_money(500) == Decimal("500.00")

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            to_money(0.1)

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", None])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            to_money(value)

    @pytest.mark.parametrize("value", ["1E+30", "100000000000000000", Decimal("-1E+17")])
    def test_rejects_values_too_wide_for_storage(self, value):
        with pytest.raises(ValueError):
            to_money(value)

    def test_accepts_largest_storable_value(self):
        assert to_money("99999999999999999.99") == Decimal("99999999999999999.99")
