"""Tests for money coercion and rounding helpers."""

from decimal import Decimal

import pytest

from pos_kernel.db.types import has_excess_precision, round_money, to_decimal


class TestToDecimal:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, Decimal("0")),
            (5, Decimal("5")),
            ("12.50", Decimal("12.50")),
            (" 3.10 ", Decimal("3.10")),
            (Decimal("7.25"), Decimal("7.25")),
        ],
    )
    def test_accepted_inputs(self, value, expected):
        assert to_decimal(value) == expected

    def test_float_refused(self):
        with pytest.raises(TypeError, match="Float"):
            to_decimal(0.1)

    def test_bool_refused(self):
        with pytest.raises(TypeError):
            to_decimal(True)

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
    def test_non_numeric_and_non_finite_refused(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)


class TestRoundMoney:

    def test_half_even(self):
        assert round_money(Decimal("2.345")) == Decimal("2.34")
        assert round_money(Decimal("2.355")) == Decimal("2.36")

    def test_zero_places(self):
        assert round_money(Decimal("2.5"), decimal_places=0) == Decimal("2")


class TestExcessPrecision:

    def test_two_places_ok(self):
        assert not has_excess_precision(Decimal("1.23"))
        assert not has_excess_precision(Decimal("1"))

    def test_three_places_flagged(self):
        assert has_excess_precision(Decimal("1.234"))

    def test_trailing_zeros_are_not_excess(self):
        assert not has_excess_precision(Decimal("1.2300"))
