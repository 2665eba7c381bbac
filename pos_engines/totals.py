"""
pos_engines.totals -- Financial Calculator for purchase order totals.

Responsibility:
    Derive ``subtotal``, ``tax_amount`` and ``total_amount`` from a set of
    line amounts plus the order-level overrides (shipping, other charges,
    discount).

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Imports only kernel money
    helpers.

Invariants enforced:
    - Decimal-only arithmetic; floats are refused by ``to_decimal``.
    - subtotal = sum(unit_cost * quantity_ordered)
    - tax_amount = sum(line tax_amount)
    - total_amount = subtotal + tax_amount + shipping_cost + other_charges
      - discount_amount
    - Rounding is half-to-even, applied to the aggregates only, never per
      line.  The total is formed from the rounded components so the equality
      above holds exactly at two places.

Failure modes:
    - TypeError / ValueError from ``to_decimal`` on float or garbage input.
    - The calculator does not reject negative results; callers validate
      overrides before calling.

Usage:
    from pos_engines.totals import LineAmounts, calculate_order_totals

    totals = calculate_order_totals(
        lines=[LineAmounts(quantity_ordered=20, unit_cost=Decimal("5.00"),
                           tax_amount=Decimal("4.00"))],
    )
    totals.total_amount  # Decimal("104.00")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from pos_engines.tracer import traced_engine
from pos_kernel.db.types import ZERO, round_money, to_decimal


@dataclass(frozen=True)
class LineAmounts:
    """The monetary inputs of one line item."""

    quantity_ordered: int
    unit_cost: Decimal
    tax_amount: Decimal = ZERO

    @property
    def extended_cost(self) -> Decimal:
        return self.unit_cost * self.quantity_ordered

    @property
    def line_total(self) -> Decimal:
        return self.extended_cost + self.tax_amount


@dataclass(frozen=True)
class OrderTotals:
    """Derived order-level amounts, each rounded to two places."""

    subtotal: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    other_charges: Decimal
    discount_amount: Decimal
    total_amount: Decimal


@traced_engine(
    "order_totals",
    "1.0",
    fingerprint_fields=("lines", "shipping_cost", "other_charges", "discount_amount"),
)
def calculate_order_totals(
    *,
    lines: Sequence[LineAmounts],
    shipping_cost: Decimal | int | str | None = None,
    other_charges: Decimal | int | str | None = None,
    discount_amount: Decimal | int | str | None = None,
) -> OrderTotals:
    """Compute order totals from line amounts and overrides.

    Omitted overrides count as zero.  An empty line list yields a zero
    subtotal; whether an empty order is acceptable is the caller's rule.
    """
    raw_subtotal = ZERO
    raw_tax = ZERO
    for line in lines:
        raw_subtotal += to_decimal(line.unit_cost) * line.quantity_ordered
        raw_tax += to_decimal(line.tax_amount)

    shipping = round_money(to_decimal(shipping_cost))
    other = round_money(to_decimal(other_charges))
    discount = round_money(to_decimal(discount_amount))

    subtotal = round_money(raw_subtotal)
    tax = round_money(raw_tax)
    total = subtotal + tax + shipping + other - discount

    return OrderTotals(
        subtotal=subtotal,
        tax_amount=tax,
        shipping_cost=shipping,
        other_charges=other,
        discount_amount=discount,
        total_amount=total,
    )
