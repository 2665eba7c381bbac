"""
Module: pos_kernel.db.types
Responsibility: Constants and utility functions for fixed-point monetary
    values.  Centralizes precision and rounding so that every model,
    engine and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models, domain,
    engines, services, and selectors.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere.  All monetary amounts are Decimal with two places
      of precision in storage (Numeric(12, 2)).
    - round_money() is the ONLY sanctioned rounding function for monetary
      values, and it rounds half-to-even.

Failure modes:
    - TypeError when a float is offered as a monetary value.
    - ValueError on a non-numeric string.
"""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_EVEN

ZERO = Decimal("0")


def to_decimal(value: Decimal | int | str | None) -> Decimal:
    """
    Coerce an incoming monetary value to Decimal without rounding.

    None is treated as zero (an omitted override).  Floats are refused:
    binary floating point has already lost precision by the time it
    reaches us.

    Raises:
        TypeError: If value is a float or an unsupported type.
        ValueError: If value is a string that is not a number.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise TypeError(f"Unsupported monetary value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary amount: {value!r}") from exc
    elif isinstance(value, float):
        raise TypeError(
            f"Float {value!r} is not accepted for money; pass Decimal or str"
        )
    else:
        raise TypeError(f"Unsupported monetary value: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite monetary amount: {value!r}")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for monetary values.
    Callers round once, at the final result, never per intermediate step.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_EVEN).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "0"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def has_excess_precision(value: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> bool:
    """True when ``value`` cannot be stored at ``decimal_places`` without rounding."""
    return round_money(value, decimal_places) != value
