"""
Money arithmetic for tables and reservations.

Amounts are fixed-point ``Decimal`` values with two places. Floats are only
accepted at the edges and are converted immediately, rejecting anything
that is not exactly representable in cents.
"""

from decimal import Decimal, InvalidOperation

from tablebook.domain.exceptions import InvalidArgumentError

CENT = Decimal("0.01")
CURRENCY_GLYPH = "€"


def to_money(value) -> Decimal:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid amount: {value!r}")

    try:
        if isinstance(value, float):
            # repr gives the shortest string that round-trips
            amount = Decimal(repr(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Invalid amount: {value!r}") from exc

    if not amount.is_finite():
        raise InvalidArgumentError(f"Amount must be finite, got {value!r}")

    quantized = amount.quantize(CENT)
    if quantized != amount:
        raise InvalidArgumentError(
            f"Amount {value!r} cannot be represented exactly in cents"
        )
    return quantized


def _require_non_negative_money(value, name: str) -> Decimal:
    amount = to_money(value)
    if amount < 0:
        raise InvalidArgumentError(f"{name} must not be negative, got {amount}")
    return amount


def _require_count(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgumentError(f"{name} must not be negative, got {value}")
    return value


def table_total_cost(min_spend, capacity: int) -> Decimal:
    """Total cost of a table: per-seat minimum spend times capacity."""
    return _require_non_negative_money(min_spend, "min_spend") * _require_count(
        capacity, "capacity"
    )


def reservation_total_amount(min_spend, num_people: int) -> Decimal:
    """Amount owed for a reservation of ``num_people`` at a table."""
    return _require_non_negative_money(min_spend, "min_spend") * _require_count(
        num_people, "num_people"
    )


def amount_remaining(total, paid) -> Decimal:
    """
    ``total - paid``. A negative result means the reservation was over-paid;
    it is returned as is so callers can flag it.
    """
    return _require_non_negative_money(total, "total") - _require_non_negative_money(
        paid, "paid"
    )


def to_minor_units(amount) -> int:
    return int(to_money(amount) * 100)


def from_minor_units(units: int) -> Decimal:
    if isinstance(units, bool) or not isinstance(units, int):
        raise InvalidArgumentError(f"Minor units must be an integer, got {units!r}")
    return (Decimal(units) / 100).quantize(CENT)


def format_money(amount) -> str:
    return f"{Decimal(amount).quantize(CENT)} {CURRENCY_GLYPH}"
