from decimal import Decimal

import pytest

from tablebook.domain.exceptions import InvalidArgumentError
from tablebook.domain.pricing import (
    amount_remaining,
    format_money,
    from_minor_units,
    reservation_total_amount,
    table_total_cost,
    to_minor_units,
    to_money,
)


def test_reservation_total_is_min_spend_times_people():
    assert reservation_total_amount(Decimal("50.00"), 2) == Decimal("100.00")
    assert reservation_total_amount(Decimal("12.35"), 3) == Decimal("37.05")


def test_zero_people_costs_nothing():
    assert reservation_total_amount(Decimal("50.00"), 0) == Decimal("0.00")


def test_table_total_cost_uses_capacity():
    assert table_total_cost(Decimal("50.00"), 10) == Decimal("500.00")


@pytest.mark.parametrize("min_spend, count", [(Decimal("-1.00"), 2), (Decimal("10.00"), -1)])
def test_negative_inputs_are_rejected(min_spend, count):
    with pytest.raises(InvalidArgumentError):
        reservation_total_amount(min_spend, count)


def test_non_integer_count_is_rejected():
    with pytest.raises(InvalidArgumentError):
        table_total_cost(Decimal("10.00"), 2.5)


def test_amount_remaining_may_go_negative():
    assert amount_remaining(Decimal("100.00"), Decimal("40.00")) == Decimal("60.00")
    assert amount_remaining(Decimal("100.00"), Decimal("150.00")) == Decimal("-50.00")


def test_to_money_accepts_floats_exact_in_cents():
    assert to_money(99.5) == Decimal("99.50")
    assert to_money(0.1) == Decimal("0.10")
    assert to_money("100") == Decimal("100.00")


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", float("inf"), 1.005, True, None])
def test_to_money_rejects_bad_values(value):
    with pytest.raises(InvalidArgumentError):
        to_money(value)


def test_minor_units_conversion():
    assert to_minor_units(Decimal("100.00")) == 10000
    assert to_minor_units(Decimal("0.29")) == 29
    assert from_minor_units(10050) == Decimal("100.50")


def test_format_money_uses_euro_suffix():
    assert format_money(Decimal("100")) == "100.00 €"
    assert format_money(Decimal("-5.5")) == "-5.50 €"
