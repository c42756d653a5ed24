from decimal import Decimal

import pytest

from order_tracking.core.money import line_total, mean, sum_lines, to_money


def test_to_money_rounds_half_up():
    assert to_money("2.675") == Decimal("2.68")
    assert to_money("2.665") == Decimal("2.67")
    assert to_money(Decimal("0.005")) == Decimal("0.01")


def test_to_money_goes_through_str_for_floats():
    assert to_money(0.1) == Decimal("0.10")
    assert to_money(1200) == Decimal("1200.00")


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", True, None])
def test_to_money_rejects_non_amounts(value):
    with pytest.raises(ValueError):
        to_money(value)


def test_sum_lines_is_exact():
    lines = [(3, Decimal("0.10"))] * 10
    assert sum_lines(lines) == Decimal("3.00")
    assert line_total(3, Decimal("19.99")) == Decimal("59.97")


def test_mean_rounds_half_up():
    assert mean(Decimal("10.00"), 3) == Decimal("3.33")
    assert mean(Decimal("0.05"), 2) == Decimal("0.03")
