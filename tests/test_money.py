from __future__ import annotations

from decimal import Decimal

import pytest

from spendlog.utils.money import format_usd, from_cents, round_cents, to_cents, to_decimal


def test_to_cents_rounds_half_away_from_zero() -> None:
    assert to_cents("12.30") == 1230
    assert to_cents(12.3) == 1230
    assert to_cents(Decimal("0.005")) == 1
    assert to_cents("-0.005") == -1
    assert to_cents(7) == 700


def test_to_cents_rejects_non_numeric() -> None:
    with pytest.raises(ValueError):
        to_cents("abc")
    with pytest.raises(ValueError):
        to_cents("")
    with pytest.raises(ValueError):
        to_cents("1,5")
    for bad in (float("nan"), float("inf"), Decimal("NaN"), Decimal("-Infinity"), "inf"):
        with pytest.raises(ValueError):
            to_cents(bad)


def test_round_cents_and_from_cents() -> None:
    assert round_cents(100.5) == 101
    assert round_cents(Decimal("100.49")) == 100
    assert from_cents(1230) == Decimal("12.30")
    assert from_cents(0) == Decimal("0.00")


def test_format_usd() -> None:
    assert format_usd(Decimal("1234.5")) == "$1,234.50"
    assert format_usd(Decimal("-3")) == "-$3.00"
    assert format_usd(None) == "—"
    assert format_usd("1,234.5") == "$1,234.50"


def test_to_decimal_rejects_non_finite_and_commas() -> None:
    assert to_decimal(float("nan")) is None
    assert to_decimal(float("-inf")) is None
    assert to_decimal(Decimal("sNaN")) is None
    assert to_decimal("1,5") is None
    assert to_decimal("1,5", thousands=True) == Decimal("15")
    assert to_decimal(2.5) == Decimal("2.5")
