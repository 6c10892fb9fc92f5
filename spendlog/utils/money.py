from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENTS = Decimal("100")


def to_decimal(value: Any, *, thousands: bool = False) -> Decimal | None:
    """
    Parse a finite Decimal or return None.

    Thousands separators ("1,234.50") are only accepted with `thousands=True`;
    otherwise a comma makes the value non-numeric.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        d = Decimal(str(value))
    else:
        s = str(value).strip()
        if not s:
            return None
        if thousands:
            s = s.replace(",", "")
        try:
            d = Decimal(s)
        except InvalidOperation:
            return None
    return d if d.is_finite() else None


def parse_decimal(value: Any) -> Decimal:
    d = to_decimal(value)
    if d is None:
        raise ValueError(f"Invalid amount: {value!r}")
    return d


def to_cents(value: Any) -> int:
    """
    Convert a major-unit amount ("12.30", 12.3, Decimal) to integer minor units.

    Rounds half away from zero: 0.005 -> 1, -0.005 -> -1.
    """
    d = parse_decimal(value)
    return int((d * CENTS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_cents(value: Any) -> int:
    """Round an already-in-cents value (e.g. a SQL AVG) to an integer."""
    d = parse_decimal(value)
    return int(d.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(int(cents)) / CENTS).quantize(Decimal("0.01"))


def money_2dp(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_usd(value: Any, digits: int = 2, dash: str = "—") -> str:
    """
    USD formatter for CLI tables.

    - `None` -> em dash
    - numeric -> "$1,234.56" (or "$1,235" if digits=0)
    - non-numeric string -> returned as-is
    """
    d = to_decimal(value, thousands=True)
    if d is None:
        if value is None:
            return dash
        s = str(value).strip()
        return s if s else dash

    digits = max(0, int(digits))
    q = Decimal(1) if digits == 0 else Decimal("1").scaleb(-digits)
    d = d.quantize(q, rounding=ROUND_HALF_UP)

    sign = "-" if d < 0 else ""
    d_abs = -d if d < 0 else d
    return f"{sign}${d_abs:,.{digits}f}"
