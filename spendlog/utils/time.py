from __future__ import annotations

import datetime as dt

UTC = dt.timezone.utc


def utcnow() -> dt.datetime:
    return dt.datetime.now(UTC)


def today() -> dt.date:
    return dt.date.today()


def ensure_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def add_months(d: dt.date, months: int) -> dt.date:
    """
    Calendar month arithmetic for first-of-month dates.

    The day is kept, so callers should pass the 1st of a month; the result is
    always a real date because every month has a 1st.
    """
    idx = d.year * 12 + (d.month - 1) + months
    year, month0 = divmod(idx, 12)
    return d.replace(year=year, month=month0 + 1)
