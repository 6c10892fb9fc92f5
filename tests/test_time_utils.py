from __future__ import annotations

import datetime as dt

import pytest

from spendlog.db.models import ExpenseRow, User
from spendlog.utils.time import UTC, add_months, ensure_utc


@pytest.mark.parametrize(
    ("start", "months", "expected"),
    [
        (dt.date(2025, 1, 1), 1, dt.date(2025, 2, 1)),
        (dt.date(2025, 12, 1), 1, dt.date(2026, 1, 1)),
        (dt.date(2025, 3, 1), -3, dt.date(2024, 12, 1)),
        (dt.date(2024, 2, 1), 12, dt.date(2025, 2, 1)),
    ],
)
def test_add_months(start: dt.date, months: int, expected: dt.date) -> None:
    assert add_months(start, months) == expected


def test_ensure_utc_converts_offsets() -> None:
    naive = dt.datetime(2025, 6, 1, 12, 0)
    assert ensure_utc(naive) == dt.datetime(2025, 6, 1, 12, 0, tzinfo=UTC)

    plus_two = dt.datetime(2025, 6, 1, 12, 0, tzinfo=dt.timezone(dt.timedelta(hours=2)))
    assert ensure_utc(plus_two) == dt.datetime(2025, 6, 1, 10, 0, tzinfo=UTC)
    assert ensure_utc(plus_two).tzinfo == UTC


def test_created_at_timestamps_are_utc_after_reload(session, user: User) -> None:
    row = ExpenseRow(
        user_id=user.id,
        date=dt.date(2025, 6, 1),
        category="Groceries",
        amount_cents=100,
        description="x",
    )
    session.add(row)
    session.commit()
    session.expire_all()

    reloaded_user = session.get(User, user.id)
    reloaded_row = session.get(ExpenseRow, row.id)
    assert reloaded_user is not None and reloaded_row is not None
    for value in (reloaded_user.created_at, reloaded_row.created_at):
        assert isinstance(value, dt.datetime)
        assert value.tzinfo == UTC
