from __future__ import annotations

import datetime as dt
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from spendlog.db.models import User
from spendlog.expenses.criteria import Criteria, Operator
from spendlog.expenses.models import AggregateReport, CategoryStat
from spendlog.expenses.store import ExpenseStore
from spendlog.utils.money import from_cents
from spendlog.utils.time import add_months

_ZERO = Decimal("0.00")


def month_bounds(year: int, month: int) -> tuple[dt.date, dt.date]:
    """Half-open [start, end) for a calendar month."""
    if not 1 <= int(month) <= 12:
        raise ValueError(f"Invalid month: {month!r}")
    start = dt.date(int(year), int(month), 1)
    return start, add_months(start, 1)


def compute_window(year: int, month: int) -> Criteria:
    start, end = month_bounds(year, month)
    return Criteria().where("date", Operator.GTE, start).where("date", Operator.LT, end)


def _percentage(value: Decimal, grand_total: Decimal) -> float:
    if grand_total <= 0:
        return 0.0
    pct = (value / grand_total * Decimal("100")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(pct)


def format_report(data: dict[str, int]) -> AggregateReport:
    """Turn category -> cents into category -> {value, percentage}."""
    values = {cat: from_cents(cents) for cat, cents in data.items()}
    grand_total = sum(values.values(), _ZERO)
    return {cat: CategoryStat(value=v, percentage=_percentage(v, grand_total)) for cat, v in values.items()}


class MonthlySummary:
    def __init__(self, store: ExpenseStore) -> None:
        self.store = store

    def compute_parameters(self, user: User, year: int, month: int) -> Criteria:
        return Criteria().eq("user_id", int(user.id)).extend(compute_window(year, month))

    def compute_total_expenditure(self, user: Optional[User], year: int, month: int) -> Decimal:
        if user is None:
            return _ZERO
        return from_cents(self.store.sum_amounts(self.compute_parameters(user, year, month)))

    def _report(
        self,
        fetch: Callable[[Criteria], dict[str, int]],
        user: Optional[User],
        year: int,
        month: int,
    ) -> AggregateReport:
        if user is None:
            return {}
        return format_report(fetch(self.compute_parameters(user, year, month)))

    def compute_per_category_totals(self, user: Optional[User], year: int, month: int) -> AggregateReport:
        return self._report(self.store.sum_amounts_by_category, user, year, month)

    def compute_per_category_averages(self, user: Optional[User], year: int, month: int) -> AggregateReport:
        return self._report(self.store.average_amounts_by_category, user, year, month)
