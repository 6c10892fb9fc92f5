from __future__ import annotations

from decimal import Decimal
from typing import Optional

from spendlog.db.models import User
from spendlog.expenses.config import CategoryBudgets
from spendlog.expenses.summary import MonthlySummary
from spendlog.utils.money import money_2dp


class AlertGenerator:
    def __init__(self, budgets: CategoryBudgets, summary: MonthlySummary) -> None:
        self.budgets = budgets
        self.summary = summary

    def generate(self, user: Optional[User], year: int, month: int) -> dict[str, Decimal]:
        """Category -> amount spent over budget, for categories that have a budget."""
        totals = self.summary.compute_per_category_totals(user, year, month)
        alerts: dict[str, Decimal] = {}
        for category, budget in self.budgets.get_budgets().items():
            stat = totals.get(category)
            if stat is None:
                continue
            spent = stat.value
            if spent > budget and spent > 0:
                alerts[category] = money_2dp(spent - budget)
        return alerts
