"""
Persistence boundary for expenses.

Every read goes through `build_conditions`, so listing, counting, summing and
grouped aggregation all filter the same way. Writes only flush; the caller
owns commit/rollback.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import desc, extract, func
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from spendlog.db.models import ExpenseRow, User
from spendlog.expenses.criteria import Criteria, Criterion, Operator
from spendlog.expenses.models import Expense
from spendlog.utils.money import round_cents

logger = logging.getLogger(__name__)


def _coerce_value(column: str, value: Any) -> Any:
    if column == "date" and isinstance(value, dt.datetime):
        return value.date()
    return value


def _condition(c: Criterion) -> ColumnElement[bool]:
    col = getattr(ExpenseRow, c.column)
    v = _coerce_value(c.column, c.value)
    if c.operator is Operator.EQ:
        return col == v
    if c.operator is Operator.NE:
        return col != v
    if c.operator is Operator.GT:
        return col > v
    if c.operator is Operator.LT:
        return col < v
    if c.operator is Operator.GTE:
        return col >= v
    if c.operator is Operator.LTE:
        return col <= v
    if c.operator is Operator.LIKE:
        return col.like(v)
    raise ValueError(f"Unsupported operator: {c.operator!r}")


def build_conditions(criteria: Optional[Criteria]) -> list[ColumnElement[bool]]:
    # Values are always bound parameters; SQLAlchemy names them per clause,
    # so repeated columns (date >= / date <) never collide.
    return [_condition(c) for c in (criteria or ())]


def to_expense(row: ExpenseRow) -> Expense:
    return Expense(
        id=row.id,
        user_id=row.user_id,
        date=row.date,
        category=row.category,
        amount_cents=int(row.amount_cents),
        description=row.description,
    )


class ExpenseStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, expense: Expense) -> Expense:
        if expense.id is None:
            expense.id = self.insert_row(
                user_id=expense.user_id,
                date=expense.date,
                category=expense.category,
                amount_cents=expense.amount_cents,
                description=expense.description,
            )
            return expense
        row = self.session.query(ExpenseRow).filter(ExpenseRow.id == int(expense.id)).one_or_none()
        if row is None:
            logger.warning("Expense %s no longer exists; update skipped", expense.id)
            return expense
        row.user_id = int(expense.user_id)
        row.date = expense.date
        row.category = expense.category
        row.amount_cents = int(expense.amount_cents)
        row.description = expense.description
        self.session.flush()
        return expense

    def insert_row(
        self,
        *,
        user_id: int,
        date: dt.date,
        category: str,
        amount_cents: int,
        description: str,
    ) -> int:
        row = ExpenseRow(
            user_id=int(user_id),
            date=date,
            category=category,
            amount_cents=int(amount_cents),
            description=description,
        )
        self.session.add(row)
        self.session.flush()
        return row.id

    def delete(self, expense_id: int) -> None:
        self.session.query(ExpenseRow).filter(ExpenseRow.id == int(expense_id)).delete()
        self.session.flush()

    def find(self, expense_id: int) -> Optional[Expense]:
        row = self.session.query(ExpenseRow).filter(ExpenseRow.id == int(expense_id)).one_or_none()
        return to_expense(row) if row is not None else None

    def find_by(self, criteria: Criteria, offset: int = 0, limit: Optional[int] = None) -> list[Expense]:
        q = self.session.query(ExpenseRow).filter(*build_conditions(criteria)).order_by(ExpenseRow.id.asc())
        if offset:
            q = q.offset(max(0, int(offset)))
        if limit is not None:
            q = q.limit(max(0, int(limit)))
        return [to_expense(r) for r in q.all()]

    def count_by(self, criteria: Criteria) -> int:
        n = self.session.query(func.count(ExpenseRow.id)).filter(*build_conditions(criteria)).scalar()
        return int(n or 0)

    def sum_amounts(self, criteria: Criteria) -> int:
        total = (
            self.session.query(func.coalesce(func.sum(ExpenseRow.amount_cents), 0))
            .filter(*build_conditions(criteria))
            .scalar()
        )
        return int(total or 0)

    def _grouped(self, agg, criteria: Criteria) -> list[tuple[str, Any]]:
        return (
            self.session.query(ExpenseRow.category, agg(ExpenseRow.amount_cents))
            .filter(*build_conditions(criteria))
            .group_by(ExpenseRow.category)
            .order_by(ExpenseRow.category.asc())
            .all()
        )

    def sum_amounts_by_category(self, criteria: Criteria) -> dict[str, int]:
        return {str(cat): int(v or 0) for cat, v in self._grouped(func.sum, criteria)}

    def average_amounts_by_category(self, criteria: Criteria) -> dict[str, int]:
        return {str(cat): round_cents(v or 0) for cat, v in self._grouped(func.avg, criteria)}

    def list_expenditure_years(self, user: User) -> list[int]:
        year = extract("year", ExpenseRow.date).label("year")
        rows = (
            self.session.query(year)
            .filter(ExpenseRow.user_id == int(user.id))
            .distinct()
            .order_by(desc("year"))
            .all()
        )
        return [int(r[0]) for r in rows]

    def import_csv_rows(self, user: User, rows: Iterable[Sequence[str]], categories: Iterable[str]) -> int:
        from spendlog.expenses.importer import CsvImportPipeline

        return CsvImportPipeline(self, categories=categories).run(user, rows).imported
