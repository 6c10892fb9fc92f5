from __future__ import annotations

import datetime as dt
import logging
from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional

from spendlog.db.models import User
from spendlog.expenses.errors import CsvImportError
from spendlog.expenses.importer import CsvImportPipeline, iter_csv_rows
from spendlog.expenses.models import Expense, ExpensePage, Outcome, OutcomeKind
from spendlog.expenses.store import ExpenseStore
from spendlog.expenses.summary import MonthlySummary
from spendlog.expenses.validation import parse_amount_cents, parse_input_date, validate_expense

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class ExpenseService:
    def __init__(self, store: ExpenseStore) -> None:
        self.store = store
        self.summary = MonthlySummary(store)

    @property
    def session(self):
        return self.store.session

    def list(self, user: User, year: int, month: int, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> ExpensePage:
        page_size = max(1, int(page_size))
        criteria = self.summary.compute_parameters(user, year, month)
        total = self.store.count_by(criteria)
        last_page = max(1, -(-total // page_size))
        page = min(max(1, int(page)), last_page)
        items = self.store.find_by(criteria, (page - 1) * page_size, page_size)
        return ExpensePage(items=items, total=total, page=page, page_size=page_size, last_page=last_page)

    def count(self, user: User, year: int, month: int) -> int:
        return self.store.count_by(self.summary.compute_parameters(user, year, month))

    def list_expenditure_years(self, user: User) -> list[int]:
        return self.store.list_expenditure_years(user)

    def find(self, expense_id: int) -> Optional[Expense]:
        return self.store.find(expense_id)

    def find_owned(self, user: User, expense_id: int) -> Outcome:
        expense = self.store.find(expense_id)
        if expense is None:
            return Outcome(OutcomeKind.NOT_FOUND, notice="Expense not found.")
        if expense.user_id != user.id:
            return Outcome(OutcomeKind.NOT_AUTHORIZED, notice="Not authorized to access expense")
        return Outcome(OutcomeKind.OK, expense=expense)

    def create(
        self,
        user: User,
        data: Mapping[str, Any],
        categories: Iterable[str],
        *,
        today: Optional[dt.date] = None,
    ) -> Outcome:
        errors = validate_expense(data, categories, today=today)
        if errors:
            return Outcome(OutcomeKind.INVALID, errors=errors)
        expense = Expense(
            id=None,
            user_id=user.id,
            date=parse_input_date(data["date"]),
            category=str(data["category"]),
            amount_cents=parse_amount_cents(data["amount"]),
            description=str(data["description"]).strip(),
        )
        self.store.save(expense)
        self.session.commit()
        logger.info("User %s created expense %s", user.id, expense.id)
        return Outcome(OutcomeKind.OK, expense=expense, notice="Expense created.")

    def update(
        self,
        user: User,
        expense_id: int,
        data: Mapping[str, Any],
        categories: Iterable[str],
        *,
        today: Optional[dt.date] = None,
    ) -> Outcome:
        found = self.find_owned(user, expense_id)
        if not found.ok:
            return found
        errors = validate_expense(data, categories, today=today)
        if errors:
            return Outcome(OutcomeKind.INVALID, expense=found.expense, errors=errors)
        expense = replace(
            found.expense,
            date=parse_input_date(data["date"]),
            category=str(data["category"]),
            amount_cents=parse_amount_cents(data["amount"]),
            description=str(data["description"]).strip(),
        )
        self.store.save(expense)
        self.session.commit()
        return Outcome(OutcomeKind.OK, expense=expense, notice="Expense updated.")

    def delete(self, user: User, expense_id: int) -> Outcome:
        expense = self.store.find(expense_id)
        if expense is None:
            return Outcome(OutcomeKind.NOT_FOUND, notice="Expense not found.")
        if expense.user_id != user.id:
            logger.warning("User %s tried to delete expense %s owned by another user", user.id, expense_id)
            return Outcome(OutcomeKind.NOT_AUTHORIZED, notice="Not authorized to delete expense")
        self.store.delete(expense.id)
        self.session.commit()
        return Outcome(OutcomeKind.OK, expense=expense, notice="Expense deleted.")

    def import_csv(self, user: User, content: str, categories: Iterable[str]) -> Outcome:
        try:
            result = CsvImportPipeline(self.store, categories=categories).run(user, iter_csv_rows(content))
        except CsvImportError as e:
            return Outcome(OutcomeKind.INVALID, errors={"csv": str(e)}, notice="Error at importing the records.")
        if result.imported > 0:
            notice = f"Successfully imported {result.imported} records."
        else:
            notice = "Error at importing the records."
        return Outcome(OutcomeKind.OK, notice=notice, imported=result.imported)
