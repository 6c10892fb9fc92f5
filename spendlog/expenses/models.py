from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from spendlog.utils.money import from_cents


@dataclass
class Expense:
    id: Optional[int]
    user_id: int
    date: dt.date
    category: str
    amount_cents: int
    description: str

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)


class CategoryStat(BaseModel):
    value: Decimal  # major units
    percentage: float


AggregateReport = dict[str, CategoryStat]


class ImportResult(BaseModel):
    imported: int = 0
    rows_read: int = 0
    malformed_skipped: int = 0
    duplicates_skipped: int = 0
    invalid_category_skipped: int = 0
    warnings: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class ExpensePage:
    items: list[Expense]
    total: int
    page: int
    page_size: int
    last_page: int

    @property
    def first_index(self) -> int:
        if self.total == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        return min(self.page * self.page_size, self.total)


class OutcomeKind(str, enum.Enum):
    OK = "OK"
    INVALID = "INVALID"
    NOT_FOUND = "NOT_FOUND"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    expense: Optional[Expense] = None
    errors: dict[str, str] = field(default_factory=dict)
    notice: Optional[str] = None
    imported: int = 0

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.OK
