"""
Typed filter clauses shared by every expense read.

A `Criteria` is an ordered list of (column, operator, value) clauses that the
store ANDs together. The same column may appear more than once with different
operators, which is how half-open date ranges are expressed.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping

EXPENSE_COLUMNS = frozenset({"id", "user_id", "date", "category", "amount_cents", "description"})


class Operator(str, enum.Enum):
    EQ = "="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    NE = "<>"
    LIKE = "LIKE"


_KEY_RE = re.compile(r"^\s*(\w+)\s*(>=|<=|<>|>|<|=|LIKE)?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class Criterion:
    column: str
    operator: Operator
    value: Any


class Criteria:
    def __init__(self, clauses: Iterable[Criterion] = ()) -> None:
        self._clauses: list[Criterion] = []
        for c in clauses:
            self._append(c.column, c.operator, c.value)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Criteria":
        """Build from {"date >=": d, "user_id": 1}; a key without operator means "="."""
        out = cls()
        for key, value in mapping.items():
            m = _KEY_RE.match(key)
            if not m:
                raise ValueError(f"Invalid criteria key: {key!r}")
            op = Operator((m.group(2) or "=").upper())
            out._append(m.group(1), op, value)
        return out

    def _append(self, column: str, operator: Operator | str, value: Any) -> None:
        if column not in EXPENSE_COLUMNS:
            raise ValueError(f"Unknown expense column: {column!r}")
        try:
            op = Operator(operator.upper() if isinstance(operator, str) else operator)
        except ValueError:
            raise ValueError(f"Unsupported operator: {operator!r}") from None
        self._clauses.append(Criterion(column=column, operator=op, value=value))

    def where(self, column: str, operator: Operator | str, value: Any) -> "Criteria":
        self._append(column, operator, value)
        return self

    def eq(self, column: str, value: Any) -> "Criteria":
        return self.where(column, Operator.EQ, value)

    def extend(self, other: "Criteria") -> "Criteria":
        for c in other:
            self._append(c.column, c.operator, c.value)
        return self

    def copy(self) -> "Criteria":
        return Criteria(self._clauses)

    def __iter__(self) -> Iterator[Criterion]:
        return iter(self._clauses)

    def __len__(self) -> int:
        return len(self._clauses)

    def __bool__(self) -> bool:
        return bool(self._clauses)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Criteria):
            return NotImplemented
        return self._clauses == other._clauses

    def __repr__(self) -> str:
        inner = ", ".join(f"{c.column} {c.operator.value} {c.value!r}" for c in self._clauses)
        return f"Criteria({inner})"
