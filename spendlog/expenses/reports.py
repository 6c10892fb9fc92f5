from __future__ import annotations

import csv
from decimal import Decimal
from pathlib import Path
from typing import Sequence

from spendlog.expenses.models import AggregateReport, Expense
from spendlog.utils.money import format_usd


def format_table(rows: Sequence[Sequence[str]], *, headers: Sequence[str]) -> str:
    if not rows:
        return "(no rows)"
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]

    def line(cells: Sequence[str]) -> str:
        # First column left-aligned, the rest are numbers.
        parts = [f"{cells[0]:<{widths[0]}}"] + [f"{c:>{w}}" for c, w in zip(cells[1:], widths[1:])]
        return "  ".join(parts)

    out = [line(headers), line(["-" * w for w in widths])]
    out.extend(line(r) for r in rows)
    return "\n".join(out)


def report_rows(report: AggregateReport) -> list[tuple[str, str, str]]:
    rows = [(cat, format_usd(stat.value), f"{stat.percentage:.2f}%") for cat, stat in report.items()]
    rows.sort(key=lambda r: (-report[r[0]].value, r[0]))
    return rows


def format_report(report: AggregateReport) -> str:
    return format_table(report_rows(report), headers=("Category", "Amount", "Share"))


def format_alerts(alerts: dict[str, Decimal]) -> str:
    rows = [(cat, format_usd(over)) for cat, over in sorted(alerts.items())]
    return format_table(rows, headers=("Category", "Over budget"))


def format_expenses(expenses: Sequence[Expense]) -> str:
    rows = [
        (str(e.id), e.date.isoformat(), e.category, format_usd(e.amount), e.description)
        for e in expenses
    ]
    return format_table(rows, headers=("Id", "Date", "Category", "Amount", "Description"))


def write_csv(report: AggregateReport, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=["category", "value", "percentage"])
        w.writeheader()
        for cat, stat in report.items():
            w.writerow({"category": cat, "value": str(stat.value), "percentage": f"{stat.percentage:.2f}"})
