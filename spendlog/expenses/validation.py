from __future__ import annotations

import datetime as dt
from typing import Any, Iterable, Mapping, Optional

from spendlog.utils.money import to_decimal, to_cents
from spendlog.utils.time import today as _today

DATE_FORMAT = "%Y-%m-%d"


def parse_input_date(value: Any) -> Optional[dt.date]:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    s = str(value or "").strip()
    try:
        return dt.datetime.strptime(s, DATE_FORMAT).date()
    except ValueError:
        return None


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def validate_expense(
    data: Mapping[str, Any],
    categories: Iterable[str],
    *,
    today: Optional[dt.date] = None,
) -> dict[str, str]:
    """
    Check one candidate expense. Returns field -> message for every failing
    field; an empty dict means the input is valid.
    """
    errors: dict[str, str] = {}
    now = today or _today()

    raw_date = data.get("date")
    if _is_blank(raw_date):
        errors["date"] = "Date is required."
    else:
        d = parse_input_date(raw_date)
        if d is None:
            errors["date"] = "Date must be in format YYYY-MM-DD."
        elif d > now:
            errors["date"] = "Date cannot be in the future."

    category = data.get("category")
    if _is_blank(category):
        errors["category"] = "Category must be selected."
    elif category not in set(categories):
        errors["category"] = "Invalid category."

    amount = to_decimal(data.get("amount"))
    if amount is None or amount <= 0:
        errors["amount"] = "Amount must be a number greater than zero."

    if _is_blank(data.get("description")):
        errors["description"] = "Description cannot be empty."

    return errors


def parse_amount_cents(value: Any) -> int:
    return to_cents(value)
