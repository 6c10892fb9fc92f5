from __future__ import annotations

import json
import os
from decimal import Decimal
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from spendlog.expenses.errors import ConfigError


def _default_budgets() -> dict[str, Decimal]:
    return {
        "Groceries": Decimal("400"),
        "Utilities": Decimal("200"),
        "Transport": Decimal("150"),
        "Entertainment": Decimal("100"),
        "Housing": Decimal("1200"),
        "Health": Decimal("100"),
    }


class ExpensesConfig(BaseModel):
    page_size: int = 20
    budgets: dict[str, Decimal] = Field(default_factory=_default_budgets)
    categories: list[str] = Field(default_factory=list)

    @field_validator("budgets")
    @classmethod
    def _strip_budget_names(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        out: dict[str, Decimal] = {}
        for k, amount in v.items():
            name = " ".join((k or "").strip().split())
            if not name:
                continue
            if amount < 0:
                raise ValueError(f"Budget for {name!r} must not be negative")
            out[name] = amount
        return out

    def allowed_categories(self) -> list[str]:
        if self.categories:
            return list(self.categories)
        return list(self.budgets.keys())


class CategoryBudgets:
    """Read-only category -> monthly budget ceiling (major units)."""

    def __init__(self, budgets: dict[str, Decimal]) -> None:
        self._budgets = dict(budgets)

    @classmethod
    def from_config(cls, cfg: ExpensesConfig) -> "CategoryBudgets":
        return cls(cfg.budgets)

    @classmethod
    def from_json(cls, raw: str) -> "CategoryBudgets":
        return cls(_parse_budgets_json(raw))

    def get_budgets(self) -> dict[str, Decimal]:
        return dict(self._budgets)

    def get_category_budget(self, category: str) -> Optional[Decimal]:
        return self._budgets.get(category)

    def categories(self) -> list[str]:
        return list(self._budgets.keys())

    def __contains__(self, category: object) -> bool:
        return category in self._budgets


def _parse_budgets_json(raw: str) -> dict[str, Decimal]:
    try:
        data = json.loads(raw, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise ConfigError(f"CATEGORY_BUDGETS is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("CATEGORY_BUDGETS must be a JSON object of category -> budget")
    try:
        return ExpensesConfig(budgets=data).budgets
    except ValidationError as e:
        raise ConfigError(f"Invalid CATEGORY_BUDGETS: {e}") from e


def _candidate_paths() -> list[Path]:
    paths = [Path("expenses.yaml")]
    home = Path(os.path.expanduser("~"))
    paths.append(home / ".spendlog" / "expenses.yaml")
    return paths


def _apply_env(cfg: ExpensesConfig) -> ExpensesConfig:
    budgets_raw = os.environ.get("CATEGORY_BUDGETS", "").strip()
    if budgets_raw:
        cfg = cfg.model_copy(update={"budgets": _parse_budgets_json(budgets_raw)})
    categories_raw = os.environ.get("EXPENSE_CATEGORIES", "").strip()
    if categories_raw:
        cats = [c.strip() for c in categories_raw.split(",") if c.strip()]
        cfg = cfg.model_copy(update={"categories": cats})
    return cfg


def load_expenses_config(path: Optional[Path] = None) -> tuple[ExpensesConfig, Optional[str]]:
    candidates = [path] if path is not None else _candidate_paths()
    for p in candidates:
        if p.exists():
            try:
                data = yaml.safe_load(p.read_text()) or {}
                cfg = ExpensesConfig.model_validate(data.get("expenses") or data)
            except (yaml.YAMLError, ValidationError, AttributeError) as e:
                raise ConfigError(f"Invalid expenses config {p}: {e}") from e
            return _apply_env(cfg), str(p)
    return _apply_env(ExpensesConfig()), None
