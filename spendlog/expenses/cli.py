from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from sqlalchemy.orm import Session

from spendlog.db.init_db import init_db
from spendlog.db.models import User
from spendlog.db.session import get_session
from spendlog.expenses.alerts import AlertGenerator
from spendlog.expenses.config import CategoryBudgets, ExpensesConfig, load_expenses_config
from spendlog.expenses.errors import ConfigError, CsvImportError, UserAlreadyExistsError
from spendlog.expenses.importer import import_csv_file
from spendlog.expenses.models import OutcomeKind
from spendlog.expenses.reports import format_alerts, format_expenses, format_report, write_csv
from spendlog.expenses.service import ExpenseService
from spendlog.expenses.store import ExpenseStore
from spendlog.expenses.summary import MonthlySummary
from spendlog.expenses.users import find_user_by_username, register_user

expenses_app = typer.Typer(help="Expenses: add, list, delete, import, summary.")
users_app = typer.Typer(help="Manage users.")


def _setup() -> ExpensesConfig:
    load_dotenv()
    try:
        cfg, cfg_path = load_expenses_config()
    except ConfigError as e:
        typer.echo(f"Config error: {e}", err=True)
        raise typer.Exit(code=1)
    if cfg_path:
        typer.echo(f"Using config: {cfg_path}", err=True)
    init_db()
    return cfg


def _require_user(session: Session, username: str) -> User:
    user = find_user_by_username(session, username)
    if user is None:
        typer.echo(f"Unknown user: {username}", err=True)
        raise typer.Exit(code=2)
    return user


def _year_month(year: int, month: int) -> tuple[int, int]:
    now = dt.date.today()
    y = int(year) or now.year
    m = int(month) or now.month
    if not 1 <= m <= 12:
        raise typer.BadParameter("month must be 1-12")
    return y, m


@users_app.command("add")
def users_add_cmd(
    username: str = typer.Argument(...),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    _setup()
    with get_session() as session:
        try:
            user = register_user(session, username=username, password=password)
        except (UserAlreadyExistsError, ValueError) as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(code=2)
        session.commit()
        typer.echo(json.dumps({"id": user.id, "username": user.username}, indent=2))


@expenses_app.command("add")
def add_cmd(
    user: str = typer.Option(..., "--user", help="Username"),
    date: str = typer.Option(..., help="YYYY-MM-DD"),
    amount: str = typer.Option(..., help="Amount in major units, e.g. 12.30"),
    category: str = typer.Option(...),
    description: str = typer.Option(...),
):
    cfg = _setup()
    with get_session() as session:
        u = _require_user(session, user)
        outcome = ExpenseService(ExpenseStore(session)).create(
            u,
            {"date": date, "amount": amount, "category": category, "description": description},
            cfg.allowed_categories(),
        )
    if outcome.kind is OutcomeKind.INVALID:
        typer.echo(json.dumps({"errors": outcome.errors}, indent=2), err=True)
        raise typer.Exit(code=2)
    typer.echo(json.dumps({"id": outcome.expense.id, "amount_cents": outcome.expense.amount_cents}, indent=2))


@expenses_app.command("list")
def list_cmd(
    user: str = typer.Option(..., "--user", help="Username"),
    year: int = typer.Option(0, help="Defaults to the current year"),
    month: int = typer.Option(0, help="1-12, defaults to the current month"),
    page: int = typer.Option(1),
    page_size: int = typer.Option(0, help="Defaults to the configured page size"),
):
    cfg = _setup()
    y, m = _year_month(year, month)
    with get_session() as session:
        u = _require_user(session, user)
        p = ExpenseService(ExpenseStore(session)).list(u, y, m, page, page_size or cfg.page_size)
    typer.echo(format_expenses(p.items))
    typer.echo(f"\n{p.first_index}-{p.last_index} of {p.total} (page {p.page}/{p.last_page})")


@expenses_app.command("delete")
def delete_cmd(
    expense_id: int = typer.Argument(...),
    user: str = typer.Option(..., "--user", help="Username"),
):
    _setup()
    with get_session() as session:
        u = _require_user(session, user)
        outcome = ExpenseService(ExpenseStore(session)).delete(u, expense_id)
    typer.echo(outcome.notice or "")
    if not outcome.ok:
        raise typer.Exit(code=2)


@expenses_app.command("years")
def years_cmd(user: str = typer.Option(..., "--user", help="Username")):
    _setup()
    with get_session() as session:
        u = _require_user(session, user)
        years = ExpenseStore(session).list_expenditure_years(u)
    typer.echo(json.dumps(years))


@expenses_app.command("import")
def import_cmd(
    file: Path = typer.Option(..., exists=True, dir_okay=False, help="CSV file: date,amount,description,category"),
    user: str = typer.Option(..., "--user", help="Username"),
):
    cfg = _setup()
    with get_session() as session:
        u = _require_user(session, user)
        try:
            res = import_csv_file(session=session, user=u, file_path=file, categories=cfg.budgets.keys())
        except CsvImportError as e:
            typer.echo(f"Import failed: {e}", err=True)
            raise typer.Exit(code=1)
    typer.echo(json.dumps(res.model_dump(mode="json"), indent=2))
    if res.imported == 0:
        typer.echo("Nothing imported.", err=True)


@expenses_app.command("summary")
def summary_cmd(
    user: str = typer.Option(..., "--user", help="Username"),
    year: int = typer.Option(0, help="Defaults to the current year"),
    month: int = typer.Option(0, help="1-12, defaults to the current month"),
    out: Optional[Path] = typer.Option(None, help="Output directory for CSV"),
):
    cfg = _setup()
    y, m = _year_month(year, month)
    with get_session() as session:
        u = _require_user(session, user)
        summary = MonthlySummary(ExpenseStore(session))
        total = summary.compute_total_expenditure(u, y, m)
        totals = summary.compute_per_category_totals(u, y, m)
        averages = summary.compute_per_category_averages(u, y, m)
        alerts = AlertGenerator(CategoryBudgets.from_config(cfg), summary).generate(u, y, m)

    scope = f"{y}-{m:02d}"
    typer.echo(f"Total for {scope}: {total}")
    typer.echo("\nTotals by category\n" + format_report(totals))
    typer.echo("\nAverages by category\n" + format_report(averages))
    if alerts:
        typer.echo("\nOver budget\n" + format_alerts(alerts))

    if out:
        write_csv(totals, out / f"expenses_{scope}_totals.csv")
        write_csv(averages, out / f"expenses_{scope}_averages.csv")
        typer.echo(f"Wrote outputs to {out}")
