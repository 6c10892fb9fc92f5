from __future__ import annotations

import logging
import os

import typer

from spendlog.expenses.cli import expenses_app, users_app

app = typer.Typer(help="spendlog: personal expense tracking CLI")
app.add_typer(expenses_app, name="expenses")
app.add_typer(users_app, name="users")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at INFO level")):
    level = "INFO" if verbose else os.environ.get("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


if __name__ == "__main__":
    app()
