from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from spendlog.db.models import ExpenseRow, User
from spendlog.expenses.errors import CsvImportError
from spendlog.expenses.importer import CsvImportPipeline, import_csv_file, import_csv_text, iter_csv_rows
from spendlog.expenses.store import ExpenseStore

CATEGORIES = ["Groceries", "Transport", "Utilities"]


def test_duplicate_rows_in_same_file_are_imported_once(session: Session, user: User) -> None:
    content = (
        "2025-01-02 00:00:00,12.50,Lunch,Groceries\n"
        "2025-01-03 00:00:00,3.20,Bus,Transport\n"
        "2025-01-02 00:00:00,12.50,Lunch,Groceries\n"
    )
    res = import_csv_text(session=session, user=user, content=content, categories=CATEGORIES)
    assert res.imported == 2
    assert res.duplicates_skipped == 1
    rows = session.query(ExpenseRow).order_by(ExpenseRow.id).all()
    assert [(r.date, r.amount_cents, r.description, r.category) for r in rows] == [
        (dt.date(2025, 1, 2), 1250, "Lunch", "Groceries"),
        (dt.date(2025, 1, 3), 320, "Bus", "Transport"),
    ]
    assert all(r.user_id == user.id for r in rows)


def test_store_import_returns_committed_count(session: Session, user: User) -> None:
    rows = [
        ["2025-01-02 00:00:00", "12.50", "Lunch", "Groceries"],
        ["2025-01-02 00:00:00", "12.50", "Lunch", "Groceries"],
    ]
    assert ExpenseStore(session).import_csv_rows(user, rows, CATEGORIES) == 1
    assert session.query(ExpenseRow).count() == 1


def test_unknown_category_and_malformed_rows_are_skipped(session: Session, user: User) -> None:
    content = (
        "2025-01-02 00:00:00,12.50,Lunch,Groceries\n"
        "2025-01-02 00:00:00,99.00,Casino,Gambling\n"
        "2025-01-04 00:00:00,5.00,Only three\n"
        "\n"
        "2025-01-05 00:00:00,7.005,Bus,Transport\n"
    )
    res = import_csv_text(session=session, user=user, content=content, categories=CATEGORIES)
    assert res.imported == 2
    assert res.invalid_category_skipped == 1
    assert res.malformed_skipped == 2
    assert len(res.warnings) == 3
    amounts = sorted(r.amount_cents for r in session.query(ExpenseRow).all())
    assert amounts == [701, 1250]


def test_reimporting_same_file_is_not_deduplicated_against_storage(session: Session, user: User) -> None:
    content = "2025-01-02 00:00:00,12.50,Lunch,Groceries\n"
    import_csv_text(session=session, user=user, content=content, categories=CATEGORIES)
    import_csv_text(session=session, user=user, content=content, categories=CATEGORIES)
    assert session.query(ExpenseRow).count() == 2


def test_insert_failure_rolls_back_whole_batch(session: Session, user: User, monkeypatch: pytest.MonkeyPatch) -> None:
    store = ExpenseStore(session)
    real_insert = store.insert_row
    calls = {"n": 0}

    def flaky_insert(**kwargs):
        calls["n"] += 1
        if calls["n"] == 3:
            raise RuntimeError("disk full")
        return real_insert(**kwargs)

    monkeypatch.setattr(store, "insert_row", flaky_insert)
    rows = [[f"2025-01-0{d} 00:00:00", "1.00", f"Item {d}", "Groceries"] for d in range(1, 6)]

    with pytest.raises(CsvImportError):
        CsvImportPipeline(store, categories=CATEGORIES).run(user, rows)
    assert calls["n"] == 3
    assert session.query(ExpenseRow).count() == 0


def test_unparseable_date_aborts_import(session: Session, user: User) -> None:
    content = (
        "2025-01-02 00:00:00,12.50,Lunch,Groceries\n"
        "02/01/2025,3.00,Bus,Transport\n"
    )
    with pytest.raises(CsvImportError):
        import_csv_text(session=session, user=user, content=content, categories=CATEGORIES)
    assert session.query(ExpenseRow).count() == 0


def test_nothing_imported_is_not_an_error(session: Session, user: User) -> None:
    res = import_csv_text(session=session, user=user, content="2025-01-02,1.00,x,Nope\n", categories=CATEGORIES)
    assert res.imported == 0
    assert res.rows_read == 1


def test_import_csv_file_with_bom(tmp_path: Path, session: Session, user: User) -> None:
    p = tmp_path / "expenses.csv"
    p.write_bytes("\ufeff2025-03-01 10:30:00,4.99,\"Coffee, large\",Groceries\n".encode("utf-8"))
    res = import_csv_file(session=session, user=user, file_path=p, categories=CATEGORIES)
    assert res.imported == 1
    row = session.query(ExpenseRow).one()
    assert row.description == "Coffee, large"
    assert row.date == dt.date(2025, 3, 1)


def test_import_csv_file_missing_raises(tmp_path: Path, session: Session, user: User) -> None:
    with pytest.raises(CsvImportError):
        import_csv_file(session=session, user=user, file_path=tmp_path / "nope.csv", categories=CATEGORIES)


def test_rows_differing_only_in_whitespace_are_not_duplicates(session: Session, user: User) -> None:
    content = (
        "2025-01-02,12.50,Lunch,Groceries\n"
        "2025-01-02,12.50, Lunch ,Groceries\n"
        " 2025-01-02 , 12.50 ,Lunch, Groceries \n"
        "2025-01-02,12.50,Lunch,Groceries\n"
    )
    assert list(iter_csv_rows(content))[1] == ["2025-01-02", "12.50", " Lunch ", "Groceries"]
    res = import_csv_text(session=session, user=user, content=content, categories=CATEGORIES)
    assert (res.imported, res.duplicates_skipped) == (3, 1)
    rows = session.query(ExpenseRow).all()
    assert {(r.date, r.amount_cents, r.description, r.category) for r in rows} == {
        (dt.date(2025, 1, 2), 1250, "Lunch", "Groceries"),
    }


def test_duplicate_key_covers_every_field(session: Session, user: User) -> None:
    content = (
        "2025-01-02,12.50,Lunch,Groceries,card\n"
        "2025-01-02,12.50,Lunch,Groceries,cash\n"
        "2025-01-02,12.50,Lunch,Groceries,card\n"
    )
    res = import_csv_text(session=session, user=user, content=content, categories=CATEGORIES)
    assert (res.imported, res.duplicates_skipped) == (2, 1)
