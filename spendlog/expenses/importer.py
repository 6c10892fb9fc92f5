"""
Transactional CSV bulk import.

Rows are `date, amount, description, category` with no header. Malformed,
duplicate and unknown-category rows are skipped; any other failure rolls the
whole batch back.
"""
from __future__ import annotations

import csv
import datetime as dt
import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator, Sequence

from sqlalchemy.orm import Session

from spendlog.db.models import User
from spendlog.expenses.errors import CsvImportError
from spendlog.expenses.models import ImportResult
from spendlog.utils.money import to_cents

if TYPE_CHECKING:
    from spendlog.expenses.store import ExpenseStore

logger = logging.getLogger(__name__)

ROW_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d")
MAX_WARNINGS = 20


def iter_csv_rows(content: str) -> Iterator[list[str]]:
    """Yield each row's fields exactly as written, unstripped."""
    yield from csv.reader(io.StringIO(content))


def parse_row_date(value: str) -> dt.date:
    s = (value or "").strip()
    for fmt in ROW_DATE_FORMATS:
        try:
            return dt.datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date: {value!r}")


class CsvImportPipeline:
    def __init__(self, store: "ExpenseStore", *, categories: Iterable[str]) -> None:
        self.store = store
        self.categories = set(categories)

    @property
    def session(self) -> Session:
        return self.store.session

    def _warn(self, result: ImportResult, message: str) -> None:
        logger.warning(message)
        if len(result.warnings) < MAX_WARNINGS:
            result.warnings.append(message)

    def run(self, user: User, rows: Iterable[Sequence[str]]) -> ImportResult:
        result = ImportResult()
        seen: set[tuple[str, ...]] = set()
        line_no = 0
        try:
            for line_no, row in enumerate(rows, start=1):
                result.rows_read += 1
                if len(row) < 4:
                    result.malformed_skipped += 1
                    self._warn(result, f"Row {line_no}: expected 4 fields, got {len(row)}; skipped")
                    continue

                key = tuple(row)
                raw_date, raw_amount, description, category = (v.strip() for v in row[:4])
                if key in seen:
                    result.duplicates_skipped += 1
                    self._warn(result, f"Row {line_no}: duplicate of an earlier row; skipped")
                    continue
                if category not in self.categories:
                    result.invalid_category_skipped += 1
                    self._warn(result, f"Row {line_no}: invalid category {category!r}; skipped")
                    continue
                if not description:
                    self._warn(result, f"Row {line_no}: empty description")

                self.store.insert_row(
                    user_id=user.id,
                    date=parse_row_date(raw_date),
                    category=category,
                    amount_cents=to_cents(raw_amount),
                    description=description,
                )
                seen.add(key)
                result.imported += 1
                logger.info("Row %s imported", line_no)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error("CSV import failed at row %s: %s: %s", line_no, type(e).__name__, e)
            raise CsvImportError(f"Import failed at row {line_no}; no rows were imported") from e

        logger.info(
            "CSV import for user %s: %s imported, %s malformed, %s duplicates, %s invalid category",
            user.id,
            result.imported,
            result.malformed_skipped,
            result.duplicates_skipped,
            result.invalid_category_skipped,
        )
        return result


def import_csv_text(
    *,
    session: Session,
    user: User,
    content: str,
    categories: Iterable[str],
) -> ImportResult:
    from spendlog.expenses.store import ExpenseStore

    return CsvImportPipeline(ExpenseStore(session), categories=categories).run(user, iter_csv_rows(content))


def import_csv_file(
    *,
    session: Session,
    user: User,
    file_path: Path,
    categories: Iterable[str],
) -> ImportResult:
    try:
        content = file_path.read_bytes().decode("utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error reading CSV file %s: %s", file_path, e)
        raise CsvImportError(f"Error reading uploaded file: {file_path.name}") from e
    return import_csv_text(session=session, user=user, content=content, categories=categories)
