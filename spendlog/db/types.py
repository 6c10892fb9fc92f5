from __future__ import annotations

import datetime as dt

from sqlalchemy.types import DateTime, TypeDecorator

from spendlog.utils.time import ensure_utc


class UTCDateTime(TypeDecorator):
    """
    Timestamp column that round-trips as tz-aware UTC.

    Values are written naive (SQLite has no timezone support) after conversion
    to UTC; naive values read back are assumed to be UTC.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: dt.datetime | None, dialect):
        if value is None:
            return None
        return ensure_utc(value).replace(tzinfo=None)

    def process_result_value(self, value: dt.datetime | None, dialect):
        if value is None:
            return None
        return ensure_utc(value)
