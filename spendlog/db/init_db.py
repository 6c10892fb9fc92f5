from __future__ import annotations

from spendlog.db.models import Base
from spendlog.db.session import get_engine


def init_db() -> None:
    # Creates missing tables only; there is no migration step.
    Base.metadata.create_all(bind=get_engine())
