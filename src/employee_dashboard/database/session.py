from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from ..extensions import db


@contextmanager
def transaction(session: Optional[Session] = None) -> Iterator[Session]:
    """Unit of work: commit when the block succeeds, roll back and re-raise otherwise.

    Repositories only add/flush; services open exactly one of these per use case.
    """

    session = session or db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
