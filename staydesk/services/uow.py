"""
Unit of work helper.

Every guarded write runs its check and its write inside one of these blocks,
so a failed guard or a failed cascade leaves nothing behind.
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
