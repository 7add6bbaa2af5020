"""
Public identifier allocation for reservations, contracts and properties.

Tokens are 128-bit random hex strings by default. Allocation checks the
target table before handing a token out; the unique constraint on
``hash_id`` stays as the final backstop.
"""
import logging
import secrets
from typing import Callable, Optional

from sqlalchemy.orm import Session

from staydesk.core.config import settings
from staydesk.core.exceptions import BookingError

logger = logging.getLogger(__name__)


def generate_public_id(nbytes: Optional[int] = None) -> str:
    return secrets.token_hex(nbytes or settings.PUBLIC_ID_BYTES)


def allocate_public_id(
    db: Session,
    model,
    generator: Callable[[], str] = generate_public_id,
    max_attempts: Optional[int] = None,
) -> str:
    """Return a token not yet used as ``model.hash_id``."""
    attempts = max_attempts or settings.PUBLIC_ID_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        candidate = generator()
        taken = db.query(model.id).filter(model.hash_id == candidate).first()
        if taken is None:
            return candidate
        logger.warning(
            f"[IDS] {model.__tablename__} hash_id collision on attempt {attempt}/{attempts}"
        )
    raise BookingError("Could not allocate a unique public identifier", status_code=500)
