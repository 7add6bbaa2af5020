import logging
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from staydesk.core.security import decode_access_token
from staydesk.database import get_db
from staydesk.models.user import User, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(token: str, db: Session) -> User:
    payload = decode_access_token(token)
    if not payload:
        raise _credentials_exception("Invalid authentication credentials")

    sub = payload.get("sub")
    if sub is None:
        logger.warning("Token missing 'sub' field")
        raise _credentials_exception("Invalid token")

    try:
        user_id = uuid.UUID(str(sub))
    except ValueError:
        logger.warning(f"Token 'sub' is not a user id: {sub}")
        raise _credentials_exception("Invalid token")

    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"User not found in database: {user_id}")
        raise _credentials_exception("User not found")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Authenticated user; 401 when the bearer token is missing or invalid."""
    if credentials is None:
        raise _credentials_exception("Not authenticated")
    return _user_from_token(credentials.credentials, db)


def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but None when no token is sent at all."""
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, db)


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return user
