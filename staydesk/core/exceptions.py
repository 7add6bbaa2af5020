"""
Domain errors raised by the booking services.

Routes never catch these; the handler registered in ``staydesk.main`` turns
them into JSON responses with the status code carried by the error.
"""
from typing import Any, Dict, List, Optional


class BookingError(Exception):
    """Base class for every guard / lookup failure surfaced to API callers."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, **self.extra}


class NotFoundError(BookingError):
    status_code = 404

    def __init__(self, entity: str, message: Optional[str] = None):
        super().__init__(message or f"{entity} not found")
        self.entity = entity


class ConflictError(BookingError):
    """
    An invariant over a shared resource would be violated.

    ``conflicts_key`` names the response field holding the conflicting
    records, e.g. ``conflicting_reservations``.
    """

    def __init__(
        self,
        message: str,
        conflicts: Optional[List[Dict[str, Any]]] = None,
        conflicts_key: str = "conflicts",
    ):
        extra = {conflicts_key: conflicts} if conflicts is not None else {}
        super().__init__(message, extra=extra)
        self.conflicts = conflicts or []


class InvalidStatusError(BookingError):
    def __init__(self, status: Any, allowed: List[str], current: Optional[str] = None):
        extra = {"status": str(status), "allowed_statuses": allowed}
        if current is not None:
            extra["current_status"] = current
        super().__init__("Invalid status", extra=extra)
        self.current = current


class InvalidTransitionError(BookingError):
    def __init__(self, current: str, attempted: str):
        super().__init__(
            f"Invalid status transition from {current} to {attempted}",
            extra={"current_status": current, "attempted_status": attempted},
        )
        self.current = current
        self.attempted = attempted


class IncompleteEntityError(BookingError):
    """Required guest fields are missing while a contract is being finalized."""

    def __init__(self, missing_fields: List[str]):
        first = missing_fields[0]
        super().__init__(
            f"Field {first} cannot be null when contract is being finalized",
            extra={"field": first, "missing_fields": list(missing_fields)},
        )
        self.missing_fields = list(missing_fields)


class ExternalServiceError(BookingError):
    status_code = 502
