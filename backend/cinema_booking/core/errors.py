"""
Fault taxonomy for the booking core.

Every fault is an HTTPException so the services can raise them directly and
FastAPI renders them without extra handlers. The body always has the shape:

    {"detail": {"kind": "...", "message": "...", ...}}
"""

from typing import Iterable, Optional

from fastapi import HTTPException, status


class BookingFault(HTTPException):
    kind = "error"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **extra):
        self.message = message
        detail = {"kind": self.kind, "message": message}
        detail.update({k: v for k, v in extra.items() if v is not None})
        super().__init__(status_code=self.status_code_default, detail=detail)

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ValidationFault(BookingFault):
    """Malformed ticket or seat outside the hall. Raised before any write."""

    kind = "validation"
    status_code_default = status.HTTP_400_BAD_REQUEST


class NotFoundFault(BookingFault):
    kind = "not_found"
    status_code_default = status.HTTP_404_NOT_FOUND


class ConflictFault(BookingFault):
    """
    Seats already taken, detected at pre-check or at commit.

    ``committed_sessions`` lists the screenings of the same order whose
    reservations were already written when this fault was raised. Those are
    not rolled back.
    """

    kind = "conflict"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(
        self,
        message: str,
        seats: Iterable[str] = (),
        session: Optional[str] = None,
        committed_sessions: Iterable[str] = (),
    ):
        self.seats = list(seats)
        self.session = session
        self.committed_sessions = list(committed_sessions)
        super().__init__(
            message,
            seats=self.seats,
            session=session,
            committed_sessions=self.committed_sessions or None,
        )


class StoreFault(BookingFault):
    """Storage failure unrelated to seat conflicts (connectivity, schema)."""

    kind = "store"
    status_code_default = status.HTTP_503_SERVICE_UNAVAILABLE
