"""Domain error codes raised by the guestlist core.

Routers translate these into HTTP responses; see guestlist.api.errors.
"""

from __future__ import annotations

import enum


class ErrorCode(str, enum.Enum):
    INVALID_LINK = "INVALID_LINK"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    NOT_FOUND = "NOT_FOUND"
    NOT_REVOCABLE = "NOT_REVOCABLE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    PROMOTER_INACTIVE = "PROMOTER_INACTIVE"
    TOKEN_ALLOCATION_FAILED = "TOKEN_ALLOCATION_FAILED"
    EVENT_HAS_COMMITMENTS = "EVENT_HAS_COMMITMENTS"


class GuestlistError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.NOT_FOUND
    message: str = "Not found"

    def __init__(self, message: str | None = None, **context) -> None:
        self.message = message or self.message
        self.context = context
        super().__init__(f"{self.code.value}: {self.message}")


class InvalidLinkError(GuestlistError):
    code = ErrorCode.INVALID_LINK
    message = "This guestlist link is invalid or has expired."


class RegistrationClosedError(GuestlistError):
    code = ErrorCode.REGISTRATION_CLOSED
    message = "Registration for this event has ended."


class AlreadyRegisteredError(GuestlistError):
    code = ErrorCode.ALREADY_REGISTERED
    message = "You're already registered for this event!"


class NotFoundError(GuestlistError):
    code = ErrorCode.NOT_FOUND
    message = "Not found"


class NotRevocableError(GuestlistError):
    code = ErrorCode.NOT_REVOCABLE
    message = "Only pending commissions can be revoked."


class InvalidStatusTransitionError(GuestlistError):
    code = ErrorCode.INVALID_STATUS_TRANSITION
    message = "Status transition is not allowed."


class PromoterInactiveError(GuestlistError):
    code = ErrorCode.PROMOTER_INACTIVE
    message = "Promoter account is inactive"


class TokenAllocationError(GuestlistError):
    code = ErrorCode.TOKEN_ALLOCATION_FAILED
    message = "Could not allocate unique QR code identifier"


class EventHasCommitmentsError(GuestlistError):
    code = ErrorCode.EVENT_HAS_COMMITMENTS
    message = "Event has approved or paid commissions and cannot be deleted."
