from __future__ import annotations

from fastapi import HTTPException, status

from guestlist.core.errors import ErrorCode, GuestlistError

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_LINK: status.HTTP_404_NOT_FOUND,
    ErrorCode.REGISTRATION_CLOSED: status.HTTP_410_GONE,
    ErrorCode.ALREADY_REGISTERED: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_REVOCABLE: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATUS_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.PROMOTER_INACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorCode.TOKEN_ALLOCATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.EVENT_HAS_COMMITMENTS: status.HTTP_409_CONFLICT,
}


def to_http(exc: GuestlistError) -> HTTPException:
    """Domain error -> HTTPException with a structured, user-safe detail."""
    detail = {"error": exc.code.value, "message": exc.message}
    for key, value in exc.context.items():
        detail.setdefault(key, value)
    return HTTPException(
        status_code=_STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
        detail=detail,
    )
