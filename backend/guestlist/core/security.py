# guestlist/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from guestlist.core.config import settings

bearer_scheme = HTTPBearer(auto_error=True)

_QUOTES = ("\"", "'")


def _invalid_token() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def clean_bearer_token(raw: Optional[str]) -> str:
    """Tokens pasted by admins often carry quotes or a second 'Bearer ' prefix."""
    token = (raw or "").strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in _QUOTES:
        token = token[1:-1].strip()
    if token[:7].lower() == "bearer ":
        token = token[7:].strip()
    return token


def create_access_token(subject: str, expires_minutes: Optional[int] = None) -> str:
    """Session token issued after a verified magic code; ``sub`` is the user id."""
    issued = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: dict[str, Any] = {
        "sub": str(subject),
        "iss": settings.JWT_ISSUER,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a guestlist session token, or raise 401."""
    token = clean_bearer_token(token)
    if not token:
        raise _invalid_token()

    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            options={"require_sub": True, "require_exp": True, "require_iss": True},
        )
    except JWTError:
        raise _invalid_token()

    subject = claims.get("sub")
    if not subject:
        raise _invalid_token()
    return str(subject)
