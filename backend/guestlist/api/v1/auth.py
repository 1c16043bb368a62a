# backend/guestlist/api/v1/auth.py
from __future__ import annotations

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.core.config import settings
from guestlist.core.security import bearer_scheme, create_access_token, decode_access_token
from guestlist.db.session import get_db
from guestlist.models.promoter import Promoter
from guestlist.models.user import User
from guestlist.models.user_role import UserRole
from guestlist.schemas.auth import MagicCodeRequest, MagicCodeVerify, MeResponse, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MAGIC_CODE_EXPIRY_MINUTES = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _should_return_magic_code_in_response() -> bool:
    """
    Never return the OTP in production responses; elsewhere it is returned
    to simplify Swagger testing.
    """
    env = (settings.ENVIRONMENT or "").lower()
    return env not in {"prod", "production", "staging"}


async def purge_expired_magic_codes(db: AsyncSession) -> None:
    stmt = (
        update(User)
        .where(User.magic_code_expires_at.is_not(None))
        .where(User.magic_code_expires_at < _utcnow())
        .values(magic_code=None, magic_code_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(stmt)


@router.post("/request-code")
async def request_code(payload: MagicCodeRequest, db: AsyncSession = Depends(get_db)):
    """
    Body: {"email": "user@example.com"}
    Generates a magic code (stored on user record).
    """
    email = User.normalize_email(str(payload.email))

    await purge_expired_magic_codes(db)

    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is None:
        user = User(email=email, is_active=True)
        db.add(user)
        await db.flush()

    code = str(secrets.randbelow(900000) + 100000)  # 6 digits
    user.magic_code = code
    user.magic_code_expires_at = _utcnow() + timedelta(minutes=MAGIC_CODE_EXPIRY_MINUTES)

    await db.commit()

    resp = {"status": "ok", "expires_in_minutes": MAGIC_CODE_EXPIRY_MINUTES}
    if _should_return_magic_code_in_response():
        resp["code"] = code
    return resp


@router.post("/verify-code", response_model=TokenResponse)
async def verify_code(payload: MagicCodeVerify, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """
    Body: {"email":"user@example.com","code":"123456"}
    Returns: access_token
    """
    email = User.normalize_email(str(payload.email))
    code = payload.code.strip()

    if not code:
        raise HTTPException(status_code=400, detail="code is required")

    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    if not user or not user.magic_code or not user.magic_code_expires_at:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    if not secrets.compare_digest(user.magic_code, code):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    expires_at = user.magic_code_expires_at
    if expires_at.tzinfo is None:
        # SQLite hands back naive datetimes
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < _utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Code expired")

    # One-time use
    user.magic_code = None
    user.magic_code_expires_at = None
    await db.commit()

    logger.info("User %s signed in", user.id)
    return TokenResponse(access_token=create_access_token(subject=str(user.id)))


async def get_current_user(
    credentials=Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency for protected endpoints.
    """
    user_id = decode_access_token(credentials.credentials)

    try:
        user_uuid = uuid.UUID(str(user_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")

    user = await db.get(User, user_uuid)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive")

    return user


@router.get("/me", response_model=MeResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> MeResponse:
    role = (
        await db.execute(
            select(UserRole.role).where(UserRole.user_id == user.id, UserRole.is_active.is_(True))
        )
    ).scalar_one_or_none()
    promoter_id = (
        await db.execute(select(Promoter.id).where(Promoter.user_id == user.id))
    ).scalar_one_or_none()

    return MeResponse(
        id=str(user.id),
        email=user.email,
        is_active=user.is_active,
        full_name=user.full_name,
        role=role,
        promoter_id=str(promoter_id) if promoter_id else None,
    )
