from __future__ import annotations

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.api.v1.auth import get_current_user
from guestlist.db.session import get_db
from guestlist.models.user import User
from guestlist.models.user_role import ROLE_ADMIN, UserRole


async def require_admin(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> User:
    membership = (
        await db.execute(select(UserRole).where(UserRole.user_id == user.id))
    ).scalar_one_or_none()
    if not membership or not membership.is_active or (membership.role or "").strip().lower() != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient role: admin required",
        )
    return user
