from __future__ import annotations

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.api.v1.auth import get_current_user
from guestlist.core.promoters import find_promoter_for_user
from guestlist.db.session import get_db
from guestlist.models.promoter import Promoter
from guestlist.models.user import User


async def require_promoter(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Promoter:
    promoter = await find_promoter_for_user(db, user)
    if promoter is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a promoter")
    if promoter.is_active is not True:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Promoter account is inactive")
    return promoter
