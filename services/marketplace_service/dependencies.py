"""Request dependencies resolving the bearer token to a marketplace account."""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.auth.roles import Capability, has_capability
from libs.db.session import get_async_db
from services.marketplace_service.models import User
from sqlalchemy.ext.asyncio import AsyncSession


async def _load_account(db: AsyncSession, claims: AuthUser) -> Optional[User]:
    try:
        user_id = uuid.UUID(claims.user_id)
    except ValueError:
        return None
    return await db.get(User, user_id)


async def get_current_account(
    claims: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
) -> User:
    """Return the authenticated, active user."""
    user = await _load_account(db, claims)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )
    return user


def require_capability(capability: Capability):
    """Dependency factory: the current user's role must grant ``capability``."""

    async def _check(
        user: Annotated[User, Depends(get_current_account)],
    ) -> User:
        if not has_capability(user.role, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role '{user.role.value}' is not authorized to access this route",
            )
        return user

    return _check


CurrentUser = Annotated[User, Depends(get_current_account)]
