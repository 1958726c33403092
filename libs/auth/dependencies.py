from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now

settings = get_settings()
security = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, role: Optional[str] = None) -> str:
    """Issue an HS256 access token whose subject is the user id."""
    expires = utc_now() + timedelta(days=settings.JWT_EXPIRE_DAYS)
    payload = {"sub": str(user_id), "exp": int(expires.timestamp())}
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> AuthUser:
    payload = jwt.decode(
        token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
    )
    return AuthUser(**payload)


async def get_current_user(
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]
) -> AuthUser:
    """
    Validate the bearer JWT and return its claims.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authorized, no token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if token is None:
        raise credentials_exception

    try:
        return decode_access_token(token.credentials)
    except (JWTError, ValidationError):
        credentials_exception.detail = "Not authorized, token failed"
        raise credentials_exception
