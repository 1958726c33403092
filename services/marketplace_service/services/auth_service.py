"""Account registration, password login and OAuth account linking."""

from typing import Optional

from fastapi import HTTPException, status
from libs.auth.dependencies import create_access_token
from libs.auth.roles import RESTRICTED_SIGNUP_ROLES, UserRole
from libs.common.logging import get_logger
from services.marketplace_service.models import User
from services.marketplace_service.schemas import ProfileUpdate, RegisterRequest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

logger = get_logger(__name__)


def _signup_role(role: Optional[UserRole]) -> UserRole:
    if role is None:
        return UserRole.INDIVIDUAL
    if role in RESTRICTED_SIGNUP_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Role '{role.value}' cannot be chosen at registration",
        )
    return role


def _ensure_active(user: User) -> None:
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


def build_auth_response(user: User, message: str) -> dict:
    """Token plus the public user summary returned by every login flow."""
    return {
        "message": message,
        "token": create_access_token(str(user.id), user.role.value),
        "user": user,
    }


async def register_user(db: AsyncSession, *, payload: RegisterRequest) -> User:
    if not payload.privacy_consent:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Privacy consent is required",
        )
    role = _signup_role(payload.role)

    if await get_user_by_email(db, payload.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )

    user = User(
        name=payload.name.strip(),
        email=payload.email.lower(),
        password_hash=generate_password_hash(payload.password),
        role=role,
        provider_type=payload.provider_type,
        phone=payload.phone,
        address=payload.address,
        city=payload.city,
        location=payload.location,
        company_name=payload.company_name,
        privacy_consent=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("Registered user %s with role %s", user.id, user.role.value)
    return user


async def authenticate(db: AsyncSession, *, email: str, password: str) -> User:
    """Check credentials; OAuth-only accounts cannot log in with a password."""
    user = await get_user_by_email(db, email)
    if (
        user is None
        or not user.password_hash
        or not check_password_hash(user.password_hash, password)
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    _ensure_active(user)
    return user


async def login_with_oauth(
    db: AsyncSession,
    *,
    provider: str,
    identity: dict,
    role: Optional[UserRole] = None,
) -> tuple[User, bool]:
    """Find, link or create the account for a verified OAuth identity.

    ``provider`` is ``"google"`` or ``"facebook"``; ``identity`` carries
    provider_id, email, name and picture. Returns ``(user, created)``.
    """
    id_column = User.google_id if provider == "google" else User.facebook_id
    id_attr = "google_id" if provider == "google" else "facebook_id"

    result = await db.execute(select(User).where(id_column == identity["provider_id"]))
    user = result.scalar_one_or_none()

    if user is None:
        if not identity.get("email"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Email permission is required to sign in with {provider.title()}",
            )
        user = await get_user_by_email(db, identity["email"])
        if user is not None:
            # Link the provider to the existing email account
            setattr(user, id_attr, identity["provider_id"])
            if not user.avatar and identity.get("picture"):
                user.avatar = identity["picture"]
            logger.info("Linked %s login to user %s", provider, user.id)

    created = False
    if user is None:
        user = User(
            name=identity["name"],
            email=identity["email"].lower(),
            role=_signup_role(role),
            avatar=identity.get("picture"),
            privacy_consent=True,
            is_verified=False,
        )
        setattr(user, id_attr, identity["provider_id"])
        db.add(user)
        created = True

    _ensure_active(user)
    await db.commit()
    await db.refresh(user)

    if created:
        logger.info("Created user %s from %s login", user.id, provider)
    return user, created


async def update_profile(db: AsyncSession, *, user: User, payload: ProfileUpdate) -> User:
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    logger.info("User %s updated their profile", user.id)
    return user
