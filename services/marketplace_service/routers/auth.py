"""Auth router: registration, password login, OAuth login, profile."""

from fastapi import APIRouter, Depends, Request, Response, status
from libs.common.oauth import verify_facebook_access_token, verify_google_id_token
from libs.common.rate_limit import auth_limit
from libs.db.session import get_async_db
from services.marketplace_service.dependencies import CurrentUser
from services.marketplace_service.schemas import (
    AuthResponse,
    FacebookLoginRequest,
    GoogleLoginRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserResponse,
)
from services.marketplace_service.services import auth_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["auth"])


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
@auth_limit
async def register(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Create an account and return an access token."""
    user = await auth_service.register_user(db, payload=payload)
    return auth_service.build_auth_response(user, "User created successfully")


@router.post("/login", response_model=AuthResponse)
@auth_limit
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    user = await auth_service.authenticate(
        db, email=payload.email, password=payload.password
    )
    return auth_service.build_auth_response(user, "Login successful")


@router.post("/google", response_model=AuthResponse)
async def google_login(
    payload: GoogleLoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
):
    """Sign in with a Google ID token, creating the account on first use."""
    identity = await verify_google_id_token(payload.id_token)
    user, created = await auth_service.login_with_oauth(
        db, provider="google", identity=identity, role=payload.role
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    return auth_service.build_auth_response(user, "Google login successful")


@router.post("/facebook", response_model=AuthResponse)
async def facebook_login(
    payload: FacebookLoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
):
    """Sign in with a Facebook access token, creating the account on first use."""
    identity = await verify_facebook_access_token(payload.access_token)
    user, created = await auth_service.login_with_oauth(
        db, provider="facebook", identity=identity, role=payload.role
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    return auth_service.build_auth_response(user, "Facebook login successful")


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser):
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_me(
    payload: ProfileUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    return await auth_service.update_profile(db, user=current_user, payload=payload)
