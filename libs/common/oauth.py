"""OAuth token verification against Google and Facebook over HTTP."""

from typing import Optional

import httpx
from fastapi import HTTPException, status

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
FACEBOOK_GRAPH_ME_URL = "https://graph.facebook.com/me"


def _invalid(provider: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=f"Invalid {provider} token",
    )


async def verify_google_id_token(id_token: str) -> dict:
    """
    Verify a Google ID token and return the identity claims.

    Returns:
        Dict with provider_id, email, name, picture
    """
    settings = get_settings()
    if not settings.GOOGLE_CLIENT_ID:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Google login is not configured",
        )

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                GOOGLE_TOKENINFO_URL, params={"id_token": id_token}
            )
    except httpx.HTTPError as e:
        logger.error(f"Google token verification failed: {e}")
        raise _invalid("Google")

    if response.status_code != 200:
        raise _invalid("Google")

    claims = response.json()
    if claims.get("aud") != settings.GOOGLE_CLIENT_ID or not claims.get("email"):
        raise _invalid("Google")

    return {
        "provider_id": claims["sub"],
        "email": claims["email"].lower(),
        "name": claims.get("name") or claims["email"].split("@")[0],
        "picture": claims.get("picture"),
    }


async def verify_facebook_access_token(access_token: str) -> dict:
    """
    Verify a Facebook access token via the Graph API ``/me`` endpoint.

    Returns:
        Dict with provider_id, email (may be None), name, picture
    """
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                FACEBOOK_GRAPH_ME_URL,
                params={
                    "fields": "id,name,email,picture.type(large)",
                    "access_token": access_token,
                },
            )
    except httpx.HTTPError as e:
        logger.error(f"Facebook token verification failed: {e}")
        raise _invalid("Facebook")

    if response.status_code != 200:
        raise _invalid("Facebook")

    profile = response.json()
    if not profile.get("id"):
        raise _invalid("Facebook")

    picture: Optional[str] = (
        profile.get("picture", {}).get("data", {}).get("url")
        if isinstance(profile.get("picture"), dict)
        else None
    )
    email = profile.get("email")
    return {
        "provider_id": profile["id"],
        "email": email.lower() if email else None,
        "name": profile.get("name") or "Facebook User",
        "picture": picture,
    }
