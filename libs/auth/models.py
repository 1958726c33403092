from typing import Optional

from pydantic import BaseModel, Field


class AuthUser(BaseModel):
    """
    Claims carried by a marketplace access token.
    """

    user_id: str = Field(..., alias="sub")
    role: Optional[str] = None
    exp: Optional[int] = None
