from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> AuthUser:
    """Decode a Supabase HS256 access token into an AuthUser."""
    settings = get_settings()
    payload = jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=["HS256"],
        # Supabase audiences vary between projects
        options={"verify_aud": False},
    )
    return AuthUser(**payload)


async def get_current_user(
    request: Request,
    token: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> AuthUser:
    """
    Validate Supabase JWT and return the authenticated user.

    The user is also stored on ``request.state.user`` for the rate limiter.
    """
    try:
        user = decode_access_token(token.credentials)
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.user = user
    return user


async def get_optional_user(
    request: Request,
    token: Annotated[
        Optional[HTTPAuthorizationCredentials], Depends(optional_security)
    ],
) -> Optional[AuthUser]:
    """Return the caller when a valid token is sent, otherwise None (guest)."""
    if token is None:
        return None
    try:
        user = decode_access_token(token.credentials)
    except (JWTError, ValidationError):
        logger.info("Ignoring invalid bearer token on guest-capable endpoint")
        return None
    request.state.user = user
    return user
