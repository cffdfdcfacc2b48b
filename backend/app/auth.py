# backend/app/auth.py
"""
Bearer token helpers.

Tokens are HS256 JWTs whose ``sub`` claim is the user id. Minting exists
for operators and tests; login and registration live outside this service.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: The claims to encode; ``sub`` must be the user id
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, _secret_value(settings.secret_key), algorithm=settings.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a token; raises PyJWTError on any failure."""
    payload = jwt.decode(token, _secret_value(settings.secret_key), algorithms=[settings.algorithm])
    return cast(Dict[str, Any], payload)


async def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """
    Resolve the ``sub`` claim of the bearer token.

    Raises:
        UnauthorizedException: missing, expired or malformed token
    """
    if not token:
        raise UnauthorizedException("Not authenticated", code="NOT_AUTHENTICATED")
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.info(f"Rejected bearer token: {str(e)}")
        raise UnauthorizedException(
            "Could not validate credentials", code="INVALID_TOKEN"
        ) from e
    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN")
    return user_id
