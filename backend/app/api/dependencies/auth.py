# backend/app/api/dependencies/auth.py
"""
Authentication and role dependencies.

The bearer token names a user id; the user is loaded with the request's
session so services can work with it directly.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...core.enums import RoleName
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...models.user import User
from ...repositories.user_repository import UserRepository
from .database import get_db

logger = logging.getLogger(__name__)


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from the database.

    The lookup is a blocking query, so it runs in a worker thread to keep
    the event loop free.

    Raises:
        UnauthorizedException: token names an unknown or deactivated user
    """
    user = await asyncio.to_thread(UserRepository(db).get_by_id, user_id)
    if user is None or not user.is_active:
        logger.info(f"Token subject {user_id} is unknown or inactive")
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN")
    return user


def require_roles(*roles: RoleName) -> Callable[..., Awaitable[User]]:
    """Dependency factory allowing only users holding one of ``roles``."""
    allowed = {role.value for role in roles}

    async def verify_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise ForbiddenException(
                "You don't have permission to perform this action",
                code="ROLE_REQUIRED",
                details={"required_roles": sorted(allowed)},
            )
        return current_user

    return verify_role


require_admin = require_roles(RoleName.ADMIN)
require_trainer = require_roles(RoleName.TRAINER)
