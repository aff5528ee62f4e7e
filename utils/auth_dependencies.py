"""
FastAPI Authentication Dependencies
Route guards producing typed user contexts so handlers never inspect roles
"""

from fastapi import Depends, Request
from typing import Optional

from models import User, UserRole
from storage import Storage, get_storage
from utils.auth_middleware import get_auth_context
from utils.error_handling import AuthenticationError, ForbiddenError
from utils.structured_logging import get_logger

logger = get_logger("auth.dependencies")


# =============================================================================
# CORE AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_current_user_optional(request: Request, storage: Storage = Depends(get_storage)) -> Optional[User]:
    """
    Get current user if authenticated, None otherwise
    Use this for endpoints where authentication is optional
    """
    auth_context = get_auth_context(request)
    if not auth_context.is_authenticated:
        return None

    user = storage.get_user(auth_context.user_id)
    if user is None:
        logger.security(
            "Session token refers to a missing user",
            event_type="stale_session",
            severity="low",
            user_id=auth_context.user_id,
        )
    return user


async def get_current_user(user: Optional[User] = Depends(get_current_user_optional)) -> User:
    """
    Get current authenticated user - raises 401 if not authenticated
    Use this for endpoints that require authentication
    """
    if user is None:
        raise AuthenticationError("Authentication required")
    return user


# =============================================================================
# ROLE-BASED AUTHENTICATION DEPENDENCIES
# =============================================================================


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require user to be an admin"""
    if current_user.role != UserRole.ADMIN:
        logger.security(
            "Non-admin user attempted admin operation",
            event_type="forbidden",
            user_id=current_user.id,
        )
        raise ForbiddenError("Admin access required")
    return current_user
