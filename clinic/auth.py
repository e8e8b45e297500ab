import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import decode_token
from .shared.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

ROLE_PATIENT = "patient"
ROLE_DOCTOR = "doctor"
ROLE_ADMIN = "admin"
ROLES = (ROLE_PATIENT, ROLE_DOCTOR, ROLE_ADMIN)

# auto_error=False so a missing header goes through our 401 envelope
security = HTTPBearer(auto_error=False)


def authenticate_token(db: Session, token: str) -> User:
    """Resolve an access token to an active user"""
    user_id = decode_token(token)
    if user_id is None:
        raise UnauthorizedError("Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token for unknown user id {user_id}")
        raise UnauthorizedError("User not found")

    if not user.is_active:
        logger.warning(f"⚠️ Deactivated user {user.email} attempted access")
        raise UnauthorizedError("User account is deactivated")

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer access token"""
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("Access token is required")

    user = authenticate_token(db, credentials.credentials)
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


def require_roles(*roles: str):
    """
    Dependency factory restricting a route to the given roles.

    Example usage:
        @router.get("", dependencies=[Depends(require_roles("admin", "doctor"))])
    """

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(f"⚠️ User {user.email} ({user.role}) denied; requires {roles}")
            raise ForbiddenError(f"Access denied. Required roles: {', '.join(roles)}")
        return user

    return role_checker
