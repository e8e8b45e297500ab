"""
Credential utilities
Password hashing (passlib bcrypt) and JWT session tokens (python-jose)
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_SECRET_KEY,
    REFRESH_TOKEN_EXPIRE_DAYS,
    SECRET_KEY,
)

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# SESSION TOKENS
# ============================================================================


def create_jwt_token(
    data: dict[str, Any], secret: str = SECRET_KEY, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token
        secret: Signing key
        expires_delta: Token expiration time (default 15 minutes)
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=15)

    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def verify_jwt_token(token: str, secret: str = SECRET_KEY) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def create_access_token(user_id: int) -> str:
    return create_jwt_token(
        {"sub": str(user_id), "type": ACCESS_TOKEN_TYPE},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: int) -> str:
    return create_jwt_token(
        {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
        secret=REFRESH_SECRET_KEY,
        expires_delta=timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> Optional[int]:
    """Return the user id carried by a token of the given type, or None"""
    secret = REFRESH_SECRET_KEY if token_type == REFRESH_TOKEN_TYPE else SECRET_KEY
    payload = verify_jwt_token(token, secret)
    if not payload or payload.get("type") != token_type:
        return None

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
