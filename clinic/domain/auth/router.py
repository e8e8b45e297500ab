"""Auth router - FastAPI endpoints for accounts and session tokens"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...config import AUTH_RATE_LIMIT, AUTH_RATE_LIMIT_WINDOW_SECONDS, ENVIRONMENT, REFRESH_TOKEN_EXPIRE_DAYS
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from ...shared.responses import success_response
from .schemas import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterRequest,
    UserResponse,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

REFRESH_COOKIE = "refreshToken"

rate_limit_auth = create_rate_limiter(
    limit=AUTH_RATE_LIMIT, window_seconds=AUTH_RATE_LIMIT_WINDOW_SECONDS, key_prefix="auth"
)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        token,
        httponly=True,
        secure=ENVIRONMENT == "production",
        samesite="lax",
        max_age=REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )


# ============================================================================
# SESSION
# ============================================================================


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    response: Response,
    _: None = Depends(rate_limit_auth),
    service: AuthService = Depends(get_auth_service),
):
    """Register a new account"""
    user = service.register(data)
    access_token, refresh_token = service.issue_tokens(user)
    _set_refresh_cookie(response, refresh_token)
    return success_response(
        "User registered successfully",
        {
            "user": UserResponse.from_user(user),
            "profile": None,
            "accessToken": access_token,
            "refreshToken": refresh_token,
        },
    )


@router.post("/login")
async def login(
    data: LoginRequest,
    response: Response,
    _: None = Depends(rate_limit_auth),
    service: AuthService = Depends(get_auth_service),
):
    """Log in with email and password"""
    user = service.login(data)
    access_token, refresh_token = service.issue_tokens(user)
    _set_refresh_cookie(response, refresh_token)
    return success_response(
        "Login successful",
        {
            "user": UserResponse.from_user(user),
            "profile": service.get_profile(user),
            "accessToken": access_token,
            "refreshToken": refresh_token,
        },
    )


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    response: Response,
    data: Optional[RefreshTokenRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """Exchange a refresh token (cookie or body) for a new access token"""
    user = service.refresh(request.cookies.get(REFRESH_COOKIE) or (data.refreshToken if data else None))
    access_token, new_refresh_token = service.issue_tokens(user)
    _set_refresh_cookie(response, new_refresh_token)
    return success_response(
        "Token refreshed successfully",
        {"accessToken": access_token, "refreshToken": new_refresh_token},
    )


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(REFRESH_COOKIE)
    return success_response("Logout successful")


# ============================================================================
# ACCOUNT
# ============================================================================


@router.get("/profile")
async def get_profile(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Current user and the profile for their role"""
    return success_response(
        "Profile retrieved successfully",
        {"user": UserResponse.from_user(current_user), "profile": service.get_profile(current_user)},
    )


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    user = service.update_profile(current_user, data)
    return success_response("Profile updated successfully", {"user": UserResponse.from_user(user)})


@router.put("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    service.change_password(current_user, data)
    return success_response("Password changed successfully")
