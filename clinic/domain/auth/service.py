"""Auth service - Registration, login and account maintenance"""

import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.orm import Session

from ...models import Doctor, Patient, User
from ...security_utils import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from ...shared.errors import ConflictError, UnauthorizedError
from ..doctors.schemas import DoctorResponse
from ..patients.schemas import PatientResponse
from ..profiles import find_profile
from .repository import UserRepository
from .schemas import ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


def serialize_profile(
    profile: Optional[Union[Patient, Doctor]],
) -> Optional[Union[PatientResponse, DoctorResponse]]:
    if isinstance(profile, Patient):
        return PatientResponse.from_patient(profile)
    if isinstance(profile, Doctor):
        return DoctorResponse.from_doctor(profile)
    return None


class AuthService:
    """Service layer for authentication"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def issue_tokens(self, user: User) -> tuple[str, str]:
        """(access_token, refresh_token) for a user"""
        return create_access_token(user.id), create_refresh_token(user.id)

    def register(self, data: RegisterRequest) -> User:
        """Create an account; the role profile is created separately"""
        if self.repo.get_by_email(self.db, data.email):
            raise ConflictError("User with this email already exists")

        try:
            user = self.repo.create(
                self.db,
                name=data.name,
                email=data.email,
                password_hash=hash_password(data.password),
                role=data.role,
                is_active=True,
            )
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Registered {user.role} account {user.email}")
        return user

    def login(self, data: LoginRequest) -> User:
        user = self.repo.get_by_email(self.db, data.email)
        if not user or not verify_password(data.password, user.password_hash):
            logger.warning(f"🔒 Failed login for {data.email}")
            raise UnauthorizedError("Invalid email or password")

        if not user.is_active:
            logger.warning(f"🔒 Login attempt on deactivated account {user.email}")
            raise UnauthorizedError("Account is deactivated")

        user.last_login = datetime.now()
        user = self.repo.save(self.db, user)
        logger.info(f"🔑 User {user.email} logged in")
        return user

    def refresh(self, refresh_token: Optional[str]) -> User:
        """Resolve a refresh token to an active user"""
        if not refresh_token:
            raise UnauthorizedError("Refresh token is required")

        user_id = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
        if user_id is None:
            raise UnauthorizedError("Invalid refresh token")

        user = self.repo.get_by_id(self.db, user_id)
        if not user or not user.is_active:
            raise UnauthorizedError("Invalid refresh token")
        return user

    def get_profile(self, user: User) -> Optional[Union[PatientResponse, DoctorResponse]]:
        """Profile for the user's role; None for admins or before the profile is created"""
        return serialize_profile(find_profile(self.db, user))

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        if data.name:
            user.name = data.name
        if data.profileImage:
            user.profile_image = data.profileImage

        try:
            return self.repo.save(self.db, user)
        except Exception:
            self.db.rollback()
            raise

    def change_password(self, user: User, data: ChangePasswordRequest) -> None:
        if not verify_password(data.currentPassword, user.password_hash):
            raise UnauthorizedError("Current password is incorrect")

        user.password_hash = hash_password(data.newPassword)
        try:
            self.repo.save(self.db, user)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"🔐 Password changed for {user.email}")
