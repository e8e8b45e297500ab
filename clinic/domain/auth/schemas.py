"""Auth domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...auth import ROLES
from ...models import User
from ...shared.validators import validate_email, validate_password


def _validate_name(v: str) -> str:
    v = v.strip()
    if not 2 <= len(v) <= 100:
        raise ValueError("Name must be between 2 and 100 characters")
    return v


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    role: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _validate_name(v)

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v):
        return validate_password(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in ROLES:
            raise ValueError("Role must be either patient, doctor, or admin")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_present(cls, v):
        if not v:
            raise ValueError("Password is required")
        return v


class RefreshTokenRequest(BaseModel):
    refreshToken: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    profileImage: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        return _validate_name(v)


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def validate_new_password(cls, v):
        return validate_password(v)


class UserResponse(BaseModel):
    """Schema for user response"""

    id: int
    name: str
    email: str
    role: str
    profileImage: Optional[str] = None
    lastLogin: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            profileImage=user.profile_image,
            lastLogin=user.last_login,
            createdAt=user.created_at,
        )
