"""Pydantic schemas for account and credential endpoints."""

import re

from pydantic import EmailStr, Field, field_validator

from invest_api.schemas.common import RequestModel, ResponseModel, UserProfile

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


def _check_password_strength(value: str) -> str:
    if not (
        re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)
    ):
        raise ValueError(
            "Password must contain at least one uppercase letter, "
            "one lowercase letter, and one number"
        )
    return value


def _lowercase_email(value: str) -> str:
    return value.lower()


# ============================================================================
# Requests
# ============================================================================


class RegisterRequest(RequestModel):
    """Request schema for registering an account."""

    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    phone: str = Field(..., min_length=10, max_length=32)
    nationality: str = Field(..., min_length=2, max_length=64)
    fullname: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username")
    @classmethod
    def username_charset(cls, v: str) -> str:
        if not USERNAME_RE.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v

    normalize_email = field_validator("email")(_lowercase_email)
    password_strength = field_validator("password")(_check_password_strength)


class LoginRequest(RequestModel):
    """Email or username plus password."""

    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ActivateRequest(RequestModel):
    activation_key: str | None = None


class EmailRequest(RequestModel):
    """Used by activation key and password reset requests."""

    email: EmailStr

    normalize_email = field_validator("email")(_lowercase_email)


class ResetPasswordRequest(RequestModel):
    """Set a new password with a reset token."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)

    password_strength = field_validator("new_password")(_check_password_strength)


class UpdatePasswordRequest(RequestModel):
    """Change password from an authenticated session."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)

    password_strength = field_validator("new_password")(_check_password_strength)


class UpdateInfoRequest(RequestModel):
    """Profile fields a user may change. Omitted fields are left alone."""

    phone: str | None = Field(default=None, min_length=10, max_length=32)
    nationality: str | None = Field(default=None, min_length=2, max_length=64)
    fullname: str | None = Field(default=None, min_length=2, max_length=100)


# ============================================================================
# Responses
# ============================================================================


class UserData(ResponseModel):
    user: UserProfile


class UserResponse(ResponseModel):
    """Envelope carrying a profile."""

    message: str
    data: UserData


class RegisterData(ResponseModel):
    user: UserProfile
    message: str


class RegisterResponse(ResponseModel):
    message: str
    data: RegisterData


class LoginData(ResponseModel):
    user: UserProfile
    token: str


class LoginResponse(ResponseModel):
    message: str
    data: LoginData


class ForgotPasswordData(ResponseModel):
    message: str
    # Only populated in development
    reset_token: str | None = None


class ForgotPasswordResponse(ResponseModel):
    message: str
    data: ForgotPasswordData | None = None
