"""Pydantic schemas for the auth API.

Request schemas carry the form-level checks; password length policy is
enforced by the credential verifier so it follows configuration.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# === Requests ===


class SignUpRequest(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    password: str


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class SocialSignInRequest(BaseModel):
    provider: str = Field(min_length=1, max_length=64)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    revoke_other_sessions: bool = False


class EmailRequest(BaseModel):
    """Body for endpoints that only need an email (verification, reset requests)."""

    email: EmailStr


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    token: str = Field(min_length=1)


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    token: str = Field(min_length=1)
    new_password: str


# === Responses ===


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    email_verified: bool
    image: str | None
    created_at: datetime
    updated_at: datetime


class SessionResponse(BaseModel):
    """Session metadata. The token is only returned by AuthResponse."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    expires_at: datetime
    ip_address: str
    user_agent: str
    created_at: datetime


class AuthResponse(BaseModel):
    """Returned by sign-up and sign-in: the bearer token plus who it belongs to."""

    token: str
    session: SessionResponse
    user: UserResponse


class CurrentSessionResponse(BaseModel):
    session: SessionResponse
    user: UserResponse


class SocialSignInResponse(BaseModel):
    url: str
    redirect: bool = True


class StatusResponse(BaseModel):
    status: bool = True


class DashboardResponse(BaseModel):
    greeting: str
    user: UserResponse
