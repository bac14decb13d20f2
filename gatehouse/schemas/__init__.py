"""Pydantic schemas."""

from gatehouse.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    CurrentSessionResponse,
    DashboardResponse,
    EmailRequest,
    ResetPasswordRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SocialSignInRequest,
    SocialSignInResponse,
    StatusResponse,
    UserResponse,
    VerifyEmailRequest,
)

__all__ = [
    "AuthResponse",
    "ChangePasswordRequest",
    "CurrentSessionResponse",
    "DashboardResponse",
    "EmailRequest",
    "ResetPasswordRequest",
    "SessionResponse",
    "SignInRequest",
    "SignUpRequest",
    "SocialSignInRequest",
    "SocialSignInResponse",
    "StatusResponse",
    "UserResponse",
    "VerifyEmailRequest",
]
