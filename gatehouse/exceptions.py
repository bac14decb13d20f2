"""Authentication error taxonomy.

Each error carries a user-facing message and the HTTP status the API maps
it to. Messages never reveal whether an email is registered.
"""

from fastapi import status


class AuthError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Authentication error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateEmailError(AuthError):
    # Literal: the starlette constant name changed across releases.
    status_code = 422
    default_message = "User already exists"


class WeakPasswordError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Password does not meet the length requirements"


class InvalidCredentialsError(AuthError):
    """Raised for unknown email and wrong password alike."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class NoSuchSessionError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired session"


class SessionExpiredError(NoSuchSessionError):
    """An expired session. Callers may treat it as NoSuchSessionError."""


class OAuthExchangeFailedError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "OAuth sign-in failed"


class UnsupportedProviderError(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "OAuth provider not configured"


class InvalidVerificationError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired token"


class ConstraintViolationError(AuthError):
    """A storage-level uniqueness or foreign-key constraint rejected a write."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting record already exists"
