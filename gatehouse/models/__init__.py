"""SQLAlchemy models."""

from gatehouse.models.auth import CREDENTIAL_PROVIDER, Account, Session, User, Verification

__all__ = [
    "CREDENTIAL_PROVIDER",
    "Account",
    "Session",
    "User",
    "Verification",
]
