"""Authentication services."""

from gatehouse.services.credentials import CredentialVerifier
from gatehouse.services.oauth import OAuthLinker
from gatehouse.services.providers import GitHubProvider, OAuthProvider, OAuthTokens, ProviderProfile
from gatehouse.services.sessions import SessionManager
from gatehouse.services.verifications import VerificationService

__all__ = [
    "CredentialVerifier",
    "GitHubProvider",
    "OAuthLinker",
    "OAuthProvider",
    "OAuthTokens",
    "ProviderProfile",
    "SessionManager",
    "VerificationService",
]
