"""OAuth linker.

Turns a provider authorization code into a session for a local user. The
provider identity is resolved in a fixed order so the same person never ends
up with two users:

1. an Account already linked to (provider, provider_account_id)
2. a User with the profile's email, which gets a new linked Account
3. a brand new User plus its linked Account
"""

import logging
from collections.abc import Mapping

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.config import AuthConfig
from gatehouse.database import utcnow
from gatehouse.exceptions import (
    InvalidVerificationError,
    OAuthExchangeFailedError,
    UnsupportedProviderError,
)
from gatehouse.models.auth import Account, Session, User
from gatehouse.repositories import AccountRepository, UserRepository
from gatehouse.security import generate_id, generate_token, normalize_email
from gatehouse.services.providers import OAuthProvider, OAuthTokens, ProviderProfile
from gatehouse.services.sessions import SessionManager
from gatehouse.services.verifications import VerificationService

logger = logging.getLogger(__name__)

OAUTH_STATE_PREFIX = "oauth-state:"


class OAuthLinker:
    """Resolves provider identities to users and issues sessions."""

    def __init__(
        self,
        db: AsyncSession,
        config: AuthConfig,
        providers: Mapping[str, OAuthProvider],
    ):
        self.db = db
        self.config = config
        self.providers = providers
        self.users = UserRepository(db)
        self.accounts = AccountRepository(db)
        self.sessions = SessionManager(db, config)
        self.verifications = VerificationService(db, config)

    def get_provider(self, provider_id: str) -> OAuthProvider:
        provider = self.providers.get(provider_id)
        if provider is None:
            raise UnsupportedProviderError()
        return provider

    def redirect_uri(self, provider_id: str) -> str:
        return f"{self.config.base_url}/api/auth/callback/{provider_id}"

    async def begin(self, provider_id: str) -> str:
        """Start a sign-in: persist a state challenge and return the provider URL."""
        provider = self.get_provider(provider_id)
        state = generate_token()
        await self.verifications.create(OAUTH_STATE_PREFIX + state, value=provider_id)
        return provider.authorization_url(state, self.redirect_uri(provider_id))

    async def consume_state(self, provider_id: str, state: str) -> None:
        """Check the callback's state against the one issued by begin().

        Raises:
            OAuthExchangeFailedError: If the state is unknown, expired, or was
                issued for another provider.

        A valid state is deleted and committed at once, so it cannot be
        replayed after a failed exchange.
        """
        try:
            await self.verifications.consume(OAUTH_STATE_PREFIX + state, provider_id)
        except InvalidVerificationError as e:
            logger.warning("Rejected OAuth callback with unknown state for %s", provider_id)
            raise OAuthExchangeFailedError("Invalid OAuth state") from e
        await self.db.commit()

    async def _exchange(self, provider: OAuthProvider, code: str) -> tuple[OAuthTokens, ProviderProfile]:
        try:
            tokens = await provider.exchange_code(code, self.redirect_uri(provider.id))
            profile = await provider.fetch_profile(tokens)
        except OAuthExchangeFailedError:
            logger.warning("OAuth exchange with %s failed", provider.id)
            raise
        except (httpx.HTTPError, KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning("OAuth exchange with %s failed: %s", provider.id, e)
            raise OAuthExchangeFailedError() from e

        if not profile.email:
            raise OAuthExchangeFailedError("Provider did not return an email address")
        return tokens, profile

    async def complete_handshake(
        self,
        provider_id: str,
        code: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[Session, User]:
        """Exchange a code, resolve or create the user, and issue a session.

        Raises:
            UnsupportedProviderError: If the provider is not configured.
            OAuthExchangeFailedError: If the provider exchange fails. Not retried.
            ConstraintViolationError: If a concurrent request linked the same
                identity or email first.
        """
        provider = self.get_provider(provider_id)
        tokens, profile = await self._exchange(provider, code)
        user = await self._resolve_user(provider_id, tokens, profile)
        session = await self.sessions.issue(user.id, ip_address, user_agent)
        return session, user

    async def _resolve_user(self, provider_id: str, tokens: OAuthTokens, profile: ProviderProfile) -> User:
        account = await self.accounts.get_by_provider(provider_id, profile.provider_account_id)
        if account is not None:
            await self.accounts.update(account, **self._token_fields(tokens))
            user = await self.users.get_by_id(account.user_id)
            if user is None:
                raise OAuthExchangeFailedError()
            return user

        now = utcnow()
        user = await self.users.get_by_email(profile.email)
        if user is None:
            email = normalize_email(profile.email)
            user = await self.users.create(
                User(
                    id=generate_id(),
                    name=profile.name or email.split("@")[0],
                    email=email,
                    email_verified=profile.email_verified,
                    image=profile.avatar_url,
                    created_at=now,
                    updated_at=now,
                )
            )
            logger.info("Created user %s from %s sign-in", user.id, provider_id)

        await self.accounts.create(
            Account(
                id=generate_id(),
                user_id=user.id,
                account_id=profile.provider_account_id,
                provider_id=provider_id,
                created_at=now,
                updated_at=now,
                **self._token_fields(tokens),
            )
        )
        logger.info("Linked %s account to user %s", provider_id, user.id)
        return user

    @staticmethod
    def _token_fields(tokens: OAuthTokens) -> dict:
        return {
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token,
            "access_token_expires_at": tokens.access_token_expires_at,
            "refresh_token_expires_at": tokens.refresh_token_expires_at,
            "scope": tokens.scope,
        }
