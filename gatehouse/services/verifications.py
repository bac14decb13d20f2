"""Verification challenges: email confirmation and password reset.

A challenge is a Verification row (identifier, value) with an expiry. It is
deleted when consumed; an expired row is deleted when someone tries it.
Delivery of the token to the user goes through a pluggable hook.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.config import AuthConfig
from gatehouse.database import utcnow
from gatehouse.exceptions import InvalidVerificationError
from gatehouse.models.auth import Verification
from gatehouse.repositories import UserRepository, VerificationRepository
from gatehouse.security import generate_id, generate_token, normalize_email
from gatehouse.services.credentials import CredentialVerifier
from gatehouse.services.sessions import SessionManager

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION_PREFIX = "email-verification:"
PASSWORD_RESET_PREFIX = "password-reset:"

# (purpose, email, token) -> None
DeliveryHook = Callable[[str, str, str], Awaitable[None]]


async def log_delivery(purpose: str, email: str, token: str) -> None:
    """Default delivery hook: no mail transport is configured."""
    logger.debug("No delivery configured for %s challenge to %s", purpose, email)


class VerificationService:
    """Creates and consumes single-use challenge tokens."""

    def __init__(self, db: AsyncSession, config: AuthConfig, deliver: DeliveryHook = log_delivery):
        self.db = db
        self.config = config
        self.deliver = deliver
        self.verifications = VerificationRepository(db)
        self.users = UserRepository(db)

    async def create(self, identifier: str, value: str | None = None, ttl: timedelta | None = None) -> Verification:
        now = utcnow()
        verification = Verification(
            id=generate_id(),
            identifier=identifier,
            value=value or generate_token(),
            expires_at=now + (ttl or self.config.verification_ttl),
            created_at=now,
            updated_at=now,
        )
        return await self.verifications.create(verification)

    async def consume(self, identifier: str, value: str) -> Verification:
        """Use up a challenge.

        Raises:
            InvalidVerificationError: If the challenge is unknown or expired.
        """
        verification = await self.verifications.get(identifier, value)
        if verification is None:
            raise InvalidVerificationError()
        await self.verifications.delete(verification)
        if verification.is_expired(utcnow()):
            # Keep the cleanup when the caller rolls back on the raise.
            await self.db.commit()
            raise InvalidVerificationError()
        return verification

    async def purge_expired(self) -> int:
        return await self.verifications.delete_expired(utcnow())

    # --- email verification ---
    # Challenges are keyed on the user id: a 254-character email plus a
    # prefix would not fit the identifier column.

    async def request_email_verification(self, email: str) -> None:
        """Issue an email verification token for a registered, unverified user.

        Unknown or already-verified emails are ignored without error.
        """
        email = normalize_email(email)
        user = await self.users.get_by_email(email)
        if user is None or user.email_verified:
            return
        identifier = EMAIL_VERIFICATION_PREFIX + user.id
        await self.verifications.delete_for_identifier(identifier)
        verification = await self.create(identifier)
        await self.deliver("email-verification", email, verification.value)

    async def verify_email(self, email: str, token: str) -> None:
        """Mark the user's email verified.

        Raises:
            InvalidVerificationError: If the token does not match.
        """
        user = await self.users.get_by_email(email)
        if user is None:
            raise InvalidVerificationError()
        await self.consume(EMAIL_VERIFICATION_PREFIX + user.id, token)
        await self.users.set_email_verified(user.id)
        logger.info("Verified email for user %s", user.id)

    # --- password reset ---

    async def request_password_reset(self, email: str) -> None:
        """Issue a reset token. Unknown emails are ignored to avoid enumeration."""
        email = normalize_email(email)
        user = await self.users.get_by_email(email)
        if user is None:
            return
        identifier = PASSWORD_RESET_PREFIX + user.id
        await self.verifications.delete_for_identifier(identifier)
        verification = await self.create(identifier)
        await self.deliver("password-reset", email, verification.value)

    async def reset_password(self, email: str, token: str, new_password: str) -> None:
        """Set a new password with a reset token and revoke all sessions.

        Raises:
            InvalidVerificationError: If the token does not match.
            WeakPasswordError: If the new password violates the policy.
        """
        credentials = CredentialVerifier(self.db, self.config)
        credentials.check_password_policy(new_password)
        user = await self.users.get_by_email(email)
        if user is None:
            raise InvalidVerificationError()
        await self.consume(PASSWORD_RESET_PREFIX + user.id, token)
        await credentials.set_password(user.id, new_password)
        await SessionManager(self.db, self.config).revoke_all(user.id)
        logger.info("Reset password for user %s", user.id)
