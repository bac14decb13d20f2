"""Credential verifier: email + password registration and sign-in."""

import logging

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.config import AuthConfig
from gatehouse.database import utcnow
from gatehouse.exceptions import (
    ConstraintViolationError,
    DuplicateEmailError,
    InvalidCredentialsError,
    WeakPasswordError,
)
from gatehouse.models.auth import CREDENTIAL_PROVIDER, Account, User
from gatehouse.repositories import AccountRepository, UserRepository
from gatehouse.security import PasswordHasher, generate_id, normalize_email

logger = logging.getLogger(__name__)


class CredentialVerifier:
    """Registers users with a password and verifies sign-in attempts.

    Only the scrypt digest is stored, on the user's credential Account.
    """

    def __init__(self, db: AsyncSession, config: AuthConfig):
        self.db = db
        self.config = config
        self.users = UserRepository(db)
        self.accounts = AccountRepository(db)
        self.hasher = PasswordHasher(n=config.scrypt_n, r=config.scrypt_r, p=config.scrypt_p)

    def check_password_policy(self, password: str) -> None:
        """Raise WeakPasswordError when the password length is out of bounds."""
        if len(password) < self.config.min_password_length:
            raise WeakPasswordError(
                f"Password must be at least {self.config.min_password_length} characters"
            )
        if len(password) > self.config.max_password_length:
            raise WeakPasswordError(
                f"Password must be at most {self.config.max_password_length} characters"
            )

    async def register(self, name: str, email: str, password: str) -> User:
        """Create a user and its credential account.

        Args:
            name: Display name.
            email: Email address; normalized before storage.
            password: Raw password; hashed, never stored.

        Returns:
            The new User.

        Raises:
            WeakPasswordError: If the password violates the length policy.
            DuplicateEmailError: If the normalized email is taken, including
                when a concurrent registration wins the unique constraint.
        """
        self.check_password_policy(password)
        email = normalize_email(email)

        if await self.users.get_by_email(email) is not None:
            raise DuplicateEmailError()

        # scrypt runs in a worker thread so other requests keep being served.
        digest = await run_in_threadpool(self.hasher.hash, password)
        now = utcnow()
        user = User(
            id=generate_id(),
            name=name.strip(),
            email=email,
            email_verified=False,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.users.create(user)
        except ConstraintViolationError as e:
            raise DuplicateEmailError() from e

        await self.accounts.create(
            Account(
                id=generate_id(),
                user_id=user.id,
                account_id=user.id,
                provider_id=CREDENTIAL_PROVIDER,
                password=digest,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Registered user %s", user.id)
        return user

    async def verify(self, email: str, password: str) -> User:
        """Check an email + password pair.

        Unknown email, missing credential account and wrong password all
        perform one scrypt derivation and raise the same error.

        Raises:
            InvalidCredentialsError: On any mismatch.
        """
        user = await self.users.get_by_email(email)
        if user is None:
            await run_in_threadpool(self.hasher.compare_dummy, password)
            raise InvalidCredentialsError()

        account = await self.accounts.get_credential(user.id)
        digest = account.password if account is not None else None
        if not await run_in_threadpool(self.hasher.compare, password, digest):
            raise InvalidCredentialsError()
        return user

    async def set_password(self, user_id: str, password: str) -> Account:
        """Replace (or create) the credential account's password digest."""
        self.check_password_policy(password)
        digest = await run_in_threadpool(self.hasher.hash, password)
        account = await self.accounts.get_credential(user_id)
        if account is None:
            now = utcnow()
            return await self.accounts.create(
                Account(
                    id=generate_id(),
                    user_id=user_id,
                    account_id=user_id,
                    provider_id=CREDENTIAL_PROVIDER,
                    password=digest,
                    created_at=now,
                    updated_at=now,
                )
            )
        return await self.accounts.update(account, password=digest)

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Change a password after re-checking the current one.

        Raises:
            InvalidCredentialsError: If the current password is wrong.
            WeakPasswordError: If the new password violates the policy.
        """
        await self.verify(user.email, current_password)
        await self.set_password(user.id, new_password)
        logger.info("Changed password for user %s", user.id)
