"""Seed an admin user.

Reads ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME from environment / .env and
registers the user through the credential verifier, marked as verified.

Usage:
    python -m gatehouse.scripts.seed_admin

Idempotent: skips if a user with the admin email already exists.
"""

import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatehouse.config import AuthConfig, get_auth_config, settings
from gatehouse.database import async_session_maker, engine
from gatehouse.exceptions import DuplicateEmailError, WeakPasswordError
from gatehouse.repositories import UserRepository
from gatehouse.services.credentials import CredentialVerifier


async def seed_admin(
    session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
    config: AuthConfig | None = None,
) -> str | None:
    """Create the admin user. Returns its id, or None when skipped."""
    email = settings.admin_email
    password = settings.admin_password
    name = settings.admin_name.strip() or "Admin"

    if not email or not password:
        print("ERROR: ADMIN_EMAIL and ADMIN_PASSWORD must be set in .env")
        return None

    async with session_maker() as session:
        users = UserRepository(session)
        existing = await users.get_by_email(email)
        if existing:
            print(f"  Admin user already exists: {existing.email} (id={existing.id})")
            return None

        verifier = CredentialVerifier(session, config or get_auth_config())
        try:
            user = await verifier.register(name, email, password)
        except (DuplicateEmailError, WeakPasswordError) as e:
            print(f"ERROR: {e.message}")
            return None
        await users.set_email_verified(user.id)
        await session.commit()

    print(f"  Admin user created: {user.email} (id={user.id})")
    return user.id


async def main() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    print("  Database: connected")
    await seed_admin()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
