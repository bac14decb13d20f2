"""Session manager.

Issues, validates and revokes bearer session tokens. Each operation touches
rows keyed by token or user id, so no cross-request locking is needed.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.config import AuthConfig
from gatehouse.database import utcnow
from gatehouse.exceptions import NoSuchSessionError, SessionExpiredError
from gatehouse.models.auth import Session, User
from gatehouse.repositories import SessionRepository, UserRepository
from gatehouse.security import generate_id, generate_token

logger = logging.getLogger(__name__)


class SessionManager:
    """Session lifecycle over the sessions table."""

    def __init__(self, db: AsyncSession, config: AuthConfig):
        self.db = db
        self.config = config
        self.sessions = SessionRepository(db)
        self.users = UserRepository(db)

    async def issue(self, user_id: str, ip_address: str | None, user_agent: str | None) -> Session:
        """Create a session for a user.

        Args:
            user_id: Owning user id.
            ip_address: Client address captured at issuance.
            user_agent: Client user agent captured at issuance.

        Returns:
            The persisted Session; its token is the only credential to hand back.
        """
        now = utcnow()
        session = Session(
            id=generate_id(),
            user_id=user_id,
            token=generate_token(),
            expires_at=now + self.config.session_ttl,
            ip_address=ip_address or "",
            user_agent=user_agent or "",
            created_at=now,
            updated_at=now,
        )
        await self.sessions.create(session)
        logger.info("Issued session %s for user %s", session.id, user_id)
        return session

    async def validate(self, token: str) -> tuple[Session, User]:
        """Resolve a token to its session and user.

        Raises:
            NoSuchSessionError: If no session has this token.
            SessionExpiredError: If the session is past expires_at. The row is
                deleted and the deletion committed before raising.
        """
        session = await self.sessions.get_by_token(token)
        if session is None:
            raise NoSuchSessionError()

        if session.is_expired(utcnow()):
            await self.sessions.delete(session)
            # The caller's unit of work rolls back on the raise below.
            await self.db.commit()
            raise SessionExpiredError()

        user = await self.users.get_by_id(session.user_id)
        if user is None:
            raise NoSuchSessionError()
        return session, user

    async def revoke(self, token: str) -> None:
        """Delete a session. Revoking an absent token is not an error."""
        deleted = await self.sessions.delete_by_token(token)
        if deleted:
            logger.info("Revoked session")

    async def revoke_all(self, user_id: str, except_token: str | None = None) -> int:
        """Delete every session of a user, optionally sparing one token."""
        deleted = await self.sessions.delete_for_user(user_id, except_token=except_token)
        logger.info("Revoked %d session(s) for user %s", deleted, user_id)
        return deleted

    async def list_for_user(self, user_id: str) -> list[Session]:
        """Unexpired sessions of a user, newest first."""
        return await self.sessions.list_active_for_user(user_id, utcnow())

    async def sweep_expired(self) -> int:
        """Delete all expired sessions. Returns the number removed."""
        return await self.sessions.delete_expired(utcnow())
