"""Session repository."""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.models.auth import Session
from gatehouse.repositories.base import insert


class SessionRepository:
    """Repository for Session rows, keyed by token or id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, session: Session) -> Session:
        await insert(self.db, session)
        return session

    async def get_by_token(self, token: str) -> Session | None:
        result = await self.db.execute(select(Session).where(Session.token == token))
        return result.scalar_one_or_none()

    async def list_active_for_user(self, user_id: str, now: datetime) -> list[Session]:
        result = await self.db.execute(
            select(Session)
            .where(Session.user_id == user_id, Session.expires_at > now)
            .order_by(Session.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str) -> list[Session]:
        result = await self.db.execute(select(Session).where(Session.user_id == user_id))
        return list(result.scalars().all())

    async def delete(self, session: Session) -> None:
        await self.db.delete(session)
        await self.db.flush()

    async def delete_by_token(self, token: str) -> int:
        result = await self.db.execute(
            delete(Session).where(Session.token == token).execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def delete_for_user(self, user_id: str, except_token: str | None = None) -> int:
        stmt = delete(Session).where(Session.user_id == user_id)
        if except_token is not None:
            stmt = stmt.where(Session.token != except_token)
        result = await self.db.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        result = await self.db.execute(
            delete(Session).where(Session.expires_at <= now).execution_options(synchronize_session=False)
        )
        return result.rowcount
