"""Verification repository."""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.models.auth import Verification
from gatehouse.repositories.base import insert


class VerificationRepository:
    """Repository for Verification challenge rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, verification: Verification) -> Verification:
        await insert(self.db, verification)
        return verification

    async def get(self, identifier: str, value: str) -> Verification | None:
        result = await self.db.execute(
            select(Verification).where(
                Verification.identifier == identifier,
                Verification.value == value,
            )
        )
        return result.scalar_one_or_none()

    async def delete(self, verification: Verification) -> None:
        await self.db.delete(verification)
        await self.db.flush()

    async def delete_for_identifier(self, identifier: str) -> int:
        result = await self.db.execute(
            delete(Verification)
            .where(Verification.identifier == identifier)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        result = await self.db.execute(
            delete(Verification)
            .where(Verification.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
