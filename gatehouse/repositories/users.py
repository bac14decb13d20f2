"""User repository."""

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.database import utcnow
from gatehouse.models.auth import User
from gatehouse.repositories.base import insert
from gatehouse.security import normalize_email


class UserRepository:
    """Repository for User rows."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
        """
        self.db = db

    async def create(self, user: User) -> User:
        """Insert a user.

        Raises:
            ConstraintViolationError: If the email is already taken.
        """
        user.email = normalize_email(user.email)
        await insert(self.db, user)
        return user

    async def get_by_id(self, user_id: str) -> User | None:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def set_email_verified(self, user_id: str, verified: bool = True) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(email_verified=verified, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )

    async def update_profile(self, user: User, name: str | None = None, image: str | None = None) -> User:
        if name is not None:
            user.name = name
        if image is not None:
            user.image = image
        await self.db.flush()
        return user

    async def delete(self, user_id: str) -> bool:
        """Delete a user; sessions and accounts go with it via ON DELETE CASCADE.

        Returns:
            True if a row was deleted.
        """
        result = await self.db.execute(
            delete(User).where(User.id == user_id).execution_options(synchronize_session="fetch")
        )
        return result.rowcount > 0
