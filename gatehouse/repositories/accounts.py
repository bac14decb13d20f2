"""Account repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.models.auth import CREDENTIAL_PROVIDER, Account
from gatehouse.repositories.base import insert


class AccountRepository:
    """Repository for Account rows.

    The (provider_id, account_id) pair is unique at the storage layer, so a
    given external identity can only ever link to one user.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, account: Account) -> Account:
        """Insert an account.

        Raises:
            ConstraintViolationError: If the provider identity is already linked
                or the owning user no longer exists.
        """
        await insert(self.db, account)
        return account

    async def get_by_provider(self, provider_id: str, account_id: str) -> Account | None:
        result = await self.db.execute(
            select(Account).where(
                Account.provider_id == provider_id,
                Account.account_id == account_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_credential(self, user_id: str) -> Account | None:
        result = await self.db.execute(
            select(Account).where(
                Account.user_id == user_id,
                Account.provider_id == CREDENTIAL_PROVIDER,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[Account]:
        result = await self.db.execute(
            select(Account).where(Account.user_id == user_id).order_by(Account.created_at)
        )
        return list(result.scalars().all())

    async def update(self, account: Account, **fields) -> Account:
        for name, value in fields.items():
            setattr(account, name, value)
        await self.db.flush()
        return account
