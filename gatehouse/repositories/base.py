"""Shared write helper for repositories."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.database import Base
from gatehouse.exceptions import ConstraintViolationError

logger = logging.getLogger(__name__)


async def insert(db: AsyncSession, obj: Base) -> None:
    """Add and flush a row, translating constraint failures.

    On IntegrityError the whole unit of work is rolled back, since the
    session is unusable until it is.

    Raises:
        ConstraintViolationError: If a unique or foreign-key constraint fails.
    """
    db.add(obj)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Constraint violation inserting into %s", obj.__tablename__)
        raise ConstraintViolationError() from e
