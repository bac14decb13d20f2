"""Background cleanup of expired sessions and verifications.

A missed cycle only delays cleanup: validation re-checks expiry on every read.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatehouse.config import AuthConfig
from gatehouse.services.sessions import SessionManager
from gatehouse.services.verifications import VerificationService

logger = logging.getLogger(__name__)


async def sweep_expired(session_maker: async_sessionmaker[AsyncSession], config: AuthConfig) -> tuple[int, int]:
    """Delete expired sessions and verifications in one transaction.

    Returns:
        (sessions removed, verifications removed)
    """
    async with session_maker() as db:
        sessions = await SessionManager(db, config).sweep_expired()
        verifications = await VerificationService(db, config).purge_expired()
        await db.commit()

    if sessions or verifications:
        logger.info("Swept %d expired session(s) and %d verification(s)", sessions, verifications)
    else:
        logger.debug("No expired sessions found")
    return sessions, verifications


async def sweeper_loop(
    session_maker: async_sessionmaker[AsyncSession],
    config: AuthConfig,
    interval_seconds: float,
) -> None:
    """Run sweep_expired forever, every interval_seconds."""
    while True:
        try:
            await sweep_expired(session_maker, config)
        except Exception as e:
            logger.exception("Error in expired-session sweep: %s", e)
        await asyncio.sleep(interval_seconds)
