import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from groupchat.context import AppContext
from groupchat.services.session_store import reap_expired_sessions

logger = logging.getLogger(__name__)


async def run_session_reaper(sessionmaker: async_sessionmaker, ctx: AppContext) -> None:
    """Close expired sessions every ``reaper_interval_seconds`` until cancelled."""
    interval = max(ctx.settings.reaper_interval_seconds, 1)
    logger.info(f"Session reaper started (interval {interval}s)")
    while True:
        await asyncio.sleep(interval)
        try:
            async with sessionmaker() as db:
                await reap_expired_sessions(db, ctx)
        except SQLAlchemyError:
            logger.exception("Session reaper sweep failed")
