import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_read_retry(db: AsyncSession, operation: Callable[[], Awaitable[T]], retries: int) -> T:
    """Run a read-only operation, retrying transient storage failures.

    Only for operations that write nothing: a retried write could apply twice.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except OperationalError as e:
            await db.rollback()
            if attempt >= retries:
                raise
            attempt += 1
            logger.warning(f"Read failed ({e.__class__.__name__}), retry {attempt}/{retries}")
