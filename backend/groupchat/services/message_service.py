from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.context import AppContext
from groupchat.models import Message
from groupchat.services.errors import Forbidden, ValidationError
from groupchat.services.locks import chat_lock_key
from groupchat.services.membership_service import get_chat, is_member


async def post(db: AsyncSession, ctx: AppContext, actor_id: int, chat_id: int, content: Optional[str]) -> Message:
    """Append a message to a chat.

    The per-chat ``seq`` counter is bumped under the chat lock, so messages keep
    their arrival order even when several land in the same clock tick.
    """
    async with ctx.locks.hold(chat_lock_key(chat_id)):
        chat = await get_chat(db, chat_id, for_update=True)
        if not await is_member(db, actor_id, chat_id):
            raise Forbidden()
        if content is None or not content.strip():
            raise ValidationError("Message content must not be empty.")
        chat.message_seq = (chat.message_seq or 0) + 1
        message = Message(
            chat_id=chat_id,
            user_id=actor_id,
            content=content,
            timestamp=ctx.clock(),
            seq=chat.message_seq,
        )
        db.add(message)
        await db.commit()
    return message


async def list_messages(db: AsyncSession, actor_id: int, chat_id: int, after: Optional[int] = None,
                        before: Optional[int] = None, limit: Optional[int] = None) -> List[Message]:
    """Messages of a chat in ascending post order.

    ``after``/``before`` are exclusive ``seq`` bounds. With a ``limit`` and no
    ``after`` the newest window is returned, otherwise the oldest one.
    """
    await get_chat(db, chat_id)
    if not await is_member(db, actor_id, chat_id):
        raise Forbidden()
    if limit is not None and limit <= 0:
        raise ValidationError("limit must be positive.")

    stmt = select(Message).where(Message.chat_id == chat_id)
    if after is not None:
        stmt = stmt.where(Message.seq > after)
    if before is not None:
        stmt = stmt.where(Message.seq < before)

    if limit is not None and after is None:
        result = await db.execute(stmt.order_by(Message.seq.desc()).limit(limit))
        return list(reversed(result.scalars().all()))

    stmt = stmt.order_by(Message.seq.asc())
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
