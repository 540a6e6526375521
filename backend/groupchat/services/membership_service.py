import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.context import AppContext
from groupchat.models import Chat, Invitation, User
from groupchat.services.errors import NotAMember, UnknownChat, UnknownUser, ValidationError
from groupchat.services.locks import chat_lock_key

logger = logging.getLogger(__name__)


async def get_chat(db: AsyncSession, chat_id: int, for_update: bool = False) -> Chat:
    stmt = select(Chat).where(Chat.id == chat_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    chat = (await db.execute(stmt)).scalar_one_or_none()
    if chat is None:
        raise UnknownChat(f"Chat {chat_id} not found.")
    return chat


async def is_member(db: AsyncSession, user_id: int, chat_id: int) -> bool:
    result = await db.execute(
        select(Invitation.id).where(Invitation.user_id == user_id, Invitation.chat_id == chat_id)
    )
    return result.first() is not None


async def create_chat(db: AsyncSession, ctx: AppContext, owner_id: int, title: Optional[str],
                      description: Optional[str]) -> int:
    """Create a chat; the owner becomes its first member in the same transaction."""
    if title is None or not title.strip():
        raise ValidationError("Chat title must not be empty.")
    now = ctx.clock()
    chat = Chat(
        title=title.strip(),
        description=description or "",
        owner_id=owner_id,
        created_at=now,
        message_seq=0,
    )
    db.add(chat)
    await db.flush()
    db.add(Invitation(user_id=owner_id, chat_id=chat.id, invited_by=owner_id, created_at=now))
    await db.commit()
    logger.info(f"User {owner_id} created chat {chat.id}")
    return chat.id


async def invite(db: AsyncSession, ctx: AppContext, actor_id: int, chat_id: int, target_user_id: int) -> bool:
    """Grant ``target_user_id`` membership of a chat.

    Returns True when a membership row was created, False when the user was
    already a member. Membership is committed before this returns.
    """
    async with ctx.locks.hold(chat_lock_key(chat_id)):
        await get_chat(db, chat_id, for_update=True)
        if not await is_member(db, actor_id, chat_id):
            raise NotAMember()
        if await db.get(User, target_user_id) is None:
            raise UnknownUser(f"User {target_user_id} not found.")
        if await is_member(db, target_user_id, chat_id):
            await db.rollback()
            return False
        db.add(Invitation(user_id=target_user_id, chat_id=chat_id, invited_by=actor_id, created_at=ctx.clock()))
        await db.commit()
    logger.info(f"User {actor_id} invited user {target_user_id} to chat {chat_id}")
    return True


async def chats_for(db: AsyncSession, user_id: int) -> List[Chat]:
    """Chats the user belongs to, in the order memberships were granted."""
    result = await db.execute(
        select(Chat)
        .join(Invitation, Invitation.chat_id == Chat.id)
        .where(Invitation.user_id == user_id)
        .order_by(Invitation.id.asc())
    )
    return list(result.scalars().all())


async def members_of(db: AsyncSession, chat_id: int) -> List[User]:
    await get_chat(db, chat_id)
    result = await db.execute(
        select(User)
        .join(Invitation, Invitation.user_id == User.id)
        .where(Invitation.chat_id == chat_id)
        .order_by(Invitation.id.asc())
    )
    return list(result.scalars().all())
