from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.context import AppContext
from groupchat.database import get_db
from groupchat.middlewares.session_auth import get_ctx, get_current_user_id
from groupchat.schemas.chat import (
    ChatCreateRequest, ChatCreateResponse, ChatListResponse, ChatRead, InviteRequest, InviteResponse
)
from groupchat.services import membership_service
from groupchat.services.retry import with_read_retry

router = APIRouter(tags=["chats"])


@router.post("/create", response_model=ChatCreateResponse)
async def create_chat(data: ChatCreateRequest, user_id: int = Depends(get_current_user_id),
                      db: AsyncSession = Depends(get_db), ctx: AppContext = Depends(get_ctx)):
    chat_id = await membership_service.create_chat(db, ctx, user_id, data.title, data.description)
    return ChatCreateResponse(chat_id=chat_id)


@router.get("/chats", response_model=ChatListResponse)
async def list_chats(user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db),
                     ctx: AppContext = Depends(get_ctx)):
    chats = await with_read_retry(
        db, lambda: membership_service.chats_for(db, user_id), ctx.settings.read_retry_attempts
    )
    return ChatListResponse(chats=[ChatRead.model_validate(c) for c in chats])


@router.post("/invite", response_model=InviteResponse)
async def invite(data: InviteRequest, user_id: int = Depends(get_current_user_id),
                 db: AsyncSession = Depends(get_db), ctx: AppContext = Depends(get_ctx)):
    created = await membership_service.invite(db, ctx, user_id, data.chat_id, data.user_id)
    return InviteResponse(created=created)
