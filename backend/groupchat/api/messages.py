from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.context import AppContext
from groupchat.database import get_db
from groupchat.middlewares.session_auth import get_ctx, get_current_user_id
from groupchat.models import MAX_SQL_INT
from groupchat.schemas.common import SQL_INT_MIN
from groupchat.schemas.message import (
    MessageCreateRequest, MessageCreateResponse, MessageListRequest, MessageListResponse, MessageRead
)
from groupchat.services import message_service
from groupchat.services.errors import ValidationError
from groupchat.services.retry import with_read_retry

router = APIRouter(tags=["messages"])


@router.post("/message", response_model=MessageCreateResponse)
async def post_message(data: MessageCreateRequest, user_id: int = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db), ctx: AppContext = Depends(get_ctx)):
    message = await message_service.post(db, ctx, user_id, data.chat_id, data.content)
    return MessageCreateResponse(message_id=message.id, seq=message.seq, timestamp=message.timestamp)


@router.api_route("/messages", methods=["GET", "POST"], response_model=MessageListResponse)
async def list_messages(
    chat_id: Optional[int] = Query(None, ge=SQL_INT_MIN, le=MAX_SQL_INT),
    after: Optional[int] = Query(None, ge=SQL_INT_MIN, le=MAX_SQL_INT),
    before: Optional[int] = Query(None, ge=SQL_INT_MIN, le=MAX_SQL_INT),
    limit: Optional[int] = Query(None, ge=SQL_INT_MIN, le=MAX_SQL_INT),
    body: Optional[MessageListRequest] = Body(None),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_ctx),
):
    # query parameters win over a JSON body
    if body is not None:
        chat_id = chat_id if chat_id is not None else body.chat_id
        after = after if after is not None else body.after
        before = before if before is not None else body.before
        limit = limit if limit is not None else body.limit
    if chat_id is None:
        raise ValidationError("chat_id is required.")
    messages = await with_read_retry(
        db,
        lambda: message_service.list_messages(db, user_id, chat_id, after=after, before=before, limit=limit),
        ctx.settings.read_retry_attempts,
    )
    return MessageListResponse(messages=[MessageRead.model_validate(m) for m in messages])
