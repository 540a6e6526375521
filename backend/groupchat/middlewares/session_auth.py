from typing import Optional

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.context import AppContext
from groupchat.database import get_db
from groupchat.models import Session
from groupchat.services import session_store


def extract_session_token(request: Request, session_id: Optional[str] = None) -> Optional[str]:
    if session_id:
        return session_id
    token = request.query_params.get("session_id") or request.headers.get("X-Session-ID")
    if token:
        return token
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth.split(" ", 1)[1]
    return None


def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx


# Dependency resolving the caller's live session; raises InvalidSession
async def get_current_session(
    request: Request,
    session_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_ctx),
) -> Session:
    return await session_store.resolve_session(db, ctx, extract_session_token(request, session_id))


async def get_current_user_id(session: Session = Depends(get_current_session)) -> int:
    return session.user_id
