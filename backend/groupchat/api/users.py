from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.context import AppContext
from groupchat.database import get_db
from groupchat.middlewares.session_auth import extract_session_token, get_ctx, get_current_user_id
from groupchat.models import MAX_SQL_INT
from groupchat.schemas.common import SQL_INT_MIN
from groupchat.schemas.activity import ActivityEventRead, ActivityRequest, ActivityResponse
from groupchat.schemas.user import DeviceListResponse, DeviceRead, UserListResponse, UserRead
from groupchat.services import activity_service, session_store
from groupchat.services.errors import ValidationError
from groupchat.services.retry import with_read_retry

router = APIRouter(tags=["users"])


@router.get("/users", response_model=UserListResponse)
@router.get("/getUsers", response_model=UserListResponse, include_in_schema=False)
async def list_users(db: AsyncSession = Depends(get_db), ctx: AppContext = Depends(get_ctx)):
    users = await with_read_retry(db, lambda: session_store.list_users(db), ctx.settings.read_retry_attempts)
    return UserListResponse(users=[UserRead.model_validate(u) for u in users])


@router.get("/devices", response_model=DeviceListResponse)
async def list_devices(user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db),
                       ctx: AppContext = Depends(get_ctx)):
    devices = await with_read_retry(
        db, lambda: session_store.list_devices(db, user_id), ctx.settings.read_retry_attempts
    )
    return DeviceListResponse(devices=[DeviceRead.model_validate(d) for d in devices])


@router.api_route("/getActivity", methods=["GET", "POST"], response_model=ActivityResponse)
async def get_activity(
    request: Request,
    user_id: Optional[int] = Query(None, ge=SQL_INT_MIN, le=MAX_SQL_INT),
    body: Optional[ActivityRequest] = Body(None),
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_ctx),
):
    """Login/logout timeline and derived presence of a user.

    Requires a session only when ``ACTIVITY_REQUIRE_SESSION`` is enabled.
    """
    if ctx.settings.activity_require_session:
        await session_store.resolve(db, ctx, extract_session_token(request))
    target = user_id if user_id is not None else (body.user_id if body else None)
    if target is None:
        raise ValidationError("user_id is required.")

    async def read():
        return (
            await activity_service.get_activity(db, target),
            await activity_service.get_presence(db, target),
        )

    events, presence = await with_read_retry(db, read, ctx.settings.read_retry_attempts)
    return ActivityResponse(
        user_id=target,
        active=presence.active,
        active_devices=presence.active_devices,
        last_active=presence.last_active,
        events=[ActivityEventRead.model_validate(e) for e in events],
    )
