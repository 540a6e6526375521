from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.api.util import extract_client_ip, extract_device_name
from groupchat.context import AppContext
from groupchat.database import get_db
from groupchat.middlewares.session_auth import extract_session_token, get_ctx
from groupchat.schemas.auth import (
    RegisterRequest, RegisterResponse, LoginRequest, LoginResponse, StatusResponse
)
from groupchat.services import session_store
from groupchat.services.rate_limit import limiter, login_rate_limit, register_rate_limit

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=RegisterResponse)
@limiter.limit(register_rate_limit)
async def register(request: Request, data: RegisterRequest, db: AsyncSession = Depends(get_db),
                   ctx: AppContext = Depends(get_ctx)):
    user_id = await session_store.register(db, ctx, data.name, data.surname, data.password)
    return RegisterResponse(user_id=user_id)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(login_rate_limit)
async def login(request: Request, data: LoginRequest, db: AsyncSession = Depends(get_db),
                ctx: AppContext = Depends(get_ctx)):
    result = await session_store.login(
        db,
        ctx,
        data.user_id,
        data.password,
        device_ip=extract_client_ip(request),
        device_name=extract_device_name(request, data.device_name),
    )
    return LoginResponse(session_id=result.session_id, user_id=result.user_id, device_id=result.device_id)


@router.api_route("/logout", methods=["GET", "POST"], response_model=StatusResponse)
async def logout(request: Request, db: AsyncSession = Depends(get_db), ctx: AppContext = Depends(get_ctx)):
    await session_store.logout(db, ctx, extract_session_token(request))
    return StatusResponse()


@router.post("/heartbeat", response_model=StatusResponse)
@router.post("/sendActivity", response_model=StatusResponse, include_in_schema=False)
async def heartbeat(request: Request, db: AsyncSession = Depends(get_db), ctx: AppContext = Depends(get_ctx)):
    await session_store.heartbeat(db, ctx, extract_session_token(request))
    return StatusResponse()
