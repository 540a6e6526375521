import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from groupchat.api import auth, chats, messages, users
from groupchat.config import Settings, configure_logging, validate_environment
from groupchat.context import AppContext
from groupchat.database import build_engine, build_sessionmaker, init_models
from groupchat.security import SecurityConfig
from groupchat.services.errors import ChatServiceError, InternalError, ValidationError
from groupchat.services.reaper import run_session_reaper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models(app.state.engine)
    reaper: Optional[asyncio.Task] = None
    settings = app.state.settings
    if settings.session_idle_timeout_seconds > 0 or settings.session_ttl_seconds > 0:
        reaper = asyncio.create_task(run_session_reaper(app.state.sessionmaker, app.state.ctx))
    logger.info("GroupChat backend started")
    try:
        yield
    finally:
        if reaper is not None:
            reaper.cancel()
            with suppress(asyncio.CancelledError):
                await reaper
        await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)
    validate_environment(settings)

    app = FastAPI(title="GroupChat Backend", version="0.1.0", lifespan=lifespan)
    engine = build_engine(settings.database_url, echo=settings.sql_echo)
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.ctx = AppContext(settings=settings)

    # JSON error responses: {"detail": {"code": ..., "message": ...}}
    @app.exception_handler(ChatServiceError)
    async def chat_service_error_handler(request: Request, exc: ChatServiceError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail if exc.detail else str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        detail = ValidationError("Invalid request payload.").to_detail()
        detail["errors"] = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=422, content={"detail": detail})

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception(f"Storage failure on {request.method} {request.url.path}")
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content={"detail": error.to_detail()})

    SecurityConfig(settings).apply_security_middleware(app)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    # Routers
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(chats.router)
    app.include_router(messages.router)

    return app


app = create_app()
