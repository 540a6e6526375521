from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi.responses import JSONResponse
from fastapi import Request

from groupchat.config import Settings

# Current limit strings; slowapi evaluates the callables below on every request
_limits = {"login": "20/minute", "register": "10/minute"}

# Global limiter instance for the app
limiter = Limiter(key_func=get_remote_address, default_limits=[])


def configure_limiter(settings: Settings) -> None:
    limiter.enabled = settings.rate_limit_enabled
    _limits["login"] = settings.login_rate_limit
    _limits["register"] = settings.register_rate_limit


def login_rate_limit() -> str:
    return _limits["login"]


def register_rate_limit() -> str:
    return _limits["register"]


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "detail": {
                "code": "RATE_LIMITED",
                "message": "Too many requests, please slow down.",
                "limit": str(exc.detail),
            }
        },
    )
