"""
Security Configuration Module

Middleware stack and rate limiting for the chat backend.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import logging

from groupchat.config import Settings
from groupchat.services.rate_limit import configure_limiter, limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


class SecurityConfig:
    """Security configuration class"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.environment = settings.environment
        self.allowed_hosts = settings.allowed_hosts
        self.cors_origins = settings.cors_origins

    def apply_security_middleware(self, app: FastAPI) -> None:
        """Apply all security middleware to the FastAPI app."""

        # Rate limiting
        configure_limiter(self.settings)
        app.state.limiter = limiter
        app.add_middleware(SlowAPIMiddleware)
        app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

        # Trusted hosts
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=self.allowed_hosts,
        )

        # GZip
        app.add_middleware(GZipMiddleware, minimum_size=1000)

        # Security headers
        app.add_middleware(SecurityHeadersMiddleware)

        # Finally, add CORS outermost so even error responses include CORS headers
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=[
                "Accept",
                "Accept-Language",
                "Content-Language",
                "Content-Type",
                "Authorization",
                "X-Session-ID",
                "X-Requested-With",
                "Origin",
            ],
            max_age=86400,
        )

        logger.info(f"Security middleware applied for environment: {self.environment}")


class SecurityHeadersMiddleware:
    """Middleware to add security headers to all responses"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        async def send_with_headers(message):
            if message.get("type") == "http.response.start":
                existing_headers = list(message.get("headers", []))

                security_headers = {
                    b"X-Content-Type-Options": b"nosniff",
                    b"X-Frame-Options": b"DENY",
                    b"Referrer-Policy": b"no-referrer",
                    b"Cache-Control": b"no-store",
                }

                for k, v in security_headers.items():
                    existing_headers.append((k, v))

                message["headers"] = existing_headers

            await send(message)

        return await self.app(scope, receive, send_with_headers)
