import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
SESSION_SCOPE = "session"


def create_session_token(session_id: str, user_id: int, secret: str, ttl_seconds: int = 0,
                         issued_at: Optional[datetime] = None) -> str:
    """Sign a session token. ``ttl_seconds`` <= 0 issues a token without ``exp``."""
    issued_at = issued_at or datetime.now(timezone.utc)
    to_encode = {
        "sid": session_id,
        "uid": user_id,
        "scope": SESSION_SCOPE,
        "iat": issued_at,
    }
    if ttl_seconds > 0:
        to_encode["exp"] = issued_at + timedelta(seconds=ttl_seconds)
    return jwt.encode(to_encode, secret, algorithm=JWT_ALGORITHM)


def verify_session_token(token: str, secret: str, verify_exp: bool = True) -> Optional[dict]:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM], options={"verify_exp": verify_exp})
    except JWTError as e:
        logger.debug(f"Rejected session token: {e}")
        return None
    if payload.get("scope") != SESSION_SCOPE:
        return None
    if not isinstance(payload.get("sid"), str) or not isinstance(payload.get("uid"), int):
        return None
    return payload
