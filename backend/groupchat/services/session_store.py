"""
Credential & session store.

Owns the ``users``, ``devices`` and ``sessions`` tables. A session is bound to a
single device; a device holds at most one active session, so a new login from
the same (ip, name) pair closes the previous one.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from passlib.context import CryptContext
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.context import AppContext
from groupchat.models import MAX_SQL_INT, CloseReason, Device, Session, SessionState, User
from groupchat.services.activity_service import record_login, record_logout
from groupchat.services.errors import AuthenticationFailed, DuplicateOrInvalid, InvalidSession
from groupchat.services.locks import device_lock_key
from groupchat.services.token_service import create_session_token, verify_session_token

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

UNKNOWN_DEVICE = "unknown"

# NONE -> ACTIVE -> CLOSED; CLOSED is terminal
_TRANSITIONS = {
    None: {SessionState.active},
    SessionState.active: {SessionState.closed},
    SessionState.closed: set(),
}


@dataclass
class LoginResult:
    session_id: str
    user_id: int
    device_id: int


def transition_session(session: Session, target: SessionState, now: int,
                       reason: Optional[CloseReason] = None) -> None:
    current = SessionState(session.state) if session.state else None
    if target not in _TRANSITIONS[current]:
        raise InvalidSession(f"Session cannot move from {current} to {target.value}.")
    session.state = target.value
    if target is SessionState.closed:
        session.closed_at = now
        session.close_reason = reason.value if reason else None


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


async def register(db: AsyncSession, ctx: AppContext, name: Optional[str], surname: Optional[str],
                   password: Optional[str]) -> int:
    fields = {"name": name, "surname": surname, "password": password}
    missing = [key for key, value in fields.items() if _is_blank(value)]
    if missing:
        raise DuplicateOrInvalid(f"Missing required fields: {', '.join(missing)}")
    user = User(
        name=name.strip(),
        surname=surname.strip(),
        password_hash=pwd_context.hash(password),
        created_at=ctx.clock(),
    )
    db.add(user)
    await db.commit()
    logger.info(f"Registered user {user.id}")
    return user.id


async def list_users(db: AsyncSession) -> List[User]:
    result = await db.execute(select(User).order_by(User.id.asc()))
    return list(result.scalars().all())


async def list_devices(db: AsyncSession, user_id: int) -> List[Device]:
    result = await db.execute(select(Device).where(Device.user_id == user_id).order_by(Device.id.asc()))
    return list(result.scalars().all())


async def _get_or_create_device(db: AsyncSession, user_id: int, ip: str, name: str, now: int) -> Device:
    result = await db.execute(
        select(Device)
        .where(Device.user_id == user_id, Device.ip == ip, Device.name == name)
        .with_for_update()
    )
    device = result.scalar_one_or_none()
    if device is None:
        device = Device(user_id=user_id, ip=ip, name=name, is_active=False, created_at=now, last_seen=now)
        db.add(device)
        await db.flush()
        logger.info(f"New device {device.id} for user {user_id}")
    return device


async def _lock_session_row(db: AsyncSession, session_id: str) -> Optional[Session]:
    result = await db.execute(
        select(Session)
        .where(Session.session_id == session_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _lock_device_row(db: AsyncSession, device_id: int) -> Device:
    result = await db.execute(
        select(Device)
        .where(Device.id == device_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


def _idle_expired(ctx: AppContext, session: Session, now: int) -> bool:
    timeout = ctx.settings.session_idle_timeout_seconds
    return timeout > 0 and session.last_seen + timeout * 1000 < now


def _ttl_expired(ctx: AppContext, session: Session, now: int) -> bool:
    ttl = ctx.settings.session_ttl_seconds
    return ttl > 0 and session.created_at + ttl * 1000 <= now


def _expired(ctx: AppContext, session: Session, now: int) -> bool:
    return _ttl_expired(ctx, session, now) or _idle_expired(ctx, session, now)


async def login(db: AsyncSession, ctx: AppContext, user_id: int, password: str,
                device_ip: Optional[str], device_name: Optional[str]) -> LoginResult:
    user = await db.get(User, user_id) if 0 < user_id <= MAX_SQL_INT else None
    if user is None or not password or not pwd_context.verify(password, user.password_hash):
        logger.info(f"Login failed for user {user_id}")
        raise AuthenticationFailed()

    ip = device_ip or UNKNOWN_DEVICE
    name = device_name or UNKNOWN_DEVICE
    async with ctx.locks.hold(device_lock_key(user_id, ip, name)):
        now = ctx.clock()
        device = await _get_or_create_device(db, user_id, ip, name, now)

        stale = await db.execute(
            select(Session)
            .where(Session.device_id == device.id, Session.state == SessionState.active.value)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        for previous in stale.scalars().all():
            transition_session(previous, SessionState.closed, now, CloseReason.superseded)
            record_logout(db, user_id, device.id, previous.session_id, now, CloseReason.superseded.value)
            logger.info(f"Session on device {device.id} superseded by new login")

        device.is_active = True
        device.last_seen = now
        session = Session(
            session_id=secrets.token_hex(16),
            user_id=user_id,
            device_id=device.id,
            created_at=now,
            last_seen=now,
        )
        transition_session(session, SessionState.active, now)
        db.add(session)
        record_login(db, user_id, device.id, session.session_id, now)
        token = create_session_token(
            session.session_id,
            user_id,
            ctx.settings.session_secret,
            ctx.settings.session_ttl_seconds,
            issued_at=datetime.fromtimestamp(now / 1000, tz=timezone.utc),
        )
        await db.commit()

    logger.info(f"User {user_id} logged in on device {device.id}")
    return LoginResult(session_id=token, user_id=user_id, device_id=device.id)


async def _lookup_session(db: AsyncSession, ctx: AppContext, token: Optional[str]) -> Session:
    if not token:
        raise InvalidSession("Missing session_id.")
    # TTL is judged on the row below, so a signed but expired token still names its session
    payload = verify_session_token(token, ctx.settings.session_secret, verify_exp=False)
    if payload is None:
        raise InvalidSession()
    session = await db.get(Session, payload["sid"])
    if session is None or session.user_id != payload["uid"]:
        raise InvalidSession()
    if session.state != SessionState.active.value:
        raise InvalidSession("Session is closed.")
    return session


async def resolve_session(db: AsyncSession, ctx: AppContext, token: Optional[str]) -> Session:
    """Return the live session for a token without modifying anything.

    Both expiry policies are evaluated against the app clock.
    """
    session = await _lookup_session(db, ctx, token)
    if _expired(ctx, session, ctx.clock()):
        raise InvalidSession("Session expired.")
    return session


async def _resolve_for_write(db: AsyncSession, ctx: AppContext, token: Optional[str]) -> Session:
    """Resolve for logout/heartbeat; a session past its deadline is closed as expired first."""
    session = await _lookup_session(db, ctx, token)
    if _expired(ctx, session, ctx.clock()):
        await _close_session(db, ctx, session.session_id, CloseReason.expired)
        raise InvalidSession("Session expired.")
    return session


async def resolve(db: AsyncSession, ctx: AppContext, token: Optional[str]) -> int:
    session = await resolve_session(db, ctx, token)
    return session.user_id


async def _close_session(db: AsyncSession, ctx: AppContext, session_id: str, reason: CloseReason) -> Optional[Session]:
    """Close an active session and deactivate its device, under the device lock.

    Returns None when the session is no longer active once the lock is held.
    """
    session = await db.get(Session, session_id)
    if session is None:
        return None
    device = await db.get(Device, session.device_id)
    async with ctx.locks.hold(device_lock_key(device.user_id, device.ip, device.name)):
        session = await _lock_session_row(db, session_id)
        if session is None or session.state != SessionState.active.value:
            return None
        now = ctx.clock()
        if reason is CloseReason.expired and not _expired(ctx, session, now):
            return None
        device = await _lock_device_row(db, session.device_id)
        transition_session(session, SessionState.closed, now, reason)
        device.is_active = False
        device.last_seen = now
        record_logout(db, session.user_id, device.id, session.session_id, now, reason.value)
        await db.commit()
    return session


async def logout(db: AsyncSession, ctx: AppContext, token: Optional[str]) -> None:
    session = await _resolve_for_write(db, ctx, token)
    closed = await _close_session(db, ctx, session.session_id, CloseReason.logout)
    if closed is None:
        # lost a race with a superseding login or the reaper
        raise InvalidSession("Session is closed.")
    logger.info(f"User {closed.user_id} logged out from device {closed.device_id}")


async def heartbeat(db: AsyncSession, ctx: AppContext, token: Optional[str]) -> None:
    session = await _resolve_for_write(db, ctx, token)
    device = await db.get(Device, session.device_id)
    async with ctx.locks.hold(device_lock_key(device.user_id, device.ip, device.name)):
        session = await _lock_session_row(db, session.session_id)
        if session is None or session.state != SessionState.active.value:
            raise InvalidSession("Session is closed.")
        device = await _lock_device_row(db, session.device_id)
        now = ctx.clock()
        session.last_seen = now
        device.last_seen = now
        await db.commit()


async def reap_expired_sessions(db: AsyncSession, ctx: AppContext) -> int:
    """Close every session past its idle timeout or its TTL."""
    idle = ctx.settings.session_idle_timeout_seconds
    ttl = ctx.settings.session_ttl_seconds
    if idle <= 0 and ttl <= 0:
        return 0
    now = ctx.clock()
    deadlines = []
    if idle > 0:
        deadlines.append(Session.last_seen < now - idle * 1000)
    if ttl > 0:
        deadlines.append(Session.created_at <= now - ttl * 1000)
    result = await db.execute(
        select(Session.session_id).where(Session.state == SessionState.active.value, or_(*deadlines))
    )
    reaped = 0
    for session_id in result.scalars().all():
        if await _close_session(db, ctx, session_id, CloseReason.expired) is not None:
            reaped += 1
    if reaped:
        logger.info(f"Reaped {reaped} expired session(s)")
    return reaped
