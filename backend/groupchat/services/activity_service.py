from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.models import ActivityEvent, ActivityKind, Device, Session, SessionState, User
from groupchat.services.errors import UnknownUser


@dataclass
class Presence:
    user_id: int
    active: bool
    active_devices: int
    last_active: Optional[int]


# The record_* helpers only stage the event; the caller commits it together with
# the session transition that produced it.
def record_login(db: AsyncSession, user_id: int, device_id: int, session_id: str, ts: int) -> ActivityEvent:
    event = ActivityEvent(
        user_id=user_id,
        device_id=device_id,
        session_id=session_id,
        kind=ActivityKind.login.value,
        reason=None,
        timestamp=ts,
    )
    db.add(event)
    return event


def record_logout(db: AsyncSession, user_id: int, device_id: int, session_id: str, ts: int,
                  reason: Optional[str] = None) -> ActivityEvent:
    event = ActivityEvent(
        user_id=user_id,
        device_id=device_id,
        session_id=session_id,
        kind=ActivityKind.logout.value,
        reason=reason,
        timestamp=ts,
    )
    db.add(event)
    return event


async def _require_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise UnknownUser(f"User {user_id} not found.")
    return user


async def get_activity(db: AsyncSession, user_id: int) -> List[ActivityEvent]:
    """Full login/logout history of a user across all devices, oldest first."""
    await _require_user(db, user_id)
    result = await db.execute(
        select(ActivityEvent)
        .where(ActivityEvent.user_id == user_id)
        .order_by(ActivityEvent.timestamp.asc(), ActivityEvent.id.asc())
    )
    return list(result.scalars().all())


async def get_presence(db: AsyncSession, user_id: int) -> Presence:
    """Derive presence from devices, live sessions and the activity log.

    ``last_active`` is recomputed on every call and never stored.
    """
    await _require_user(db, user_id)
    active_devices = (await db.execute(
        select(func.count(Device.id)).where(Device.user_id == user_id, Device.is_active.is_(True))
    )).scalar() or 0
    last_event = (await db.execute(
        select(func.max(ActivityEvent.timestamp)).where(ActivityEvent.user_id == user_id)
    )).scalar()
    last_heartbeat = (await db.execute(
        select(func.max(Session.last_seen)).where(
            Session.user_id == user_id, Session.state == SessionState.active.value
        )
    )).scalar()
    candidates = [ts for ts in (last_event, last_heartbeat) if ts is not None]
    return Presence(
        user_id=user_id,
        active=active_devices > 0,
        active_devices=active_devices,
        last_active=max(candidates) if candidates else None,
    )
