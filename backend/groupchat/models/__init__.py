from groupchat.models.user import MAX_SQL_INT, Base, User
from groupchat.models.device import Device
from groupchat.models.session import Session, SessionState, CloseReason
from groupchat.models.chat import Chat, Invitation
from groupchat.models.message import Message
from groupchat.models.activity import ActivityEvent, ActivityKind

__all__ = [
    "MAX_SQL_INT",
    "Base",
    "User",
    "Device",
    "Session",
    "SessionState",
    "CloseReason",
    "Chat",
    "Invitation",
    "Message",
    "ActivityEvent",
    "ActivityKind",
]
