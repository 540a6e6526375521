from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey
from groupchat.models.user import Base
import enum


class SessionState(str, enum.Enum):
    active = "active"
    closed = "closed"


class CloseReason(str, enum.Enum):
    logout = "logout"
    superseded = "superseded"
    expired = "expired"


class Session(Base):
    __tablename__ = "sessions"
    session_id = Column(String, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=False, index=True)
    state = Column(String, nullable=False, index=True)
    created_at = Column(BigInteger, nullable=False)
    last_seen = Column(BigInteger, nullable=False)
    closed_at = Column(BigInteger, nullable=True)
    close_reason = Column(String, nullable=True)
