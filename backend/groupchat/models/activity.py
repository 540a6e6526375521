from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey
from groupchat.models.user import Base
import enum


class ActivityKind(str, enum.Enum):
    login = "login"
    logout = "logout"


class ActivityEvent(Base):
    __tablename__ = "activity_events"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=False)
    session_id = Column(String, nullable=False, index=True)
    kind = Column(String, nullable=False)
    reason = Column(String, nullable=True)
    timestamp = Column(BigInteger, nullable=False)
