from sqlalchemy import Column, Integer, String, BigInteger, Boolean, ForeignKey, UniqueConstraint
from groupchat.models.user import Base


class Device(Base):
    __tablename__ = "devices"
    __table_args__ = (
        UniqueConstraint("user_id", "ip", "name", name="uq_devices_user_ip_name"),
    )
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ip = Column(String, nullable=False)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    created_at = Column(BigInteger, nullable=False)
    last_seen = Column(BigInteger, nullable=False)
