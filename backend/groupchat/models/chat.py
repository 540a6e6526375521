from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, UniqueConstraint
from groupchat.models.user import Base


class Chat(Base):
    __tablename__ = "chats"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(BigInteger, nullable=False)
    # last sequence number handed out to a message in this chat
    message_seq = Column(Integer, default=0, nullable=False)


class Invitation(Base):
    __tablename__ = "invitations"
    __table_args__ = (
        UniqueConstraint("user_id", "chat_id", name="uq_invitations_user_chat"),
    )
    # autoincrement id doubles as membership creation order
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    chat_id = Column(Integer, ForeignKey("chats.id"), nullable=False, index=True)
    invited_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(BigInteger, nullable=False)
