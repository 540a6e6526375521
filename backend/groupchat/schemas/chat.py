from pydantic import BaseModel
from typing import List, Optional

from groupchat.schemas.common import SqlInt


class ChatCreateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = ""


class ChatCreateResponse(BaseModel):
    chat_id: int


class ChatRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class ChatListResponse(BaseModel):
    chats: List[ChatRead]


class InviteRequest(BaseModel):
    chat_id: SqlInt
    user_id: SqlInt


class InviteResponse(BaseModel):
    status: str = "ok"
    created: bool
