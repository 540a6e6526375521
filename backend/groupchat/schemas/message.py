from pydantic import BaseModel
from typing import List, Optional

from groupchat.schemas.common import SqlInt


class MessageCreateRequest(BaseModel):
    chat_id: SqlInt
    content: Optional[str] = None


class MessageCreateResponse(BaseModel):
    message_id: int
    seq: int
    timestamp: int


class MessageListRequest(BaseModel):
    # any field may come from the query string instead
    chat_id: Optional[SqlInt] = None
    after: Optional[SqlInt] = None
    before: Optional[SqlInt] = None
    limit: Optional[SqlInt] = None


class MessageRead(BaseModel):
    id: int
    chat_id: int
    user_id: int
    content: str
    timestamp: int
    seq: int

    class Config:
        from_attributes = True


class MessageListResponse(BaseModel):
    messages: List[MessageRead]
