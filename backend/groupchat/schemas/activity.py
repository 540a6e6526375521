from pydantic import BaseModel
from typing import List, Optional

from groupchat.schemas.common import SqlInt


class ActivityRequest(BaseModel):
    user_id: SqlInt


class ActivityEventRead(BaseModel):
    id: int
    kind: str
    reason: Optional[str] = None
    device_id: int
    timestamp: int

    class Config:
        from_attributes = True


class ActivityResponse(BaseModel):
    user_id: int
    active: bool
    active_devices: int
    last_active: Optional[int] = None
    events: List[ActivityEventRead]
