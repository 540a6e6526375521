from pydantic import BaseModel
from typing import List, Optional


class UserRead(BaseModel):
    id: int
    name: str
    surname: str

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: List[UserRead]


class DeviceRead(BaseModel):
    id: int
    ip: str
    name: str
    is_active: bool
    last_seen: Optional[int] = None

    class Config:
        from_attributes = True


class DeviceListResponse(BaseModel):
    devices: List[DeviceRead]
