from pydantic import BaseModel
from typing import Optional


class RegisterRequest(BaseModel):
    # Presence is checked by the session store so blanks and omissions
    # report the same error kind
    name: Optional[str] = None
    surname: Optional[str] = None
    password: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: int


class LoginRequest(BaseModel):
    user_id: int
    password: str
    device_name: Optional[str] = None


class LoginResponse(BaseModel):
    session_id: str
    user_id: int
    device_id: int


class StatusResponse(BaseModel):
    status: str = "ok"
