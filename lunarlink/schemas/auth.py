from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class LoginRequest(BaseModel):
    password: str = Field(..., description="Admin password or today's user password")


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Role
    expires_at: datetime


class SessionInfo(BaseModel):
    role: Role
    session_id: str
    issued_at: datetime
    expires_at: datetime
