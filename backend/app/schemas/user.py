"""Pydantic schemas for Users."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str


class LoginResponse(BaseModel):
    status: str = "ok"
    username: str


class UserOut(BaseModel):
    user_name: str
    session_id: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
