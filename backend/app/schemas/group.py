"""Pydantic schemas for chat groups."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from app.config import settings


class GroupCreate(BaseModel):
    group_name: str
    created_by: str
    expiry_minutes: int = settings.DEFAULT_EXPIRY_MINUTES


class GroupOut(BaseModel):
    group_name: str
    created_by: str
    created_at: datetime
    expires_in: int
    is_expired: bool
    members: list[str] = []

    model_config = {"from_attributes": True}

    @field_validator("members", mode="before")
    @classmethod
    def _member_names(cls, value):
        # ORM rows carry GroupMember objects; the wire format is plain usernames
        return [getattr(m, "user_name", m) for m in value]


class MembershipRequest(BaseModel):
    username: str


class GroupSettingsUpdate(BaseModel):
    """Rename and/or reschedule a group. At least one field must be set."""

    new_group_name: Optional[str] = None
    new_expiry_minutes: Optional[int] = None


class GroupExpiryOut(BaseModel):
    minutes_left: int
    is_expired: bool
