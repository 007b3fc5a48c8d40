"""Pydantic schemas for chat messages and pub/sub frames."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.message import MessageType


class ReplyTo(BaseModel):
    sender: str
    content: str
    timestamp: Optional[str] = None


class ChatMessageIn(BaseModel):
    """A chat event published by a client to a group topic."""

    sender: str
    content: str = ""
    type: MessageType = MessageType.chat
    reply_to: Optional[ReplyTo] = None


class ChatMessageOut(BaseModel):
    id: int
    group_name: str
    sender: str
    content: str
    timestamp: datetime
    type: MessageType
    reply_to: Optional[ReplyTo] = None

    model_config = {"from_attributes": True}
