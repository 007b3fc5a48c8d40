"""ChatMessage ORM model."""
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, Text, DateTime, JSON, Enum as SAEnum
from app.database import Base


class MessageType(str, enum.Enum):
    chat = "CHAT"
    join = "JOIN"
    leave = "LEAVE"
    delete = "DELETE"  # broadcast-only notification, never stored


STORED_MESSAGE_TYPES = (MessageType.chat, MessageType.join, MessageType.leave)


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Plain column, not a foreign key: renaming a group rewrites it explicitly.
    group_name = Column(String(150), nullable=False, index=True)
    sender = Column(String(100), nullable=False)
    content = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    type = Column(SAEnum(MessageType), nullable=False, default=MessageType.chat)
    reply_to = Column(JSON, nullable=True)
