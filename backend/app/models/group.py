"""ChatGroup and GroupMember ORM models."""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatGroup(Base):
    __tablename__ = "chat_groups"

    group_name = Column(String(150), primary_key=True)
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_in = Column(Integer, nullable=False)  # minutes left, counted down by the scheduler
    is_expired = Column(Boolean, nullable=False, default=False)

    members = relationship(
        "GroupMember",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupMember.joined_at",
    )

    @property
    def member_names(self) -> list[str]:
        return [m.user_name for m in self.members]

    def has_member(self, user_name: str) -> bool:
        return any(m.user_name == user_name for m in self.members)


class GroupMember(Base):
    __tablename__ = "chat_group_members"

    group_name = Column(String(150), ForeignKey("chat_groups.group_name"), primary_key=True)
    user_name = Column(String(100), primary_key=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    group = relationship("ChatGroup", back_populates="members")
