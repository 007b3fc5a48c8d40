"""Message history and deletion routes."""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.message import MessageType
from app.realtime.hub import broadcast_to_group
from app.schemas.message import ChatMessageOut
from app.services import message_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{group_name}", response_model=list[ChatMessageOut])
def get_messages_for_group(group_name: str, db: Session = Depends(get_db)):
    """Full message history of a group, oldest first."""
    return message_service.list_for_group(db, group_name)


@router.delete("/{message_id}")
def delete_message(
    message_id: int,
    username: str = Query(..., description="Only the original sender may delete"),
    group_name: Optional[str] = Query(None, description="Must match the message's group when given"),
    db: Session = Depends(get_db),
):
    """Delete a message and notify the subscribers of the group it belongs to.

    A request from anyone but the sender leaves the message in place and
    broadcasts nothing.
    """
    owner_group = message_service.delete_message(db, message_id, username, group_name)
    if owner_group is not None:
        broadcast_to_group(owner_group, {
            "id": message_id,
            "group_name": owner_group,
            "sender": username,
            "content": "Message deleted",
            "type": MessageType.delete.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "reply_to": None,
        })
    return {"deleted": owner_group is not None}
