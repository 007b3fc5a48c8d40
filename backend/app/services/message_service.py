"""Message store: append-only per-group log read in timestamp order."""
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.errors import InvalidArgumentError, NotFoundError
from app.models.message import ChatMessage, MessageType, STORED_MESSAGE_TYPES

logger = logging.getLogger(__name__)


def append_message(
    db: Session,
    group_name: str,
    sender: str,
    content: str,
    message_type: MessageType = MessageType.chat,
    reply_to: Optional[dict[str, Any]] = None,
) -> ChatMessage:
    """Persist a message and return it with its assigned id and timestamp."""
    if not sender or not sender.strip():
        raise InvalidArgumentError("Message sender must not be empty")
    try:
        message_type = MessageType(message_type)
    except ValueError:
        raise InvalidArgumentError(f"Unknown message type: {message_type}") from None
    if message_type not in STORED_MESSAGE_TYPES:
        raise InvalidArgumentError(f"Message type {message_type.value} cannot be sent")

    message = ChatMessage(
        group_name=group_name,
        sender=sender,
        content=content or "",
        type=message_type,
        reply_to=reply_to,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info("Message %s saved to group %s by %s", message.id, group_name, sender)
    return message


def list_for_group(db: Session, group_name: str) -> list[ChatMessage]:
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.group_name == group_name)
        .order_by(ChatMessage.timestamp, ChatMessage.id)
        .all()
    )


def get_message(db: Session, message_id: int) -> ChatMessage:
    message = db.query(ChatMessage).filter(ChatMessage.id == message_id).first()
    if not message:
        raise NotFoundError("Message not found")
    return message


def delete_message(
    db: Session,
    message_id: int,
    requester: str,
    group_name: Optional[str] = None,
) -> Optional[str]:
    """Delete a message if ``requester`` sent it.

    Returns the name of the group the message belonged to, or None (message
    untouched) for anyone else. When ``group_name`` is given the message must
    belong to that group.
    """
    message = get_message(db, message_id)
    if group_name is not None and message.group_name != group_name:
        logger.info("Message %s is not in group %s", message_id, group_name)
        raise NotFoundError("Message not found in this group")
    if message.sender != requester:
        logger.info(
            "DELETE DENIED: %s tried to delete message %s sent by %s",
            requester, message_id, message.sender,
        )
        return None

    owner_group = message.group_name
    db.delete(message)
    db.commit()
    logger.info("DELETE: %s deleted message %s from group %s", requester, message_id, owner_group)
    return owner_group


def reassign_group(db: Session, old_name: str, new_name: str) -> int:
    """Move every message of ``old_name`` to ``new_name``.

    Flushes without committing: the caller owns the transaction.
    """
    moved = (
        db.query(ChatMessage)
        .filter(ChatMessage.group_name == old_name)
        .update({ChatMessage.group_name: new_name}, synchronize_session="fetch")
    )
    db.flush()
    logger.info("Reassigned %d messages from group %s to %s", moved, old_name, new_name)
    return moved
