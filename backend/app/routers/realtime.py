"""WebSocket pub/sub endpoint: publish chat events to a group, receive its topic."""
import asyncio
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.database import get_db
from app.models.message import ChatMessage
from app.realtime.hub import Subscription, broadcast_to_group, group_topic, hub
from app.schemas.message import ChatMessageIn, ChatMessageOut
from app.services import group_service, message_service
from app.services.group_locks import group_locks

logger = logging.getLogger(__name__)
router = APIRouter()

GROUP_NOT_FOUND_CLOSE_CODE = 4404


class _GroupGone(Exception):
    """The group was renamed or swept while the socket was open."""


async def _forward(websocket: WebSocket, sub: Subscription) -> None:
    """Push everything published on the subscription's topic to the socket."""
    try:
        while True:
            payload = await sub.queue.get()
            await websocket.send_json(payload)
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Delivery to a subscriber of %s failed", sub.topic)


async def _stop_forwarding(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


def _store(db: Session, group_name: str, event: ChatMessageIn) -> Optional[ChatMessage]:
    """Append the event unless the group no longer exists. Returns None if it is gone."""
    with group_locks.hold(group_name):
        if not group_service.group_exists(db, group_name):
            return None
        return message_service.append_message(
            db,
            group_name,
            event.sender,
            event.content,
            event.type,
            event.reply_to.model_dump() if event.reply_to else None,
        )


async def _publish(websocket: WebSocket, db: Session, group_name: str, raw: str) -> None:
    """Persist one chat event, then fan the stored record out to the group."""
    try:
        event = ChatMessageIn.model_validate_json(raw)
    except ValidationError:
        logger.warning("Rejected malformed chat event for group %s", group_name)
        await websocket.send_json({"error": "Invalid chat event"})
        return

    try:
        message = await run_in_threadpool(_store, db, group_name, event)
    except HTTPException as exc:
        await websocket.send_json({"error": exc.detail})
        return
    except Exception:
        logger.exception("Failed to save message for group %s", group_name)
        await run_in_threadpool(db.rollback)
        await websocket.send_json({"error": "Message could not be saved"})
        return

    if message is None:
        logger.info("Dropped message for vanished group %s", group_name)
        await websocket.send_json({"error": "Group no longer exists"})
        raise _GroupGone(group_name)

    payload = ChatMessageOut.model_validate(message).model_dump(mode="json")
    broadcast_to_group(group_name, payload)


@router.websocket("/ws/groups/{group_name}")
async def group_channel(websocket: WebSocket, group_name: str, db: Session = Depends(get_db)):
    """Subscribe to a group's topic and publish chat events to it."""
    if not await run_in_threadpool(group_service.group_exists, db, group_name):
        logger.info("Refused subscription to unknown group %s", group_name)
        await websocket.close(code=GROUP_NOT_FOUND_CLOSE_CODE)
        return

    await websocket.accept()
    sub = hub.subscribe(group_topic(group_name))
    forward_task = asyncio.create_task(_forward(websocket, sub))
    gone = False
    try:
        while True:
            raw = await websocket.receive_text()
            await _publish(websocket, db, group_name, raw)
    except WebSocketDisconnect:
        logger.info("Subscriber left group %s", group_name)
    except _GroupGone:
        gone = True
    finally:
        hub.unsubscribe(sub)
        await _stop_forwarding(forward_task)
    if gone:
        await websocket.close(code=GROUP_NOT_FOUND_CLOSE_CODE)
