"""Publish/subscribe hub fanning group messages out to WebSocket subscribers.

Each subscriber owns an asyncio Queue bound to the event loop it subscribed
from. ``publish`` is plain synchronous code that hands payloads to those
loops with ``call_soon_threadsafe``, so sync route handlers running in the
thread pool can broadcast as well as async ones.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


def group_topic(group_name: str) -> str:
    return f"group/{group_name}"


@dataclass(eq=False)
class Subscription:
    topic: str
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)


class GroupHub:
    """Message routing hub keyed by topic."""

    def __init__(self):
        self._topics: dict[str, set[Subscription]] = {}
        self._lock = threading.Lock()
        logger.info("Group hub initialized")

    def subscribe(self, topic: str) -> Subscription:
        """Register a subscriber on ``topic``. Must be called from a running loop."""
        sub = Subscription(topic=topic, loop=asyncio.get_running_loop())
        with self._lock:
            self._topics.setdefault(topic, set()).add(sub)
            count = len(self._topics[topic])
        logger.info("Subscribed to %s (%d subscribers)", topic, count)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._topics.get(sub.topic)
            if subs is not None:
                subs.discard(sub)
                if not subs:
                    del self._topics[sub.topic]
        logger.info("Unsubscribed from %s", sub.topic)

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._topics.get(topic, ()))

    def publish(self, topic: str, payload: dict[str, Any]) -> int:
        """Deliver ``payload`` to every current subscriber of ``topic``.

        Returns how many subscribers it was handed to. A subscriber whose loop
        is gone is logged and skipped; the others still receive the payload.
        """
        with self._lock:
            subs = list(self._topics.get(topic, ()))

        delivered = 0
        for sub in subs:
            try:
                sub.loop.call_soon_threadsafe(sub.queue.put_nowait, payload)
                delivered += 1
            except RuntimeError:
                logger.warning("Dropping message for a closed subscriber on %s", topic)
        logger.debug("Published to %s: %d/%d subscribers", topic, delivered, len(subs))
        return delivered


hub = GroupHub()


def broadcast_to_group(group_name: str, payload: dict[str, Any]) -> int:
    """Fan ``payload`` out to a group's topic. Never raises; failures are logged."""
    try:
        return hub.publish(group_topic(group_name), payload)
    except Exception:
        logger.exception("Broadcast to group %s failed", group_name)
        return 0
