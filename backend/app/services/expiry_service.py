"""Expiry sweep: the two periodic jobs behind group expiration.

``tick_countdowns`` advances every live group's countdown by one minute and
flags groups that reach zero. ``sweep_expired_groups`` deletes flagged groups.
Both take each group's lock, so they interleave safely with user mutations.
"""
import logging

from sqlalchemy.orm import Session

from app.models.group import ChatGroup
from app.services.group_locks import group_locks

logger = logging.getLogger(__name__)


def tick_countdowns(db: Session) -> list[str]:
    """Decrement every live group's countdown. Returns names that just expired."""
    names = [
        name for (name,) in
        db.query(ChatGroup.group_name).filter(ChatGroup.is_expired.is_(False)).all()
    ]
    expired = []
    for name in names:
        with group_locks.hold(name):
            group = (
                db.query(ChatGroup)
                .filter(ChatGroup.group_name == name)
                .populate_existing()
                .first()
            )
            # Deleted or expired by someone else since the listing
            if not group or group.is_expired:
                continue
            try:
                minutes_left = int(group.expires_in)
            except (TypeError, ValueError):
                logger.error("Skipping group %s: non-numeric countdown %r", name, group.expires_in)
                continue

            group.expires_in = max(minutes_left - 1, 0)
            if group.expires_in == 0:
                group.is_expired = True
                expired.append(name)
            db.commit()

    if expired:
        logger.info("EXPIRED: %s", ", ".join(expired))
    logger.debug("Countdown tick over %d groups", len(names))
    return expired


def sweep_expired_groups(db: Session) -> list[str]:
    """Delete every group flagged as expired. Returns the deleted names."""
    names = [
        name for (name,) in
        db.query(ChatGroup.group_name).filter(ChatGroup.is_expired.is_(True)).all()
    ]
    deleted = []
    for name in names:
        with group_locks.hold(name):
            group = (
                db.query(ChatGroup)
                .filter(ChatGroup.group_name == name)
                .populate_existing()
                .first()
            )
            # Rescheduled or already deleted since the listing
            if not group or not group.is_expired:
                continue
            db.delete(group)
            db.commit()
            deleted.append(name)

    if deleted:
        logger.info("SWEPT: deleted expired groups %s", ", ".join(deleted))
    return deleted
