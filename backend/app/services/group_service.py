"""Group lifecycle manager: creation, membership, rename and expiry state.

Responsibilities:
- Input validation and unique group names
- Creator-only authorization for administrative actions (require_creator)
- Per-group serialization of every read-modify-write (group_locks)
- Rename cascade as one transaction: new record + message reassignment +
  old record deletion, rolled back as a whole on failure
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.errors import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    NumericParseError,
)
from app.models.group import ChatGroup, GroupMember
from app.schemas.group import GroupSettingsUpdate
from app.services import message_service
from app.services.group_locks import group_locks

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _find(db: Session, group_name: str) -> Optional[ChatGroup]:
    return (
        db.query(ChatGroup)
        .filter(ChatGroup.group_name == group_name)
        .populate_existing()
        .first()
    )


def require_creator(group: ChatGroup, requester: Optional[str], allow_expired: bool = False) -> None:
    """Only the creator may administer a group.

    With ``allow_expired`` anyone may act on a group that has already expired
    (deleting a dead group needs no admin).
    """
    if allow_expired and group.is_expired:
        return
    if requester != group.created_by:
        logger.info("FORBIDDEN: %s is not the admin of group %s", requester, group.group_name)
        raise ForbiddenError("Only the group admin can perform this action")


def create_group(db: Session, group_name: str, created_by: str, valid_minutes: int) -> ChatGroup:
    """Create a group owned by ``created_by`` that expires in ``valid_minutes``."""
    if _blank(group_name) or _blank(created_by) or valid_minutes is None or valid_minutes <= 0:
        logger.info("Invalid group creation parameters: %r, %r, %r", group_name, created_by, valid_minutes)
        raise InvalidArgumentError("Invalid group name, creator or validity period.")

    with group_locks.hold(group_name):
        if _find(db, group_name):
            logger.info("Group already exists: %s", group_name)
            raise AlreadyExistsError("Group with this name already exists.")

        group = ChatGroup(
            group_name=group_name,
            created_by=created_by,
            expires_in=valid_minutes,
            is_expired=False,
            members=[GroupMember(user_name=created_by)],
        )
        db.add(group)
        db.commit()
        db.refresh(group)

    logger.info("Group created: %s by %s, expires in %d minutes", group_name, created_by, valid_minutes)
    return group


def get_group(db: Session, group_name: str) -> ChatGroup:
    group = _find(db, group_name)
    if not group:
        raise NotFoundError("Group not found")
    return group


def group_exists(db: Session, group_name: str) -> bool:
    return _find(db, group_name) is not None


def join_group(db: Session, group_name: str, user_name: str) -> Optional[ChatGroup]:
    """Add ``user_name`` to a live group.

    Returns None when the group does not exist. Joining twice, or joining an
    expired group, leaves the group unchanged and is not an error.
    """
    if _blank(user_name):
        raise InvalidArgumentError("Username must not be empty")

    with group_locks.hold(group_name):
        group = _find(db, group_name)
        if not group:
            return None
        if group.is_expired or group.has_member(user_name):
            return group

        group.members.append(GroupMember(user_name=user_name))
        db.commit()
        db.refresh(group)

    logger.info("JOIN: User %s joined group %s", user_name, group_name)
    return group


def leave_group(db: Session, group_name: str, user_name: str) -> bool:
    with group_locks.hold(group_name):
        group = _find(db, group_name)
        if not group or not _drop_member(group, user_name):
            return False
        db.commit()

    logger.info("LEFT: User %s left group %s", user_name, group_name)
    return True


def remove_member(db: Session, group_name: str, target_user: str, requester: str) -> bool:
    """Admin removal of ``target_user``. False if they were not a member."""
    with group_locks.hold(group_name):
        group = get_group(db, group_name)
        require_creator(group, requester)
        if not _drop_member(group, target_user):
            return False
        db.commit()

    logger.info("REMOVED: %s removed from %s by %s", target_user, group_name, requester)
    return True


def _drop_member(group: ChatGroup, user_name: str) -> bool:
    for member in group.members:
        if member.user_name == user_name:
            group.members.remove(member)
            return True
    return False


def update_group_settings(
    db: Session,
    group_name: str,
    update: GroupSettingsUpdate,
    requester: str,
) -> bool:
    """Rename and/or reschedule a group.

    Returns False when nothing was asked for or nothing would change.
    """
    new_name = update.new_group_name
    new_minutes = update.new_expiry_minutes

    if new_name is None and new_minutes is None:
        logger.info("No new name or expiry given for group %s", group_name)
        return False
    if new_name is not None and _blank(new_name):
        raise InvalidArgumentError("New group name must not be empty")
    if new_minutes is not None and new_minutes <= 0:
        raise InvalidArgumentError("Expiry must be a positive number of minutes")

    if new_name is not None and new_name != group_name:
        return _rename_group(db, group_name, new_name, new_minutes, requester)

    if new_minutes is None:
        return False

    with group_locks.hold(group_name):
        group = get_group(db, group_name)
        require_creator(group, requester)
        group.expires_in = new_minutes
        group.is_expired = False
        db.commit()

    logger.info("Updated expiry of group %s to %d minutes", group_name, new_minutes)
    return True


def _rename_group(
    db: Session,
    old_name: str,
    new_name: str,
    new_minutes: Optional[int],
    requester: str,
) -> bool:
    with group_locks.hold(old_name, new_name):
        old_group = get_group(db, old_name)
        require_creator(old_group, requester)
        if _find(db, new_name):
            logger.error("Group with name %s already exists", new_name)
            raise AlreadyExistsError("Group with this name already exists.")

        try:
            new_group = ChatGroup(
                group_name=new_name,
                created_by=old_group.created_by,
                created_at=old_group.created_at,
                expires_in=new_minutes if new_minutes is not None else old_group.expires_in,
                is_expired=False if new_minutes is not None else old_group.is_expired,
                members=[
                    GroupMember(user_name=m.user_name, joined_at=m.joined_at)
                    for m in old_group.members
                ],
            )
            db.add(new_group)
            db.flush()
            message_service.reassign_group(db, old_name, new_name)
            db.delete(old_group)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Rename of group %s to %s failed, rolled back", old_name, new_name)
            raise

    logger.info("Group successfully renamed from %s to %s", old_name, new_name)
    return True


def delete_group(db: Session, group_name: str, requester: str) -> None:
    """Delete a group on behalf of ``requester``.

    Only the creator may delete a live group; anyone may delete an expired
    one. Checked on the row read under the group's lock, so a concurrent
    reschedule cannot slip between the check and the delete.
    """
    with group_locks.hold(group_name):
        group = get_group(db, group_name)
        require_creator(group, requester, allow_expired=True)
        db.delete(group)
        db.commit()
    logger.info("Group deleted: %s by %s", group_name, requester)


def list_groups_for_user(db: Session, user_name: str) -> list[ChatGroup]:
    """Live groups that have ``user_name`` as a member."""
    return (
        db.query(ChatGroup)
        .join(GroupMember)
        .filter(GroupMember.user_name == user_name, ChatGroup.is_expired.is_(False))
        .order_by(ChatGroup.created_at)
        .all()
    )


def get_expiry(db: Session, group_name: str) -> tuple[int, bool]:
    """Return (minutes_left, is_expired) read from the stored countdown."""
    group = get_group(db, group_name)
    try:
        minutes_left = int(group.expires_in)
    except (TypeError, ValueError):
        logger.error("Group %s has a non-numeric countdown: %r", group_name, group.expires_in)
        raise NumericParseError("Stored expiry countdown is not a number") from None
    return minutes_left, bool(group.is_expired)
