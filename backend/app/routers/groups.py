"""Group lifecycle API routes: delegates to group_service."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.group import (
    GroupCreate,
    GroupExpiryOut,
    GroupOut,
    GroupSettingsUpdate,
    MembershipRequest,
)
from app.services import group_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(payload: GroupCreate, db: Session = Depends(get_db)):
    """Create a new group. Creator is automatically added as a member."""
    return group_service.create_group(
        db=db,
        group_name=payload.group_name,
        created_by=payload.created_by,
        valid_minutes=payload.expiry_minutes,
    )


@router.get("/", response_model=list[GroupOut])
def list_user_groups(username: str = Query(...), db: Session = Depends(get_db)):
    """List the live groups a user belongs to."""
    return group_service.list_groups_for_user(db, username)


@router.get("/{group_name}", response_model=GroupOut)
def get_group(group_name: str, db: Session = Depends(get_db)):
    return group_service.get_group(db, group_name)


@router.get("/{group_name}/exists")
def group_name_exists(group_name: str, db: Session = Depends(get_db)):
    return {"exists": group_service.group_exists(db, group_name)}


@router.get("/{group_name}/expiry", response_model=GroupExpiryOut)
def get_group_expiry(group_name: str, db: Session = Depends(get_db)):
    """Minutes left before the group expires."""
    minutes_left, is_expired = group_service.get_expiry(db, group_name)
    return GroupExpiryOut(minutes_left=minutes_left, is_expired=is_expired)


@router.post("/{group_name}/join", response_model=GroupOut)
def join_group(group_name: str, payload: MembershipRequest, db: Session = Depends(get_db)):
    """Join a group. Joining an expired group returns it unchanged."""
    group = group_service.join_group(db, group_name, payload.username)
    if group is None:
        raise HTTPException(status_code=404, detail="Group not found")
    return group


@router.post("/{group_name}/leave")
def leave_group(group_name: str, payload: MembershipRequest, db: Session = Depends(get_db)):
    return {"left": group_service.leave_group(db, group_name, payload.username)}


@router.put("/{group_name}/settings")
def update_group_settings(
    group_name: str,
    payload: GroupSettingsUpdate,
    requester: str = Query(..., description="User performing the change; must be the group admin"),
    db: Session = Depends(get_db),
):
    """Rename the group and/or reset its expiry (admin only)."""
    updated = group_service.update_group_settings(db, group_name, payload, requester)
    return {"updated": updated}


@router.delete("/{group_name}/members/{target_user}")
def remove_member(
    group_name: str,
    target_user: str,
    requester: str = Query(..., description="User performing the removal; must be the group admin"),
    db: Session = Depends(get_db),
):
    """Remove a member from a group (admin only)."""
    return {"removed": group_service.remove_member(db, group_name, target_user, requester)}


@router.delete("/{group_name}")
def delete_group(
    group_name: str,
    username: str = Query(..., description="User requesting the deletion"),
    db: Session = Depends(get_db),
):
    """Delete a group. Only the admin may delete a live group; anyone may delete an expired one."""
    group_service.delete_group(db, group_name, username)
    return {"deleted": True}
