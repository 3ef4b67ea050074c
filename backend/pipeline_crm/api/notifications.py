"""
Notification endpoints (the dashboard bell).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, get_current_user
from ..core.database import get_db
from ..core.transactions import transaction
from ..schemas.common import SuccessResponse
from ..schemas.notification import NotificationResponse
from ..services.notifications import NotificationService


router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False, description="Only return unread notifications"),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's latest notifications, newest first."""
    return NotificationService(db).list_for_user(user.tenant_id, user.user_id, unread_only)


# Registered before /{notification_id}/read so "read-all" is not parsed as an id
@router.patch("/read-all", response_model=SuccessResponse)
async def mark_all_read(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with transaction(db):
        count = NotificationService(db).mark_all_read(user.tenant_id, user.user_id)
    return SuccessResponse(message=f"{count} notifications marked as read")


@router.patch("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read(
    notification_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with transaction(db):
        NotificationService(db).mark_read(user.tenant_id, user.user_id, notification_id)
    return SuccessResponse(message="Notification marked as read")
