"""
In-app notification service.

Writes rows for the dashboard bell and answers the read/unread queries.
Callers own the transaction; nothing here commits.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundError
from ..models.notification import Notification
from ..models.user import User, UserRole


logger = logging.getLogger(__name__)

SETTINGS_LINK = "/dashboard/settings"
NOTIFICATION_PAGE_SIZE = 50


class NotificationService:
    """
    Create and query notifications for one tenant.

    Example usage:
        notifications = NotificationService(db)
        notifications.notify_owner(tenant_id, "Email quota low", "...")
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        tenant_id: UUID,
        user_id: UUID,
        title: str,
        message: str,
        link: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            tenant_id=tenant_id,
            user_id=user_id,
            title=title,
            message=message,
            link=link,
        )
        self.db.add(notification)
        self.db.flush()
        return notification

    def find_owner_id(self, tenant_id: UUID) -> Optional[UUID]:
        """Id of the tenant's owner account, or None if it has none."""
        owner = (
            self.db.query(User.id)
            .filter(User.tenant_id == tenant_id, User.role == UserRole.OWNER)
            .order_by(User.created_at)
            .first()
        )
        return owner[0] if owner else None

    def notify_owner(
        self,
        tenant_id: UUID,
        title: str,
        message: str,
        link: Optional[str] = SETTINGS_LINK,
    ) -> Optional[Notification]:
        """
        Notify the tenant owner.

        Returns None (and logs) when the tenant has no owner; a missing
        recipient is not an error for the flow that raised the alert.
        """
        owner_id = self.find_owner_id(tenant_id)
        if owner_id is None:
            logger.warning(f"Tenant {tenant_id} has no owner; dropped notification '{title}'")
            return None
        return self.create(tenant_id, owner_id, title, message, link)

    def list_for_user(
        self,
        tenant_id: UUID,
        user_id: UUID,
        unread_only: bool = False,
    ) -> list[Notification]:
        query = self.db.query(Notification).filter(
            Notification.tenant_id == tenant_id,
            Notification.user_id == user_id,
        )
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return (
            query.order_by(Notification.created_at.desc())
            .limit(NOTIFICATION_PAGE_SIZE)
            .all()
        )

    def mark_read(self, tenant_id: UUID, user_id: UUID, notification_id: UUID) -> None:
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.id == notification_id,
                Notification.tenant_id == tenant_id,
                Notification.user_id == user_id,
            )
            .update({"is_read": True}, synchronize_session=False)
        )
        if updated == 0:
            raise NotFoundError("Notification not found.")

    def mark_all_read(self, tenant_id: UUID, user_id: UUID) -> int:
        return (
            self.db.query(Notification)
            .filter(
                Notification.tenant_id == tenant_id,
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .update({"is_read": True}, synchronize_session=False)
        )
