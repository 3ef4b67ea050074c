"""
Team management service.

Owners and admins add agents and admins to their own tenant and remove
them again. Removal deactivates the account instead of deleting it, so
leads, deals and log rows keep pointing at the person who worked them.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from ..core.exceptions import CRMError, ConflictError, NotFoundError, PlanLimitError
from ..core.security import hash_password
from ..core.transactions import transaction
from ..models.lead import Lead, LeadStatus
from ..models.tenant import Tenant
from ..models.user import User, UserRole


logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found or access denied."


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def list_team(self, tenant_id: UUID) -> list[User]:
        return (
            self.db.query(User)
            .filter(User.tenant_id == tenant_id)
            .order_by(User.name)
            .all()
        )

    def _check_seats(self, tenant_id: UUID) -> None:
        tenant = self.db.query(Tenant).filter(Tenant.id == tenant_id).one()
        max_users = tenant.plan.max_users if tenant.plan is not None else None
        if max_users is None:
            return
        active = (
            self.db.query(User)
            .filter(User.tenant_id == tenant_id, User.is_active.is_(True))
            .count()
        )
        if active >= max_users:
            raise PlanLimitError(f"User limit reached ({active}/{max_users}). Upgrade your plan.")

    def invite(self, tenant_id: UUID, actor_id: UUID, data: dict[str, Any]) -> User:
        """
        Add a member to the tenant.

        Raises:
            ConflictError: the email is already used by any account
            PlanLimitError: the plan's seat count is used up
        """
        email = data["email"].strip().lower()
        with transaction(self.db):
            if self.db.query(User.id).filter(User.email == email).first() is not None:
                raise ConflictError("Email already used in the system.")
            self._check_seats(tenant_id)

            user = User(
                tenant_id=tenant_id,
                name=data["name"],
                email=email,
                password_hash=hash_password(data["password"]),
                role=UserRole(data.get("role") or UserRole.AGENT),
            )
            self.db.add(user)
            self.db.flush()

        logger.info(f"User {user.id} ({user.role.value}) added to tenant {tenant_id} by {actor_id}")
        return user

    def remove(self, user_id: UUID, tenant_id: UUID, actor_id: UUID) -> User:
        """
        Deactivate a member of the tenant.

        The owner cannot be removed, nobody removes themselves, and a
        member still holding in-progress leads must hand them off first.
        """
        if user_id == actor_id:
            raise CRMError("You cannot remove yourself.")

        with transaction(self.db):
            user = (
                self.db.query(User)
                .filter(User.id == user_id, User.tenant_id == tenant_id)
                .first()
            )
            if user is None:
                raise NotFoundError(USER_NOT_FOUND)
            if user.role == UserRole.OWNER:
                raise ConflictError("The tenant owner cannot be removed.")

            open_leads = (
                self.db.query(Lead)
                .filter(Lead.user_id == user.id, Lead.status == LeadStatus.IN_PROGRESS)
                .count()
            )
            if open_leads:
                raise ConflictError(
                    f"User still has {open_leads} lead(s) in progress. Convert or lose them first."
                )

            user.is_active = False

        logger.info(f"User {user_id} removed from tenant {tenant_id} by {actor_id}")
        return user
