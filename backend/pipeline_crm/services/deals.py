"""
Deal pipeline service.

Moving a deal notifies its owner when someone else moved it; moving it
into a won stage yields a thank-you email for the contact, which the
route dispatches after the response.
"""

import logging
from decimal import Decimal
from typing import Any, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session, Query

from ..core.database import utcnow
from ..core.exceptions import NotFoundError
from ..core.transactions import transaction
from ..models.contact import Contact
from ..models.deal import Deal, Stage
from ..models.user import User, UserRole
from .email_templates import build_deal_won_email
from .notifications import NotificationService


logger = logging.getLogger(__name__)

DEAL_NOT_FOUND = "Deal not found or permission denied."
PIPELINE_LINK = "/dashboard/pipelines"


class DealService:
    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def _scoped(self, tenant_id: UUID, actor_id: UUID, role: UserRole) -> Query:
        query = self.db.query(Deal).filter(Deal.tenant_id == tenant_id)
        if role == UserRole.AGENT:
            query = query.filter(Deal.user_id == actor_id)
        return query

    def _get_stage(self, tenant_id: UUID, stage_id: UUID) -> Stage:
        stage = (
            self.db.query(Stage)
            .filter(Stage.id == stage_id, Stage.tenant_id == tenant_id)
            .first()
        )
        if stage is None:
            raise NotFoundError("Stage not found.")
        return stage

    def list_stages(self, tenant_id: UUID) -> list[Stage]:
        return (
            self.db.query(Stage)
            .filter(Stage.tenant_id == tenant_id)
            .order_by(Stage.position)
            .all()
        )

    def list_deals(self, tenant_id: UUID, actor_id: UUID, role: UserRole) -> list[Deal]:
        return (
            self._scoped(tenant_id, actor_id, role)
            .order_by(Deal.created_at.desc())
            .all()
        )

    def create(
        self,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
        data: dict[str, Any],
    ) -> Deal:
        """
        Open a deal. Agents always own the deals they create; owners and
        admins may assign another member of the tenant.
        """
        owner_id = actor_id
        if role != UserRole.AGENT and data.get("user_id"):
            owner_id = data["user_id"]

        with transaction(self.db):
            self._get_stage(tenant_id, data["stage_id"])

            if owner_id != actor_id:
                member = (
                    self.db.query(User.id)
                    .filter(User.id == owner_id, User.tenant_id == tenant_id)
                    .first()
                )
                if member is None:
                    raise NotFoundError("Assigned user not found.")

            if data.get("contact_id") is not None:
                contact = (
                    self.db.query(Contact.id)
                    .filter(Contact.id == data["contact_id"], Contact.tenant_id == tenant_id)
                    .first()
                )
                if contact is None:
                    raise NotFoundError("Contact not found.")

            deal = Deal(
                tenant_id=tenant_id,
                user_id=owner_id,
                contact_id=data.get("contact_id"),
                stage_id=data["stage_id"],
                title=data["title"],
                value=data.get("value") or Decimal("0"),
                description=data.get("description"),
            )
            self.db.add(deal)
            self.db.flush()

        logger.info(f"Deal {deal.id} created in tenant {tenant_id}")
        return self._reload(deal.id)

    def _reload(self, deal_id: UUID) -> Deal:
        return (
            self.db.query(Deal)
            .filter(Deal.id == deal_id)
            .populate_existing()
            .one()
        )

    def move(
        self,
        deal_id: UUID,
        tenant_id: UUID,
        actor_id: UUID,
        actor_name: str,
        role: UserRole,
        stage_id: UUID,
    ) -> Deal:
        """Move a deal to another stage of the same tenant's pipeline."""
        with transaction(self.db):
            stage = self._get_stage(tenant_id, stage_id)

            updated = (
                self._scoped(tenant_id, actor_id, role)
                .filter(Deal.id == deal_id)
                .update(
                    {Deal.stage_id: stage.id, Deal.updated_at: utcnow()},
                    synchronize_session=False,
                )
            )
            if updated == 0:
                raise NotFoundError(DEAL_NOT_FOUND)

            deal = self._reload(deal_id)
            if deal.user_id is not None and deal.user_id != actor_id:
                self.notifications.create(
                    tenant_id,
                    deal.user_id,
                    "Deal moved",
                    f"{actor_name} moved '{deal.title}' to {stage.name}.",
                    link=PIPELINE_LINK,
                )

        logger.info(f"Deal {deal_id} moved to stage {stage.name} by {actor_id}")
        return deal

    def won_email(self, deal: Deal) -> Optional[Tuple[str, str, str]]:
        """(to, subject, html) when the deal sits in a won stage and has a reachable contact."""
        if not deal.stage.is_won or deal.contact is None or not deal.contact.email:
            return None
        subject, html = build_deal_won_email(deal.contact.name, deal.title)
        return deal.contact.email, subject, html
