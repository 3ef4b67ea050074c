"""
Proposal service.

draft -> sent -> accepted | rejected. Sending may be repeated while the
contact has not answered; the answer itself is accepted exactly once,
through a conditional UPDATE on status = 'sent'.
"""

import logging
from decimal import Decimal
from typing import Any, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ..core.database import utcnow
from ..core.exceptions import CRMError, ConflictError, NotFoundError
from ..core.transactions import transaction
from ..models.contact import Contact
from ..models.deal import Deal
from ..models.proposal import Proposal, ProposalItem, ProposalStatus
from .email_templates import build_proposal_email
from .notifications import NotificationService


logger = logging.getLogger(__name__)

PROPOSAL_NOT_FOUND = "Proposal not found."
PROPOSALS_LINK = "/dashboard/proposals"


class ProposalService:
    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def _reload(self, proposal_id: UUID) -> Proposal:
        return (
            self.db.query(Proposal)
            .filter(Proposal.id == proposal_id)
            .populate_existing()
            .one()
        )

    def get(self, proposal_id: UUID, tenant_id: UUID) -> Proposal:
        proposal = (
            self.db.query(Proposal)
            .filter(Proposal.id == proposal_id, Proposal.tenant_id == tenant_id)
            .first()
        )
        if proposal is None:
            raise NotFoundError(PROPOSAL_NOT_FOUND)
        return proposal

    def get_public(self, proposal_id: UUID) -> Proposal:
        """Lookup by id alone, for the contact-facing page."""
        proposal = self.db.query(Proposal).filter(Proposal.id == proposal_id).first()
        if proposal is None:
            raise NotFoundError(PROPOSAL_NOT_FOUND)
        return proposal

    def list_proposals(self, tenant_id: UUID) -> list[Proposal]:
        return (
            self.db.query(Proposal)
            .filter(Proposal.tenant_id == tenant_id)
            .order_by(Proposal.created_at.desc())
            .all()
        )

    def create(self, tenant_id: UUID, actor_id: UUID, data: dict[str, Any]) -> Proposal:
        """Draft a proposal; the total is the sum of quantity x unit price."""
        with transaction(self.db):
            if data.get("deal_id") is not None:
                deal = (
                    self.db.query(Deal.id)
                    .filter(Deal.id == data["deal_id"], Deal.tenant_id == tenant_id)
                    .first()
                )
                if deal is None:
                    raise NotFoundError("Deal not found.")
            if data.get("contact_id") is not None:
                contact = (
                    self.db.query(Contact.id)
                    .filter(Contact.id == data["contact_id"], Contact.tenant_id == tenant_id)
                    .first()
                )
                if contact is None:
                    raise NotFoundError("Contact not found.")

            proposal = Proposal(
                tenant_id=tenant_id,
                user_id=actor_id,
                deal_id=data.get("deal_id"),
                contact_id=data.get("contact_id"),
                title=data["title"],
                notes=data.get("notes"),
                status=ProposalStatus.DRAFT,
            )
            total = Decimal("0")
            for item in data["items"]:
                quantity = Decimal(str(item["quantity"]))
                unit_price = Decimal(str(item["unit_price"]))
                line_total = quantity * unit_price
                total += line_total
                proposal.items.append(
                    ProposalItem(
                        description=item["description"],
                        quantity=quantity,
                        unit_price=unit_price,
                        total_price=line_total,
                    )
                )
            proposal.total_amount = total
            self.db.add(proposal)
            self.db.flush()

        logger.info(f"Proposal {proposal.id} drafted in tenant {tenant_id}")
        return self._reload(proposal.id)

    def send(self, proposal_id: UUID, tenant_id: UUID) -> Tuple[Proposal, Tuple[str, str, str]]:
        """
        Mark the proposal sent and build the email for its contact.

        Returns:
            (proposal, (to, subject, html))
        """
        with transaction(self.db):
            proposal = self.get(proposal_id, tenant_id)
            if proposal.contact is None or not proposal.contact.email:
                raise CRMError("Proposal has no contact email to send to.")

            updated = (
                self.db.query(Proposal)
                .filter(
                    Proposal.id == proposal_id,
                    Proposal.tenant_id == tenant_id,
                    Proposal.status.in_((ProposalStatus.DRAFT, ProposalStatus.SENT)),
                )
                .update(
                    {Proposal.status: ProposalStatus.SENT, Proposal.sent_at: utcnow()},
                    synchronize_session=False,
                )
            )
            if updated == 0:
                raise ConflictError("This proposal has already been answered.")

        proposal = self._reload(proposal_id)
        subject, html = build_proposal_email(
            proposal.contact.name,
            proposal.title,
            proposal.items,
            proposal.total_amount,
            proposal.id,
        )
        return proposal, (proposal.contact.email, subject, html)

    def respond(self, proposal_id: UUID, accepted: bool) -> Proposal:
        """
        Record the contact's answer. Only a sent proposal can be answered,
        and only once.
        """
        new_status = ProposalStatus.ACCEPTED if accepted else ProposalStatus.REJECTED

        with transaction(self.db):
            proposal = self.get_public(proposal_id)
            updated = (
                self.db.query(Proposal)
                .filter(Proposal.id == proposal_id, Proposal.status == ProposalStatus.SENT)
                .update(
                    {Proposal.status: new_status, Proposal.responded_at: utcnow()},
                    synchronize_session=False,
                )
            )
            if updated == 0:
                raise ConflictError("This proposal is not awaiting a response.")

            verb = "accepted" if accepted else "rejected"
            self.notifications.notify_owner(
                proposal.tenant_id,
                f"Proposal {verb}",
                f"'{proposal.title}' was {verb} by the client.",
                link=PROPOSALS_LINK,
            )

        logger.info(f"Proposal {proposal_id} {new_status.value}")
        return self._reload(proposal_id)
