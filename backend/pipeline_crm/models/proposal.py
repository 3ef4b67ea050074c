"""
Proposal (quote) models.

A proposal is drafted by the team, sent to the contact, and answered
exactly once by the contact through the public link.
"""

import enum
from uuid import uuid4

from sqlalchemy import Column, String, Text, Numeric, DateTime, Enum as SQLEnum, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


class ProposalStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Proposal(Base):
    __tablename__ = "proposals"

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    deal_id = Column(Uuid, ForeignKey("deals.id", ondelete="SET NULL"), nullable=True)
    contact_id = Column(Uuid, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(
        SQLEnum(ProposalStatus, name="proposal_status", native_enum=False, length=20,
                values_callable=lambda e: [x.value for x in e]),
        nullable=False,
        default=ProposalStatus.DRAFT,
    )
    sent_at = Column(DateTime(timezone=True), nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    items = relationship(
        "ProposalItem",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    contact = relationship("Contact", lazy="joined")

    def __repr__(self) -> str:
        return f"<Proposal(id={self.id}, status={self.status.value})>"


class ProposalItem(Base):
    __tablename__ = "proposal_items"

    id = Column(Uuid, primary_key=True, default=uuid4)
    proposal_id = Column(Uuid, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
