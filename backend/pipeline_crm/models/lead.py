"""
Lead database model.

A lead sits in the tenant's pool until an agent claims it, then moves
forward to converted or lost. Status and owner are kept consistent:
    new          <=> user_id IS NULL
    in_progress  <=> user_id IS NOT NULL
converted and lost are terminal, and a pool lead an admin closes
directly takes that admin as owner, so a terminal lead always has one.
"""

import enum
from uuid import uuid4

from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Uuid,
    Index,
)
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


# =============================================================================
# Enum Definitions
# =============================================================================

class LeadStatus(str, enum.Enum):
    """Lead status through the pool -> claim -> convert/lose funnel."""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    CONVERTED = "converted"
    LOST = "lost"


# Statuses a lead can still leave; everything else is terminal
OPEN_STATUSES = (LeadStatus.NEW, LeadStatus.IN_PROGRESS)
TERMINAL_STATUSES = (LeadStatus.CONVERTED, LeadStatus.LOST)


# Contact fields copied verbatim by manual entry, import and edits
LEAD_CONTACT_FIELDS = (
    "name",
    "email",
    "phone",
    "mobile",
    "company_name",
    "position",
    "website",
    "address",
    "source",
    "notes",
)


# =============================================================================
# Lead Model
# =============================================================================

class Lead(Base):
    """
    Tenant-scoped sales lead.

    Attributes:
        id: UUID primary key
        tenant_id: Owning tenant (every query filters on it)
        user_id: Agent who claimed the lead (NULL while in the pool)
        status: new, in_progress, converted or lost
        captured_at: When the lead was claimed
        converted_at: When the lead became a contact
        loss_reason: Why the lead was lost (only set when lost)
    """

    __tablename__ = "leads"
    __table_args__ = (
        Index("ix_leads_tenant_status", "tenant_id", "status"),
    )

    # Primary key
    id = Column(Uuid, primary_key=True, default=uuid4)

    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Contact Information
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    mobile = Column(String(50), nullable=True)
    company_name = Column(String(255), nullable=True)
    position = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    source = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    # Lead Management
    status = Column(
        SQLEnum(LeadStatus, name="lead_status", native_enum=False, length=20,
                values_callable=lambda e: [x.value for x in e]),
        nullable=False,
        default=LeadStatus.NEW,
    )
    loss_reason = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    captured_at = Column(DateTime(timezone=True), nullable=True)
    converted_at = Column(DateTime(timezone=True), nullable=True)

    logs = relationship(
        "LeadLog",
        back_populates="lead",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="LeadLog.created_at",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Lead(id={self.id}, "
            f"tenant_id={self.tenant_id}, "
            f"status={self.status.value}, "
            f"user_id={self.user_id})>"
        )
