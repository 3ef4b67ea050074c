"""
Lead activity log model.

Append-only trail of every state-changing action on a lead. Rows are
written in the same transaction as the mutation they document and are
never updated; they only disappear when an admin deletes the lead.
"""

import enum
from typing import Optional, Any
from uuid import UUID

from sqlalchemy import Column, BigInteger, Integer, String, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


# =============================================================================
# Enum Definitions
# =============================================================================

class LeadAction(str, enum.Enum):
    """Types of logged lead actions."""
    CREATED = "created"
    IMPORTED = "imported"
    CLAIMED = "claimed"
    LOST = "lost"
    CONVERTED = "converted"
    UPDATED = "updated"
    TASK_CREATED = "task_created"


# =============================================================================
# Lead Log Model
# =============================================================================

class LeadLog(Base):
    """
    One row per state-changing action on a lead.

    Attributes:
        id: Monotonic id, breaks created_at ties in insertion order
        lead_id: Lead the action applies to
        tenant_id: Tenant of the lead (denormalised for tenant filters)
        user_id: Actor, NULL for system actions
        action: What happened
        details: Free-form key/value payload (reason, contact_id, ...)
        created_at: When it happened
    """

    __tablename__ = "lead_logs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    lead_id = Column(Uuid, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    action = Column(String(50), nullable=False, index=True)
    details = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    lead = relationship("Lead", back_populates="logs")

    def __repr__(self) -> str:
        return (
            f"<LeadLog(id={self.id}, "
            f"lead_id={self.lead_id}, "
            f"action={self.action})>"
        )

    @classmethod
    def create_entry(
        cls,
        lead_id: UUID,
        tenant_id: UUID,
        action: LeadAction,
        user_id: Optional[UUID] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> "LeadLog":
        """
        Factory method to create a log entry.

        Args:
            lead_id: UUID of the lead
            tenant_id: UUID of the lead's tenant
            action: Type of action
            user_id: Optional UUID of the acting user
            details: Optional JSON-serialisable payload

        Returns:
            New LeadLog instance (not saved to DB)
        """
        return cls(
            lead_id=lead_id,
            tenant_id=tenant_id,
            user_id=user_id,
            action=action.value,
            details=details or {},
        )
