"""
Lead activity log service.

Every state-changing action on a lead goes through here so the log row
lands in the caller's transaction. Rows are never updated or deleted.
"""

from typing import Optional, Any
from uuid import UUID

from sqlalchemy.orm import Session

from ..models.lead_log import LeadLog, LeadAction


class LeadLogService:
    """
    Append rows to the lead activity log.

    Unlike a standalone audit trail, this service never commits: the
    entry must succeed or fail together with the mutation it documents.

    Example usage:
        log = LeadLogService(db)
        log.record(lead.id, tenant_id, LeadAction.CLAIMED, user_id=actor_id)
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        lead_id: UUID,
        tenant_id: UUID,
        action: LeadAction,
        user_id: Optional[UUID] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> LeadLog:
        """
        Add a log entry to the current transaction.

        Args:
            lead_id: Lead the action applies to
            tenant_id: Tenant of the lead
            action: Type of action performed
            user_id: Acting user, None for system actions
            details: JSON-serialisable payload (reason, contact_id, ...)

        Returns:
            The pending LeadLog instance
        """
        entry = LeadLog.create_entry(
            lead_id=lead_id,
            tenant_id=tenant_id,
            action=action,
            user_id=user_id,
            details=details,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def history(self, lead_id: UUID, tenant_id: UUID) -> list[LeadLog]:
        """Log rows of one lead in causal order."""
        return (
            self.db.query(LeadLog)
            .filter(LeadLog.lead_id == lead_id, LeadLog.tenant_id == tenant_id)
            .order_by(LeadLog.created_at, LeadLog.id)
            .all()
        )
