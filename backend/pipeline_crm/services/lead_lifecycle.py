"""
Lead lifecycle service.

Pool -> claim -> convert | lose, plus the CRUD around it. Every
mutation and its LeadLog row are written in one transaction; state
preconditions live in the UPDATE's WHERE clause, and the affected-row
count decides the outcome. Nothing here retries a lost race.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import or_, and_, func
from sqlalchemy.orm import Session, Query

from ..core.database import utcnow
from ..core.exceptions import ConflictError, NotFoundError
from ..core.transactions import transaction
from ..models.contact import Company, Contact
from ..models.lead import Lead, LeadStatus, OPEN_STATUSES, LEAD_CONTACT_FIELDS
from ..models.lead_log import LeadLog, LeadAction
from ..models.task import Task
from ..models.user import UserRole
from .lead_log import LeadLogService


logger = logging.getLogger(__name__)

DEFAULT_IMPORT_SOURCE = "CSV import"

LEAD_NOT_FOUND = "Lead not found or permission denied."
LEAD_ALREADY_CLAIMED = "This lead has already been claimed or is no longer available."
LEAD_ALREADY_CLOSED = "Lead has already been converted or lost."


class LeadService:
    """
    Lead workflow and CRUD for a single request.

    All methods take the caller's tenant and, where the rule depends on
    it, the acting user and role. Agents only act on leads they own;
    owners and admins act on any lead of their tenant.
    """

    def __init__(self, db: Session):
        self.db = db
        self.logs = LeadLogService(db)

    # =========================================================================
    # Visibility
    # =========================================================================

    def _scoped(self, tenant_id: UUID, actor_id: UUID, role: UserRole) -> Query:
        """Leads the actor may mutate."""
        query = self.db.query(Lead).filter(Lead.tenant_id == tenant_id)
        if role == UserRole.AGENT:
            query = query.filter(Lead.user_id == actor_id)
        return query

    def _readable(self, tenant_id: UUID, actor_id: UUID, role: UserRole) -> Query:
        """Leads the actor may see: agents also see the shared pool."""
        query = self.db.query(Lead).filter(Lead.tenant_id == tenant_id)
        if role == UserRole.AGENT:
            query = query.filter(
                or_(
                    Lead.user_id == actor_id,
                    and_(Lead.user_id.is_(None), Lead.status == LeadStatus.NEW),
                )
            )
        return query

    def _reload(self, lead_id: UUID) -> Lead:
        return (
            self.db.query(Lead)
            .filter(Lead.id == lead_id)
            .populate_existing()
            .one()
        )

    # =========================================================================
    # Workflow
    # =========================================================================

    def claim(self, lead_id: UUID, tenant_id: UUID, actor_id: UUID) -> Lead:
        """
        Take an unowned lead from the pool.

        A single conditional UPDATE; when two agents race, exactly one
        sees an affected row and the other gets ConflictError. Missing,
        foreign-tenant and terminal leads are reported the same way.
        """
        with transaction(self.db):
            now = utcnow()
            updated = (
                self.db.query(Lead)
                .filter(
                    Lead.id == lead_id,
                    Lead.tenant_id == tenant_id,
                    Lead.user_id.is_(None),
                    Lead.status == LeadStatus.NEW,
                )
                .update(
                    {
                        Lead.user_id: actor_id,
                        Lead.status: LeadStatus.IN_PROGRESS,
                        Lead.captured_at: now,
                        Lead.updated_at: now,
                    },
                    synchronize_session=False,
                )
            )
            if updated == 0:
                raise ConflictError(LEAD_ALREADY_CLAIMED)

            self.logs.record(lead_id, tenant_id, LeadAction.CLAIMED, user_id=actor_id)

        logger.info(f"Lead {lead_id} claimed by {actor_id}")
        return self._reload(lead_id)

    def lose(
        self,
        lead_id: UUID,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
        reason: str,
    ) -> Lead:
        """
        Mark an open lead as lost. A pool lead closed this way is owned
        by the actor from then on.

        Raises ConflictError when the lead is visible but already
        terminal, NotFoundError when it is not visible to the actor.
        """
        with transaction(self.db):
            updated = (
                self._scoped(tenant_id, actor_id, role)
                .filter(Lead.id == lead_id, Lead.status.in_(OPEN_STATUSES))
                .update(
                    {
                        Lead.user_id: func.coalesce(Lead.user_id, actor_id),
                        Lead.status: LeadStatus.LOST,
                        Lead.loss_reason: reason,
                        Lead.updated_at: utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            if updated == 0:
                existing = (
                    self._scoped(tenant_id, actor_id, role)
                    .filter(Lead.id == lead_id)
                    .first()
                )
                if existing is not None and existing.is_terminal:
                    raise ConflictError(LEAD_ALREADY_CLOSED)
                raise NotFoundError(LEAD_NOT_FOUND)

            self.logs.record(
                lead_id, tenant_id, LeadAction.LOST,
                user_id=actor_id, details={"reason": reason},
            )

        logger.info(f"Lead {lead_id} marked lost by {actor_id}")
        return self._reload(lead_id)

    def convert(
        self,
        lead_id: UUID,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
    ) -> dict[str, Optional[UUID]]:
        """
        Turn a lead into a contact (and a company when it names one).

        The lead row is locked for the duration; company, contact, lead
        update and log row commit together or not at all.

        Returns:
            {"contact_id": ..., "company_id": ... or None}
        """
        with transaction(self.db):
            lead = (
                self._scoped(tenant_id, actor_id, role)
                .filter(Lead.id == lead_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if lead is None:
                raise NotFoundError(LEAD_NOT_FOUND)
            if lead.is_terminal:
                raise ConflictError(LEAD_ALREADY_CLOSED)

            # A pool lead closed by an admin is owned by that admin
            if lead.user_id is None:
                lead.user_id = actor_id
                self.db.flush()

            company = self._create_company(lead, actor_id)
            contact = self._create_contact(lead, actor_id, company)
            self._mark_converted(lead)

            self.logs.record(
                lead.id, tenant_id, LeadAction.CONVERTED,
                user_id=actor_id,
                details={
                    "contact_id": str(contact.id),
                    "company_id": str(company.id) if company else None,
                },
            )

        logger.info(f"Lead {lead_id} converted to contact {contact.id}")
        return {
            "contact_id": contact.id,
            "company_id": company.id if company else None,
        }

    def _create_company(self, lead: Lead, actor_id: UUID) -> Optional[Company]:
        if not lead.company_name:
            return None
        company = Company(
            tenant_id=lead.tenant_id,
            user_id=actor_id,
            name=lead.company_name,
            website=lead.website,
            address=lead.address,
        )
        self.db.add(company)
        self.db.flush()
        return company

    def _create_contact(self, lead: Lead, actor_id: UUID, company: Optional[Company]) -> Contact:
        contact = Contact(
            tenant_id=lead.tenant_id,
            user_id=actor_id,
            company_id=company.id if company else None,
            lead_id=lead.id,
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            mobile=lead.mobile,
            address=lead.address,
        )
        self.db.add(contact)
        self.db.flush()
        return contact

    def _mark_converted(self, lead: Lead) -> None:
        now = utcnow()
        updated = (
            self.db.query(Lead)
            .filter(Lead.id == lead.id, Lead.status.in_(OPEN_STATUSES))
            .update(
                {
                    Lead.status: LeadStatus.CONVERTED,
                    Lead.converted_at: now,
                    Lead.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise ConflictError(LEAD_ALREADY_CLOSED)

    # =========================================================================
    # CRUD
    # =========================================================================

    def _new_lead(self, tenant_id: UUID, data: dict[str, Any]) -> Lead:
        lead = Lead(tenant_id=tenant_id, status=LeadStatus.NEW, user_id=None)
        for field in LEAD_CONTACT_FIELDS:
            if field in data:
                setattr(lead, field, data[field])
        self.db.add(lead)
        self.db.flush()
        return lead

    def create(self, tenant_id: UUID, actor_id: UUID, data: dict[str, Any]) -> Lead:
        """Add a lead to the pool."""
        with transaction(self.db):
            lead = self._new_lead(tenant_id, data)
            self.logs.record(lead.id, tenant_id, LeadAction.CREATED, user_id=actor_id)
        return lead

    def import_leads(
        self,
        tenant_id: UUID,
        actor_id: UUID,
        rows: list[dict[str, Any]],
    ) -> dict[str, int]:
        """
        Insert already-parsed rows into the pool.

        Rows whose email already exists in the tenant, or appeared
        earlier in the same batch, are skipped.

        Returns:
            {"count": inserted, "skipped": skipped}
        """
        emails = {row["email"].strip().lower() for row in rows if row.get("email")}
        seen: set[str] = set()
        if emails:
            existing = (
                self.db.query(Lead.email)
                .filter(Lead.tenant_id == tenant_id, Lead.email.isnot(None))
                .all()
            )
            seen = {email.lower() for (email,) in existing if email.lower() in emails}

        count = 0
        skipped = 0
        with transaction(self.db):
            for row in rows:
                email = (row.get("email") or "").strip().lower()
                if email and email in seen:
                    skipped += 1
                    continue
                if email:
                    seen.add(email)

                data = dict(row)
                data["source"] = data.get("source") or DEFAULT_IMPORT_SOURCE
                lead = self._new_lead(tenant_id, data)
                self.logs.record(
                    lead.id, tenant_id, LeadAction.IMPORTED,
                    user_id=actor_id, details={"source": lead.source},
                )
                count += 1

        logger.info(f"Imported {count} leads for tenant {tenant_id} ({skipped} skipped)")
        return {"count": count, "skipped": skipped}

    def update(
        self,
        lead_id: UUID,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
        changes: dict[str, Any],
    ) -> Lead:
        """
        Edit contact fields of a lead. Status and owner are never touched
        here; they only move through the workflow methods.
        """
        with transaction(self.db):
            lead = (
                self._scoped(tenant_id, actor_id, role)
                .filter(Lead.id == lead_id)
                .first()
            )
            if lead is None:
                raise NotFoundError(LEAD_NOT_FOUND)

            changed = []
            for field, value in changes.items():
                if field not in LEAD_CONTACT_FIELDS:
                    continue
                if getattr(lead, field) != value:
                    setattr(lead, field, value)
                    changed.append(field)

            if changed:
                self.db.flush()
                self.logs.record(
                    lead.id, tenant_id, LeadAction.UPDATED,
                    user_id=actor_id, details={"fields": changed},
                )
        return lead

    def delete(self, lead_id: UUID, tenant_id: UUID) -> None:
        """Hard delete; the lead's log rows go with it."""
        with transaction(self.db):
            lead = (
                self.db.query(Lead)
                .filter(Lead.id == lead_id, Lead.tenant_id == tenant_id)
                .first()
            )
            if lead is None:
                raise NotFoundError(LEAD_NOT_FOUND)
            self.db.delete(lead)
        logger.info(f"Lead {lead_id} deleted from tenant {tenant_id}")

    def create_task(
        self,
        lead_id: UUID,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
        data: dict[str, Any],
    ) -> Task:
        """Schedule a follow-up on a lead, assigned to the actor."""
        with transaction(self.db):
            lead = (
                self._scoped(tenant_id, actor_id, role)
                .filter(Lead.id == lead_id)
                .first()
            )
            if lead is None:
                raise NotFoundError(LEAD_NOT_FOUND)

            task = Task(
                tenant_id=tenant_id,
                user_id=actor_id,
                lead_id=lead.id,
                title=data["title"],
                description=data.get("description"),
                due_date=data.get("due_date"),
            )
            if data.get("priority") is not None:
                task.priority = data["priority"]
            self.db.add(task)
            self.db.flush()

            self.logs.record(
                lead.id, tenant_id, LeadAction.TASK_CREATED,
                user_id=actor_id, details={"task_id": str(task.id), "title": task.title},
            )
        return task

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, lead_id: UUID, tenant_id: UUID, actor_id: UUID, role: UserRole) -> Lead:
        lead = (
            self._readable(tenant_id, actor_id, role)
            .filter(Lead.id == lead_id)
            .first()
        )
        if lead is None:
            raise NotFoundError(LEAD_NOT_FOUND)
        return lead

    def history(
        self, lead_id: UUID, tenant_id: UUID, actor_id: UUID, role: UserRole
    ) -> list[LeadLog]:
        lead = self.get(lead_id, tenant_id, actor_id, role)
        return self.logs.history(lead.id, tenant_id)

    def list_pool(self, tenant_id: UUID) -> list[Lead]:
        return (
            self.db.query(Lead)
            .filter(
                Lead.tenant_id == tenant_id,
                Lead.user_id.is_(None),
                Lead.status == LeadStatus.NEW,
            )
            .order_by(Lead.created_at.desc())
            .all()
        )

    def list_mine(self, tenant_id: UUID, actor_id: UUID) -> list[Lead]:
        return (
            self.db.query(Lead)
            .filter(
                Lead.tenant_id == tenant_id,
                Lead.user_id == actor_id,
                Lead.status == LeadStatus.IN_PROGRESS,
            )
            .order_by(Lead.captured_at.desc())
            .all()
        )

    def list_converted(self, tenant_id: UUID) -> list[Lead]:
        return (
            self.db.query(Lead)
            .filter(Lead.tenant_id == tenant_id, Lead.status == LeadStatus.CONVERTED)
            .order_by(Lead.converted_at.desc())
            .all()
        )

    def list_lost(self, tenant_id: UUID) -> list[Lead]:
        return (
            self.db.query(Lead)
            .filter(Lead.tenant_id == tenant_id, Lead.status == LeadStatus.LOST)
            .order_by(Lead.created_at.desc())
            .all()
        )
