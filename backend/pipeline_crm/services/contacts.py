"""
Contact queries.

Contacts are created by lead conversion; this service only reads them.
Agents see the contacts they converted, owners and admins every
contact of the tenant.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, Query

from ..core.exceptions import NotFoundError
from ..models.contact import Contact
from ..models.deal import Deal
from ..models.task import Task
from ..models.user import UserRole


CONTACT_NOT_FOUND = "Contact not found."


class ContactService:
    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, tenant_id: UUID, actor_id: UUID, role: UserRole) -> Query:
        query = self.db.query(Contact).filter(Contact.tenant_id == tenant_id)
        if role == UserRole.AGENT:
            query = query.filter(Contact.user_id == actor_id)
        return query

    def list_contacts(
        self,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
    ) -> list[Contact]:
        """Newest first; search matches name or email, case-insensitive."""
        query = self._scoped(tenant_id, actor_id, role)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Contact.name.ilike(pattern), Contact.email.ilike(pattern)))
        return (
            query.order_by(Contact.created_at.desc(), Contact.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

    def summary(self, contact_id: UUID, tenant_id: UUID, actor_id: UUID, role: UserRole) -> dict:
        contact = self._scoped(tenant_id, actor_id, role).filter(Contact.id == contact_id).first()
        if contact is None:
            raise NotFoundError(CONTACT_NOT_FOUND)

        deals = (
            self.db.query(Deal)
            .filter(Deal.tenant_id == tenant_id, Deal.contact_id == contact.id)
            .order_by(Deal.created_at.desc())
            .all()
        )
        tasks = (
            self.db.query(Task)
            .filter(Task.tenant_id == tenant_id, Task.contact_id == contact.id)
            .order_by(Task.due_date.is_(None), Task.due_date)
            .all()
        )
        return {"contact": contact, "deals": deals, "tasks": tasks}
