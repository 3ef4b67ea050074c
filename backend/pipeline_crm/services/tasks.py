"""
Task service.

Follow-ups for the caller's tenant. Agents see and change only the
tasks assigned to them; owners and admins work on every task of the
tenant. Tasks created from a lead go through LeadService so the lead
log records them.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session, Query

from ..core.exceptions import NotFoundError
from ..core.transactions import transaction
from ..models.contact import Contact
from ..models.task import Task, TaskStatus
from ..models.user import UserRole


logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found or permission denied."
TASK_FIELDS = ("title", "description", "due_date", "priority", "contact_id")


class TaskService:
    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, tenant_id: UUID, actor_id: UUID, role: UserRole) -> Query:
        query = self.db.query(Task).filter(Task.tenant_id == tenant_id)
        if role == UserRole.AGENT:
            query = query.filter(Task.user_id == actor_id)
        return query

    def _get(self, task_id: UUID, tenant_id: UUID, actor_id: UUID, role: UserRole) -> Task:
        task = self._scoped(tenant_id, actor_id, role).filter(Task.id == task_id).first()
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        return task

    def _check_contact(self, tenant_id: UUID, contact_id: Optional[UUID]) -> None:
        if contact_id is None:
            return
        exists = (
            self.db.query(Contact.id)
            .filter(Contact.id == contact_id, Contact.tenant_id == tenant_id)
            .first()
        )
        if exists is None:
            raise NotFoundError("Contact not found.")

    def list_tasks(
        self,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
        status: Optional[TaskStatus] = TaskStatus.PENDING,
    ) -> list[Task]:
        """
        Tasks by due date (undated last), newest first within a day.

        Pass status=None for every status.
        """
        query = self._scoped(tenant_id, actor_id, role)
        if status is not None:
            query = query.filter(Task.status == status)
        return (
            query.order_by(
                Task.due_date.is_(None),
                Task.due_date,
                Task.created_at.desc(),
            )
            .all()
        )

    def create(self, tenant_id: UUID, actor_id: UUID, data: dict[str, Any]) -> Task:
        """A free-standing task, assigned to the actor."""
        with transaction(self.db):
            self._check_contact(tenant_id, data.get("contact_id"))
            task = Task(tenant_id=tenant_id, user_id=actor_id)
            for field in TASK_FIELDS:
                if data.get(field) is not None:
                    setattr(task, field, data[field])
            self.db.add(task)
            self.db.flush()
        return task

    def update(
        self,
        task_id: UUID,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
        data: dict[str, Any],
    ) -> Task:
        with transaction(self.db):
            task = self._get(task_id, tenant_id, actor_id, role)
            self._check_contact(tenant_id, data.get("contact_id"))
            for field in TASK_FIELDS:
                setattr(task, field, data.get(field))
            self.db.flush()
        return task

    def set_status(
        self,
        task_id: UUID,
        tenant_id: UUID,
        actor_id: UUID,
        role: UserRole,
        status: TaskStatus,
    ) -> Task:
        with transaction(self.db):
            task = self._get(task_id, tenant_id, actor_id, role)
            task.status = status
            self.db.flush()
        logger.info(f"Task {task_id} set to {status.value} by {actor_id}")
        return task

    def delete(self, task_id: UUID, tenant_id: UUID, actor_id: UUID, role: UserRole) -> None:
        with transaction(self.db):
            task = self._get(task_id, tenant_id, actor_id, role)
            self.db.delete(task)
