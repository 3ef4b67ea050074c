"""
Follow-up task model.
"""

import enum
from uuid import uuid4

from sqlalchemy import Column, String, Text, DateTime, Enum as SQLEnum, ForeignKey, Uuid

from ..core.database import Base, utcnow


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    lead_id = Column(Uuid, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True, index=True)
    contact_id = Column(Uuid, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    priority = Column(
        SQLEnum(TaskPriority, name="task_priority", native_enum=False, length=20,
                values_callable=lambda e: [x.value for x in e]),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    status = Column(
        SQLEnum(TaskStatus, name="task_status", native_enum=False, length=20,
                values_callable=lambda e: [x.value for x in e]),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, lead_id={self.lead_id}, status={self.status.value})>"
