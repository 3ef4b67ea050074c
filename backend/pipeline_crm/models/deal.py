"""
Pipeline stage and deal models.
"""

from uuid import uuid4

from sqlalchemy import Column, String, Text, Integer, Boolean, Numeric, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


class Stage(Base):
    """A column of the sales pipeline. Deals moved into a won stage are closed."""

    __tablename__ = "stages"

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    is_won = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Stage(id={self.id}, name={self.name}, is_won={self.is_won})>"


class Deal(Base):
    __tablename__ = "deals"

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    contact_id = Column(Uuid, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    stage_id = Column(Uuid, ForeignKey("stages.id"), nullable=False)
    title = Column(String(255), nullable=False)
    value = Column(Numeric(12, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    stage = relationship("Stage", lazy="joined")
    contact = relationship("Contact", lazy="joined")

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, stage_id={self.stage_id}, user_id={self.user_id})>"
