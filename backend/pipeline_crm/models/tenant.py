"""
Tenant and plan models.

A tenant is one customer company; every other table carries its id.
The plan caps monthly transactional email (NULL = unlimited).
"""

from uuid import uuid4

from sqlalchemy import Column, String, Integer, Boolean, Numeric, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False, unique=True)
    max_emails_month = Column(Integer, nullable=True)  # NULL = unlimited
    max_users = Column(Integer, nullable=True)  # NULL = unlimited
    price = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, name={self.name}, max_emails_month={self.max_emails_month})>"


class Tenant(Base):
    """
    Customer company (tenant).

    Email quota state lives here:
        email_usage_count: sends counted in the current period
        email_reset_date: when the current period started
        email_warning_sent: whether the low-quota warning fired this period

    The counter is only ever changed by the email quota gate, and the
    period rolls over lazily on the first send of a new calendar month.
    """

    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    plan_id = Column(Uuid, ForeignKey("plans.id"), nullable=True, index=True)

    email_usage_count = Column(Integer, nullable=False, default=0)
    email_reset_date = Column(DateTime(timezone=True), nullable=True, default=utcnow)
    email_warning_sent = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    plan = relationship("Plan", lazy="joined")

    @property
    def max_emails_month(self):
        """Effective monthly email limit, None when unlimited or no plan."""
        return self.plan.max_emails_month if self.plan is not None else None

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name}, email_usage_count={self.email_usage_count})>"
