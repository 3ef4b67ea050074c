"""
User model for authentication and team membership.
"""

import enum
from uuid import uuid4

from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, ForeignKey, Uuid

from ..core.database import Base, utcnow


# =============================================================================
# Enums
# =============================================================================


class UserRole(str, enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    AGENT = "agent"


# =============================================================================
# User Model
# =============================================================================


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole, name="user_role", native_enum=False, length=20, values_callable=lambda e: [x.value for x in e]), nullable=False, default=UserRole.AGENT)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
