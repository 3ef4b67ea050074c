"""
SQLAlchemy ORM models for Pipeline CRM.

Contains database table definitions and relationships.
Every tenant-owned table carries tenant_id; queries must filter on it.
"""

from .tenant import Plan, Tenant
from .user import User, UserRole
from .lead import Lead, LeadStatus, OPEN_STATUSES, TERMINAL_STATUSES
from .lead_log import LeadLog, LeadAction
from .contact import Company, Contact
from .deal import Stage, Deal
from .proposal import Proposal, ProposalItem, ProposalStatus
from .task import Task, TaskPriority, TaskStatus
from .notification import Notification

__all__ = [
    # Tenancy
    "Plan",
    "Tenant",
    "User",
    "UserRole",
    # Lead model and enums
    "Lead",
    "LeadStatus",
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
    # Lead log
    "LeadLog",
    "LeadAction",
    # Customers and sales
    "Company",
    "Contact",
    "Stage",
    "Deal",
    "Proposal",
    "ProposalItem",
    "ProposalStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
    # Notifications
    "Notification",
]
