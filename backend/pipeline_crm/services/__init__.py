"""
Business logic services for Pipeline CRM.

Contains all business logic separated from API layer.
Services own their transactions; routes only translate HTTP to calls.
"""

from .lead_lifecycle import LeadService
from .lead_log import LeadLogService
from .notifications import NotificationService
from .email_gate import EmailQuotaGate
from .email_transport import EmailTransport, LogTransport, SMTPTransport, EmailDeliveryError
from .deals import DealService
from .proposals import ProposalService

__all__ = [
    "LeadService",
    "LeadLogService",
    "NotificationService",
    "EmailQuotaGate",
    "EmailTransport",
    "LogTransport",
    "SMTPTransport",
    "EmailDeliveryError",
    "DealService",
    "ProposalService",
]
