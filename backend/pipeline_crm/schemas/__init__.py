"""
Pydantic validation schemas for Pipeline CRM.

Contains request/response DTOs with validation rules.
These schemas enforce data integrity at API boundaries.
"""

from .common import (
    HealthResponse,
    ErrorDetail,
    ErrorResponse,
    SuccessResponse,
)
from .lead import (
    LeadCreate,
    LeadUpdate,
    LeadImportRequest,
    LeadImportResponse,
    LeadLoseRequest,
    LeadResponse,
    LeadActionResponse,
    LeadConvertResponse,
    LeadLogResponse,
    LeadTaskCreate,
)
from .task import TaskCreate, TaskUpdate, TaskStatusUpdate, TaskResponse
from .contact import ContactResponse, ContactListResponse, ContactSummaryResponse
from .user import LoginRequest, TokenResponse, MeResponse, UserInvite, UserResponse
from .notification import NotificationResponse, EmailUsageResponse
from .sales import (
    StageResponse,
    DealCreate,
    DealMoveRequest,
    DealResponse,
    ProposalItemCreate,
    ProposalCreate,
    ProposalRespondRequest,
    ProposalResponse,
)

__all__ = [
    # Common schemas
    "HealthResponse",
    "ErrorDetail",
    "ErrorResponse",
    "SuccessResponse",
    # Lead schemas
    "LeadCreate",
    "LeadUpdate",
    "LeadImportRequest",
    "LeadImportResponse",
    "LeadLoseRequest",
    "LeadResponse",
    "LeadActionResponse",
    "LeadConvertResponse",
    "LeadLogResponse",
    "LeadTaskCreate",
    # Tasks and contacts
    "TaskCreate",
    "TaskUpdate",
    "TaskStatusUpdate",
    "TaskResponse",
    "ContactResponse",
    "ContactListResponse",
    "ContactSummaryResponse",
    # Auth and team
    "LoginRequest",
    "TokenResponse",
    "MeResponse",
    "UserInvite",
    "UserResponse",
    # Notifications
    "NotificationResponse",
    "EmailUsageResponse",
    # Sales
    "StageResponse",
    "DealCreate",
    "DealMoveRequest",
    "DealResponse",
    "ProposalItemCreate",
    "ProposalCreate",
    "ProposalRespondRequest",
    "ProposalResponse",
]
