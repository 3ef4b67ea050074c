"""
Lead Pydantic schemas for request/response validation.

Validates all inputs at API boundaries before they reach LeadService.
"""

from datetime import datetime
from typing import Any, Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, EmailStr, field_validator

from ..models.lead import LeadStatus
from ..models.task import TaskPriority


# =============================================================================
# Lead Input Schemas
# =============================================================================

class LeadBase(BaseModel):
    """Contact fields shared by manual entry, import and edits."""

    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    mobile: Optional[str] = Field(default=None, max_length=50)
    company_name: Optional[str] = Field(default=None, max_length=255)
    position: Optional[str] = Field(default=None, max_length=255)
    website: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = None
    source: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        # CSV exports leave empty cells as ""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class LeadCreate(LeadBase):
    """Manual lead entry by an owner or admin."""

    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Maria Souza",
                "email": "maria@acme.example",
                "phone": "+55 11 99999-0000",
                "company_name": "Acme",
                "source": "Website",
            }
        }
    }


class LeadUpdate(LeadBase):
    """Edit contact fields. Status and owner are not editable here."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class LeadImportRequest(BaseModel):
    """Rows already parsed from a CSV file on the client."""

    leads: List[LeadCreate] = Field(..., min_length=1, max_length=5000)


class LeadImportResponse(BaseModel):
    count: int
    skipped: int


class LeadLoseRequest(BaseModel):
    reason: str = Field(..., min_length=1, description="Why the lead was lost")

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("A loss reason is required")
        return v


# =============================================================================
# Lead Output Schemas
# =============================================================================

class LeadResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    user_id: Optional[UUID] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    company_name: Optional[str] = None
    position: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None
    status: LeadStatus
    loss_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    captured_at: Optional[datetime] = None
    converted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LeadActionResponse(BaseModel):
    """Result of claim / lose: a message plus the lead's new state."""

    message: str
    lead: LeadResponse


class LeadConvertResponse(BaseModel):
    message: str = "Lead converted successfully"
    contact_id: UUID
    company_id: Optional[UUID] = None


class LeadLogResponse(BaseModel):
    id: int
    lead_id: UUID
    user_id: Optional[UUID] = None
    action: str
    details: dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Lead Tasks
# =============================================================================

class LeadTaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None

