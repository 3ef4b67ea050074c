"""
Contact schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from .sales import DealResponse
from .task import TaskResponse


class ContactResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    company_id: Optional[UUID] = None
    company_name: Optional[str] = None
    lead_id: Optional[UUID] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ContactListResponse(BaseModel):
    data: List[ContactResponse]
    page: int
    limit: int


class ContactSummaryResponse(BaseModel):
    """A contact with the deals and tasks attached to it."""

    contact: ContactResponse
    deals: List[DealResponse]
    tasks: List[TaskResponse]
