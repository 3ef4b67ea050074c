"""
Deal, stage and proposal schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.proposal import ProposalStatus


# =============================================================================
# Deals
# =============================================================================

class StageResponse(BaseModel):
    id: UUID
    name: str
    position: int
    is_won: bool

    model_config = {"from_attributes": True}


class DealCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    stage_id: UUID
    contact_id: Optional[UUID] = None
    value: Decimal = Field(default=Decimal("0"), ge=0)
    description: Optional[str] = None
    user_id: Optional[UUID] = Field(
        default=None,
        description="Owner of the deal (owners/admins only; agents always own their deals)",
    )


class DealMoveRequest(BaseModel):
    stage_id: UUID


class DealResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    contact_id: Optional[UUID] = None
    stage_id: UUID
    title: str
    value: Decimal
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Proposals
# =============================================================================

class ProposalItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)


class ProposalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    deal_id: Optional[UUID] = None
    contact_id: Optional[UUID] = None
    notes: Optional[str] = None
    items: List[ProposalItemCreate] = Field(..., min_length=1)


class ProposalRespondRequest(BaseModel):
    accepted: bool


class ProposalItemResponse(BaseModel):
    id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class ProposalResponse(BaseModel):
    id: UUID
    deal_id: Optional[UUID] = None
    contact_id: Optional[UUID] = None
    title: str
    notes: Optional[str] = None
    total_amount: Decimal
    status: ProposalStatus
    sent_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    items: List[ProposalItemResponse] = []

    model_config = {"from_attributes": True}
