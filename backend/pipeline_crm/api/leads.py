"""
Lead endpoints.

Pool and history views, the claim / lose / convert workflow, and lead
CRUD. Handlers translate HTTP to LeadService calls; domain errors
(ConflictError, NotFoundError) are mapped to responses in main.py.

Endpoints:
- GET    /api/leads/pool          Unclaimed leads (everyone)
- GET    /api/leads/mine          Caller's in-progress leads
- GET    /api/leads/converted     Converted leads of the tenant
- GET    /api/leads/lost          Lost leads of the tenant
- POST   /api/leads               Create a lead (owner/admin)
- POST   /api/leads/import        Bulk insert parsed rows (owner/admin)
- GET    /api/leads/{id}          One lead
- GET    /api/leads/{id}/logs     Activity log of one lead
- PUT    /api/leads/{id}          Edit contact fields
- DELETE /api/leads/{id}          Hard delete (owner/admin)
- POST   /api/leads/{id}/claim    Take from the pool (409 if taken)
- POST   /api/leads/{id}/lose     Mark lost with a reason
- POST   /api/leads/{id}/convert  Create contact (+ company) from the lead
- POST   /api/leads/{id}/tasks    Schedule a follow-up task
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, get_current_user, require_role
from ..core.database import get_db
from ..schemas.common import SuccessResponse
from ..schemas.lead import (
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
from ..schemas.task import TaskResponse
from ..services.lead_lifecycle import LeadService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leads", tags=["Leads"])


# =============================================================================
# Views
# =============================================================================

@router.get("/pool", response_model=List[LeadResponse])
async def list_pool(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Unclaimed leads, newest first."""
    return LeadService(db).list_pool(user.tenant_id)


@router.get("/mine", response_model=List[LeadResponse])
async def list_mine(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's in-progress leads, most recently claimed first."""
    return LeadService(db).list_mine(user.tenant_id, user.user_id)


@router.get("/converted", response_model=List[LeadResponse])
async def list_converted(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LeadService(db).list_converted(user.tenant_id)


@router.get("/lost", response_model=List[LeadResponse])
async def list_lost(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LeadService(db).list_lost(user.tenant_id)


# =============================================================================
# Creation
# =============================================================================

@router.post("", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
async def create_lead(
    payload: LeadCreate,
    user: CurrentUser = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    """Add a lead to the pool. Agents may not create leads."""
    return LeadService(db).create(user.tenant_id, user.user_id, payload.model_dump())


@router.post("/import", response_model=LeadImportResponse)
async def import_leads(
    payload: LeadImportRequest,
    user: CurrentUser = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    """
    Insert rows parsed from a CSV file on the client.

    Rows whose email already exists in the tenant are skipped.
    """
    rows = [row.model_dump() for row in payload.leads]
    result = LeadService(db).import_leads(user.tenant_id, user.user_id, rows)
    return LeadImportResponse(**result)


# =============================================================================
# Single lead
# =============================================================================

@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LeadService(db).get(lead_id, user.tenant_id, user.user_id, user.role)


@router.get("/{lead_id}/logs", response_model=List[LeadLogResponse])
async def get_lead_logs(
    lead_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Activity log of a lead in the order the actions happened."""
    return LeadService(db).history(lead_id, user.tenant_id, user.user_id, user.role)


@router.put("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: UUID,
    payload: LeadUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is None:
        changes.pop("name", None)
    return LeadService(db).update(lead_id, user.tenant_id, user.user_id, user.role, changes)


@router.delete("/{lead_id}", response_model=SuccessResponse)
async def delete_lead(
    lead_id: UUID,
    user: CurrentUser = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    LeadService(db).delete(lead_id, user.tenant_id)
    return SuccessResponse(message="Lead deleted")


# =============================================================================
# Workflow
# =============================================================================

@router.post("/{lead_id}/claim", response_model=LeadActionResponse)
async def claim_lead(
    lead_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Take a lead from the pool. 409 when someone else got it first."""
    lead = LeadService(db).claim(lead_id, user.tenant_id, user.user_id)
    return LeadActionResponse(message="Lead claimed successfully", lead=LeadResponse.model_validate(lead))


@router.post("/{lead_id}/lose", response_model=LeadActionResponse)
async def lose_lead(
    lead_id: UUID,
    payload: LeadLoseRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    lead = LeadService(db).lose(lead_id, user.tenant_id, user.user_id, user.role, payload.reason)
    return LeadActionResponse(message="Lead marked as lost", lead=LeadResponse.model_validate(lead))


@router.post("/{lead_id}/convert", response_model=LeadConvertResponse)
async def convert_lead(
    lead_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = LeadService(db).convert(lead_id, user.tenant_id, user.user_id, user.role)
    return LeadConvertResponse(**result)


@router.post("/{lead_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_lead_task(
    lead_id: UUID,
    payload: LeadTaskCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LeadService(db).create_task(
        lead_id, user.tenant_id, user.user_id, user.role, payload.model_dump()
    )
