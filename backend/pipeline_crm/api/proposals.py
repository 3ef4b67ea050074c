"""
Proposal endpoints.

The public routes (/public, /respond) are what the contact opens from
the email link; they carry no authentication and look proposals up by
id alone.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, get_current_user
from ..core.database import get_db
from ..schemas.sales import ProposalCreate, ProposalRespondRequest, ProposalResponse
from ..services.dispatch import send_tenant_email
from ..services.proposals import ProposalService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proposals", tags=["Proposals"])


# =============================================================================
# Public (no login)
# =============================================================================

@router.get("/{proposal_id}/public", response_model=ProposalResponse)
async def get_public_proposal(proposal_id: UUID, db: Session = Depends(get_db)):
    return ProposalService(db).get_public(proposal_id)


@router.post("/{proposal_id}/respond", response_model=ProposalResponse)
async def respond_to_proposal(
    proposal_id: UUID,
    payload: ProposalRespondRequest,
    db: Session = Depends(get_db),
):
    """Accept or reject a sent proposal. A second answer is a 409."""
    return ProposalService(db).respond(proposal_id, payload.accepted)


# =============================================================================
# Dashboard
# =============================================================================

@router.get("", response_model=List[ProposalResponse])
async def list_proposals(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProposalService(db).list_proposals(user.tenant_id)


@router.post("", response_model=ProposalResponse, status_code=status.HTTP_201_CREATED)
async def create_proposal(
    payload: ProposalCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProposalService(db).create(user.tenant_id, user.user_id, payload.model_dump())


@router.get("/{proposal_id}", response_model=ProposalResponse)
async def get_proposal(
    proposal_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProposalService(db).get(proposal_id, user.tenant_id)


@router.post("/{proposal_id}/send", response_model=ProposalResponse)
async def send_proposal(
    proposal_id: UUID,
    background_tasks: BackgroundTasks,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark the proposal sent and email it to the contact after responding."""
    proposal, (to, subject, html) = ProposalService(db).send(proposal_id, user.tenant_id)
    background_tasks.add_task(send_tenant_email, user.tenant_id, to, subject, html)
    logger.info(f"Proposal {proposal.id} queued for delivery to {to}")
    return proposal
