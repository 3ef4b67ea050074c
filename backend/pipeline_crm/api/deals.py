"""
Deal pipeline endpoints.

Moving a deal into a won stage emails the contact through the tenant's
quota gate after the response is sent.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, get_current_user
from ..core.database import get_db
from ..schemas.sales import DealCreate, DealMoveRequest, DealResponse, StageResponse
from ..services.deals import DealService
from ..services.dispatch import send_tenant_email


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/deals", tags=["Deals"])


@router.get("", response_model=List[DealResponse])
async def list_deals(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Deals of the tenant; agents only see their own."""
    return DealService(db).list_deals(user.tenant_id, user.user_id, user.role)


@router.get("/stages", response_model=List[StageResponse])
async def list_stages(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return DealService(db).list_stages(user.tenant_id)


@router.post("", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    payload: DealCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return DealService(db).create(user.tenant_id, user.user_id, user.role, payload.model_dump())


@router.put("/{deal_id}/move", response_model=DealResponse)
async def move_deal(
    deal_id: UUID,
    payload: DealMoveRequest,
    background_tasks: BackgroundTasks,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = DealService(db)
    deal = service.move(deal_id, user.tenant_id, user.user_id, user.name, user.role, payload.stage_id)

    email = service.won_email(deal)
    if email is not None:
        to, subject, html = email
        background_tasks.add_task(send_tenant_email, user.tenant_id, to, subject, html)
        logger.info(f"Deal {deal.id} won; thank-you email queued for {to}")

    return deal
