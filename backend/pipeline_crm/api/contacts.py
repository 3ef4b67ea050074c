"""
Contact endpoints.

- GET /api/contacts?page=&limit=&search=  Contacts born from converted leads
- GET /api/contacts/{id}/summary          One contact with its deals and tasks
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, get_current_user
from ..core.database import get_db
from ..schemas.contact import ContactListResponse, ContactSummaryResponse
from ..services.contacts import ContactService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contacts", tags=["Contacts"])


@router.get("", response_model=ContactListResponse)
async def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    search: Optional[str] = Query(None, max_length=255),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Agents only see the contacts they converted."""
    contacts = ContactService(db).list_contacts(
        user.tenant_id, user.user_id, user.role, page=page, limit=limit, search=search
    )
    return {"data": contacts, "page": page, "limit": limit}


@router.get("/{contact_id}/summary", response_model=ContactSummaryResponse)
async def contact_summary(
    contact_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ContactService(db).summary(contact_id, user.tenant_id, user.user_id, user.role)
