"""
Team endpoints.

- GET    /api/users          Members of the caller's tenant
- POST   /api/users/invite   Add an admin or agent (owner/admin)
- DELETE /api/users/{id}     Deactivate a member (owner/admin)
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, get_current_user, require_role
from ..core.database import get_db
from ..schemas.common import SuccessResponse
from ..schemas.user import UserInvite, UserResponse
from ..services.users import UserService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Team"])


@router.get("", response_model=List[UserResponse])
async def list_team(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Everyone in the tenant, by name. Deactivated members are included."""
    return UserService(db).list_team(user.tenant_id)


@router.post("/invite", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def invite_user(
    payload: UserInvite,
    user: CurrentUser = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    return UserService(db).invite(user.tenant_id, user.user_id, payload.model_dump())


@router.delete("/{user_id}", response_model=SuccessResponse)
async def remove_user(
    user_id: UUID,
    user: CurrentUser = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    UserService(db).remove(user_id, user.tenant_id, user.user_id)
    return SuccessResponse(message="User removed successfully")
