"""
Authentication endpoints.

POST /api/auth/login  -> JWT access token
GET  /api/auth/me     -> the resolved identity of the caller
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, get_current_user
from ..core.config import settings
from ..core.database import get_db
from ..core.security import create_access_token, verify_password
from ..models.user import User
from ..schemas.user import LoginRequest, TokenResponse, MeResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    """Authenticate with email + password. Returns a JWT access token."""
    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning(
            f"Failed login attempt for email={credentials.email} "
            f"ip={request.client.host if request.client else 'unknown'}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been deactivated. Contact your administrator.",
        )

    token_data = {
        "sub": str(user.id),
        "tenant_id": str(user.tenant_id),
        "role": user.role.value,
    }
    access_token = create_access_token(data=token_data)
    logger.info(f"User {user.id} logged in (tenant {user.tenant_id})")

    return TokenResponse(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(user: CurrentUser = Depends(get_current_user)) -> MeResponse:
    """Return the authenticated user's identity."""
    return MeResponse(
        id=user.user_id,
        tenant_id=user.tenant_id,
        name=user.name,
        email=user.email,
        role=user.role,
    )
