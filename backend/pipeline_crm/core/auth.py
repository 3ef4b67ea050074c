"""
Authentication and authorisation dependencies for FastAPI routes.

Provides:
- get_current_user: extracts & verifies JWT, returns the CurrentUser identity
- require_role(*roles): factory that returns a dependency enforcing role membership

Every tenant-scoped query downstream filters on the identity returned here;
the service layer never authenticates on its own.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .database import get_db
from .exceptions import PermissionDeniedError
from .security import decode_token
from ..models.user import User, UserRole


logger = logging.getLogger(__name__)

# The tokenUrl is informational (used by Swagger UI); actual login is POST /api/auth/login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity of the caller: who they are, which tenant, which role."""

    user_id: UUID
    tenant_id: UUID
    role: UserRole
    email: str
    name: str

    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Decode the JWT bearer token and return the authenticated identity.

    Raises 401 if token is missing, invalid, or the user no longer exists,
    and 403 if the account was deactivated.
    """
    if not token:
        raise _unauthorized("Not authenticated")

    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    try:
        user_uuid = UUID(str(user_id))
    except ValueError:
        raise _unauthorized("Invalid token payload")

    user = db.query(User).filter(User.id == user_uuid).first()
    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been deactivated",
        )

    # Tenant and role come from the row, not the token, so a role change
    # takes effect without waiting for token expiry.
    return CurrentUser(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role,
        email=user.email,
        name=user.name,
    )


# Role hierarchy: owner implicitly satisfies "admin" checks.
_ROLE_IMPLIES: dict[str, set[str]] = {
    "owner": {"owner", "admin"},
    "admin": {"admin"},
    "agent": {"agent"},
}


def require_role(*allowed_roles: str):
    """
    Factory: returns a FastAPI dependency that checks the current user's role.

    owner is treated as a superset of admin -- any endpoint that requires
    "admin" will also accept "owner".

    Usage:
        @router.delete("/{id}", dependencies=[Depends(require_role("admin"))])
    """
    async def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        effective_roles = _ROLE_IMPLIES.get(user.role.value, {user.role.value})
        if not effective_roles.intersection(allowed_roles):
            raise PermissionDeniedError()
        return user

    return _check
