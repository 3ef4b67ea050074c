"""
Tenant endpoints: email quota usage for the settings page.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, require_role
from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..models.tenant import Tenant
from ..schemas.notification import EmailUsageResponse


router = APIRouter(prefix="/api/tenants", tags=["Tenants"])


@router.get("/usage", response_model=EmailUsageResponse)
async def get_email_usage(
    user: CurrentUser = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    """
    Current email usage of the caller's tenant.

    The stored counter is reported as-is; a stale period is only rolled
    over by the next send.
    """
    tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).first()
    if tenant is None:
        raise NotFoundError("Tenant not found.")

    max_emails = tenant.max_emails_month
    percentage = None
    if max_emails:
        percentage = round(tenant.email_usage_count / max_emails * 100, 1)

    return EmailUsageResponse(
        usage=tenant.email_usage_count,
        max=max_emails,
        reset_date=tenant.email_reset_date,
        percentage=percentage,
    )
