"""
API route controllers for Pipeline CRM.

Contains FastAPI routers for different endpoints.
Routes handle HTTP requests and delegate to services for business logic.
"""

from .health import router as health_router
from .auth import router as auth_router
from .leads import router as leads_router
from .notifications import router as notifications_router
from .deals import router as deals_router
from .proposals import router as proposals_router
from .tenants import router as tenants_router
from .users import router as users_router
from .tasks import router as tasks_router
from .contacts import router as contacts_router

__all__ = [
    "health_router",
    "auth_router",
    "leads_router",
    "notifications_router",
    "deals_router",
    "proposals_router",
    "tenants_router",
    "users_router",
    "tasks_router",
    "contacts_router",
]
