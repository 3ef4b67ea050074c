"""
Domain exceptions raised by the service layer.

Each exception carries the HTTP status and error code the API layer
returns for it, so services never import FastAPI.
"""

from typing import Optional


class CRMError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 400
    code = "bad_request"
    default_message = "The request could not be processed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConflictError(CRMError):
    """The target row is not in the state the operation requires."""

    status_code = 409
    code = "conflict"
    default_message = "The resource was changed by another request."


class NotFoundError(CRMError):
    """
    The row does not exist or is not visible to the caller.

    Used for permission failures on tenant-scoped rows as well, so the
    response never reveals whether a record exists in another tenant.
    """

    status_code = 404
    code = "not_found"
    default_message = "Resource not found or permission denied."


class PermissionDeniedError(CRMError):
    """The caller's role may not perform this action at all."""

    status_code = 403
    code = "permission_denied"
    default_message = "You do not have permission to perform this action."


class QuotaExceededError(CRMError):
    """The tenant's monthly email quota is used up."""

    status_code = 429
    code = "quota_exceeded"
    default_message = "Monthly email limit reached. Upgrade your plan."

    def __init__(self, usage: int, limit: int):
        self.usage = usage
        self.limit = limit
        super().__init__(
            f"Monthly email limit reached ({usage}/{limit}). Upgrade your plan."
        )


class PlanLimitError(CRMError):
    """The tenant's plan does not allow another row of this kind."""

    status_code = 403
    code = "plan_limit_reached"
    default_message = "Plan limit reached. Upgrade your plan."
