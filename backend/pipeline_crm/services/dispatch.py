"""
Post-response email dispatch.

Route handlers schedule send_tenant_email() with FastAPI BackgroundTasks.
It runs after the response is sent, in its own session, and only logs
failures: a blocked or failed email never fails the request that
triggered it.
"""

import logging
from uuid import UUID

from ..core.database import SessionLocal
from ..core.exceptions import QuotaExceededError
from .email_gate import EmailQuotaGate


logger = logging.getLogger(__name__)


def send_tenant_email(tenant_id: UUID, to: str, subject: str, body: str) -> None:
    """Send through the tenant's quota gate; never raises."""
    db = SessionLocal()
    try:
        result = EmailQuotaGate(db).send(tenant_id, to, subject, body)
        logger.debug(f"Background email to {to} done: {result}")
    except QuotaExceededError as e:
        logger.warning(f"Background email to {to} not sent: {e.message}")
    except Exception as e:
        logger.error(f"Background email to {to} failed: {e}", exc_info=True)
    finally:
        db.close()
