"""
Usage-metered email gate.

Every transactional email of a tenant goes through EmailQuotaGate.send().
The gate keeps the tenant's monthly counter honest:

1. Roll the period over when the calendar month changed (lazy reset).
2. Reserve one slot with a single conditional UPDATE (usage < max).
3. Hand the message to the transport; a failure releases the slot.
4. Alert the owner at the warning threshold (once per period) and at 100%.

A blocked send is never counted. Its owner notification is written in a
separate transaction so it survives the rollback of the blocked attempt.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import utcnow
from ..core.exceptions import NotFoundError, QuotaExceededError
from ..core.transactions import transaction
from ..models.tenant import Tenant
from .email_transport import EmailTransport, get_transport
from .notifications import NotificationService


logger = logging.getLogger(__name__)


def start_of_month(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class EmailQuotaGate:
    """
    Send email on behalf of a tenant within its plan's monthly quota.

    Example usage:
        gate = EmailQuotaGate(db)
        gate.send(tenant_id, "client@example.com", "Your proposal", html)
    """

    def __init__(
        self,
        db: Session,
        transport: Optional[EmailTransport] = None,
        warning_threshold: Optional[float] = None,
    ):
        self.db = db
        self.transport = transport or get_transport()
        self.warning_threshold = (
            settings.email_warning_threshold if warning_threshold is None else warning_threshold
        )
        self.notifications = NotificationService(db)

    def send(
        self,
        tenant_id: UUID,
        to: str,
        subject: str,
        body: str,
        now: Optional[datetime] = None,
    ) -> dict[str, Optional[int]]:
        """
        Deliver one email and count it against the tenant's quota.

        Args:
            tenant_id: Tenant the email is sent for
            to: Recipient address
            subject: Subject line
            body: HTML body
            now: Clock override, defaults to the current UTC time

        Returns:
            {"usage": count after this send, "max": plan limit or None}

        Raises:
            NotFoundError: Unknown tenant
            QuotaExceededError: The monthly limit is used up
            EmailDeliveryError: The transport failed (nothing was counted)
        """
        now = now or utcnow()

        try:
            with transaction(self.db):
                tenant = (
                    self.db.query(Tenant)
                    .filter(Tenant.id == tenant_id)
                    .populate_existing()
                    .first()
                )
                if tenant is None:
                    raise NotFoundError("Tenant not found.")
                max_emails = tenant.max_emails_month

                self._reset_if_new_period(tenant_id, now)
                usage = self._reserve_slot(tenant_id, max_emails)

                self.transport.deliver(to, subject, body)

                if max_emails is not None:
                    self._raise_usage_alerts(tenant_id, usage, max_emails)
        except QuotaExceededError as e:
            self._notify_blocked(tenant_id, to, e.limit)
            logger.warning(f"Email to {to} blocked for tenant {tenant_id}: {e.usage}/{e.limit}")
            raise

        logger.info(f"Email sent to {to} | usage {usage}/{max_emails if max_emails is not None else 'unlimited'}")
        return {"usage": usage, "max": max_emails}

    def _reset_if_new_period(self, tenant_id: UUID, now: datetime) -> bool:
        """Zero the counter once per calendar month. True if a reset happened."""
        reset = (
            self.db.query(Tenant)
            .filter(
                Tenant.id == tenant_id,
                or_(
                    Tenant.email_reset_date.is_(None),
                    Tenant.email_reset_date < start_of_month(now),
                ),
            )
            .update(
                {
                    Tenant.email_usage_count: 0,
                    Tenant.email_reset_date: now,
                    Tenant.email_warning_sent: False,
                },
                synchronize_session=False,
            )
        )
        if reset:
            logger.info(f"Email quota period reset for tenant {tenant_id}")
        return bool(reset)

    def _current_usage(self, tenant_id: UUID) -> int:
        return (
            self.db.query(Tenant.email_usage_count)
            .filter(Tenant.id == tenant_id)
            .scalar()
        )

    def _reserve_slot(self, tenant_id: UUID, max_emails: Optional[int]) -> int:
        query = self.db.query(Tenant).filter(Tenant.id == tenant_id)
        if max_emails is not None:
            query = query.filter(Tenant.email_usage_count < max_emails)

        reserved = query.update(
            {Tenant.email_usage_count: Tenant.email_usage_count + 1},
            synchronize_session=False,
        )
        if reserved == 0:
            raise QuotaExceededError(self._current_usage(tenant_id), max_emails)
        return self._current_usage(tenant_id)

    def _raise_usage_alerts(self, tenant_id: UUID, usage: int, max_emails: int) -> None:
        if usage == max_emails:
            self.notifications.notify_owner(
                tenant_id,
                "Email limit reached",
                f"You have used 100% of your monthly quota ({usage}/{max_emails}). "
                f"New emails will not be sent.",
            )
            return

        if usage / max_emails < self.warning_threshold:
            return

        # Only the request that flips the flag writes the warning
        claimed = (
            self.db.query(Tenant)
            .filter(Tenant.id == tenant_id, Tenant.email_warning_sent.is_(False))
            .update({Tenant.email_warning_sent: True}, synchronize_session=False)
        )
        if claimed:
            percent = int(self.warning_threshold * 100)
            self.notifications.notify_owner(
                tenant_id,
                "Email quota running low",
                f"You have used {usage} of {max_emails} emails ({percent}%). "
                f"Consider upgrading your plan.",
            )

    def _notify_blocked(self, tenant_id: UUID, to: str, max_emails: int) -> None:
        with transaction(self.db):
            self.notifications.notify_owner(
                tenant_id,
                "Email limit reached, send blocked",
                f"Sending to {to} failed. Your monthly quota of {max_emails} emails has been reached.",
            )
