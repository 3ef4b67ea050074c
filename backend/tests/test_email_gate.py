"""
Email quota gate: monthly reset, hard stop and owner alerts.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from pipeline_crm.core.exceptions import NotFoundError, QuotaExceededError
from pipeline_crm.models import Notification, Tenant, UserRole
from pipeline_crm.services.email_gate import EmailQuotaGate, start_of_month
from pipeline_crm.services.email_transport import EmailDeliveryError

from factories import FailingTransport, RecordingTransport, create_tenant, create_user


APRIL_10 = datetime(2026, 4, 10, 9, 30, tzinfo=timezone.utc)
APRIL_20 = datetime(2026, 4, 20, 18, 0, tzinfo=timezone.utc)
MAY_2 = datetime(2026, 5, 2, 8, 0, tzinfo=timezone.utc)


def set_usage(db, tenant, usage, reset_date=APRIL_10, warning_sent=False):
    tenant.email_usage_count = usage
    tenant.email_reset_date = reset_date
    tenant.email_warning_sent = warning_sent
    db.commit()


def reload_tenant(db, tenant):
    db.expire_all()
    return db.query(Tenant).filter(Tenant.id == tenant.id).one()


def owner_titles(db, owner):
    db.expire_all()
    rows = (
        db.query(Notification)
        .filter(Notification.user_id == owner.id)
        .order_by(Notification.created_at)
        .all()
    )
    return [row.title for row in rows]


def send(db, tenant, transport, now=APRIL_20, to="client@client.com"):
    gate = EmailQuotaGate(db, transport=transport, warning_threshold=0.9)
    return gate.send(tenant.id, to, "Hello", "<p>Hi</p>", now=now)


def test_start_of_month():
    assert start_of_month(APRIL_20) == datetime(2026, 4, 1, tzinfo=timezone.utc)


class TestCounting:
    def test_send_counts_and_delivers(self, db, tenant, owner):
        transport = RecordingTransport()
        set_usage(db, tenant, 0)

        result = send(db, tenant, transport)

        assert result == {"usage": 1, "max": 10}
        assert transport.sent == [
            {"to": "client@client.com", "subject": "Hello", "body": "<p>Hi</p>"}
        ]
        assert reload_tenant(db, tenant).email_usage_count == 1
        assert owner_titles(db, owner) == []

    def test_unknown_tenant(self, db):
        with pytest.raises(NotFoundError):
            EmailQuotaGate(db, transport=RecordingTransport()).send(
                uuid4(), "a@client.com", "s", "b"
            )

    def test_failed_delivery_is_not_counted(self, db, tenant, owner):
        set_usage(db, tenant, 3)

        with pytest.raises(EmailDeliveryError):
            send(db, tenant, FailingTransport())

        assert reload_tenant(db, tenant).email_usage_count == 3
        assert owner_titles(db, owner) == []

    def test_unlimited_plan_never_blocks(self, db, owner):
        unlimited = create_tenant(db, name="Unlimited", max_emails=None)
        set_usage(db, unlimited, 5000)
        transport = RecordingTransport()

        result = send(db, unlimited, transport)

        assert result == {"usage": 5001, "max": None}
        assert len(transport.sent) == 1


class TestPeriodReset:
    def test_first_send_of_new_month_resets_counter(self, db, tenant, owner):
        set_usage(db, tenant, 10, reset_date=APRIL_10, warning_sent=True)

        result = send(db, tenant, RecordingTransport(), now=MAY_2)

        assert result["usage"] == 1
        tenant = reload_tenant(db, tenant)
        assert tenant.email_usage_count == 1
        assert tenant.email_warning_sent is False
        assert tenant.email_reset_date.replace(tzinfo=None) == MAY_2.replace(tzinfo=None)

    def test_same_month_does_not_reset(self, db, tenant, owner):
        set_usage(db, tenant, 4, reset_date=APRIL_10)

        send(db, tenant, RecordingTransport(), now=APRIL_20)
        send(db, tenant, RecordingTransport(), now=APRIL_20)

        tenant = reload_tenant(db, tenant)
        assert tenant.email_usage_count == 6
        assert tenant.email_reset_date.replace(tzinfo=None) == APRIL_10.replace(tzinfo=None)

    def test_missing_reset_date_starts_a_period(self, db, tenant, owner):
        set_usage(db, tenant, 7, reset_date=None)

        result = send(db, tenant, RecordingTransport(), now=APRIL_20)

        assert result["usage"] == 1
        assert reload_tenant(db, tenant).email_reset_date is not None

    def test_reset_unblocks_exhausted_tenant(self, db, tenant, owner):
        set_usage(db, tenant, 10, reset_date=APRIL_10)
        with pytest.raises(QuotaExceededError):
            send(db, tenant, RecordingTransport(), now=APRIL_20)

        result = send(db, tenant, RecordingTransport(), now=MAY_2)

        assert result == {"usage": 1, "max": 10}


class TestHardStop:
    def test_send_at_limit_is_blocked(self, db, tenant, owner):
        set_usage(db, tenant, 10)
        transport = RecordingTransport()

        with pytest.raises(QuotaExceededError) as exc_info:
            send(db, tenant, transport)

        assert exc_info.value.usage == 10
        assert exc_info.value.limit == 10
        assert exc_info.value.status_code == 429
        assert transport.sent == []
        assert reload_tenant(db, tenant).email_usage_count == 10
        assert owner_titles(db, owner) == ["Email limit reached, send blocked"]

    def test_every_blocked_attempt_notifies(self, db, tenant, owner):
        set_usage(db, tenant, 10)

        for _ in range(3):
            with pytest.raises(QuotaExceededError):
                send(db, tenant, RecordingTransport())

        assert owner_titles(db, owner).count("Email limit reached, send blocked") == 3
        assert reload_tenant(db, tenant).email_usage_count == 10

    def test_counter_never_exceeds_limit(self, db, tenant, owner):
        set_usage(db, tenant, 0)
        transport = RecordingTransport()

        outcomes = []
        for _ in range(14):
            try:
                send(db, tenant, transport)
                outcomes.append("sent")
            except QuotaExceededError:
                outcomes.append("blocked")

        assert outcomes.count("sent") == 10
        assert outcomes.count("blocked") == 4
        assert len(transport.sent) == 10
        assert reload_tenant(db, tenant).email_usage_count == 10

    def test_blocked_without_owner_still_raises(self, db, tenant):
        set_usage(db, tenant, 10)

        with pytest.raises(QuotaExceededError):
            send(db, tenant, RecordingTransport())

        db.expire_all()
        assert db.query(Notification).count() == 0


class TestAlerts:
    def test_warning_then_limit_then_blocked(self, db, tenant, owner):
        set_usage(db, tenant, 8)
        transport = RecordingTransport()

        assert send(db, tenant, transport)["usage"] == 9
        assert owner_titles(db, owner) == ["Email quota running low"]
        assert reload_tenant(db, tenant).email_warning_sent is True

        assert send(db, tenant, transport)["usage"] == 10
        assert owner_titles(db, owner) == [
            "Email quota running low",
            "Email limit reached",
        ]

        with pytest.raises(QuotaExceededError):
            send(db, tenant, transport)
        assert owner_titles(db, owner) == [
            "Email quota running low",
            "Email limit reached",
            "Email limit reached, send blocked",
        ]
        assert len(transport.sent) == 2

    def test_warning_fires_once_per_period(self, db):
        tenant = create_tenant(db, name="Big", max_emails=100)
        set_usage(db, tenant, 89)
        big_owner = create_user(db, tenant, UserRole.OWNER, "boss@big.com")
        transport = RecordingTransport()

        for _ in range(5):
            send(db, tenant, transport)

        assert owner_titles(db, big_owner) == ["Email quota running low"]
        assert reload_tenant(db, tenant).email_usage_count == 94

    def test_below_threshold_is_silent(self, db, tenant, owner):
        set_usage(db, tenant, 0)

        for _ in range(8):
            send(db, tenant, RecordingTransport())

        assert owner_titles(db, owner) == []

    def test_alert_message_shows_usage(self, db, tenant, owner):
        set_usage(db, tenant, 9)

        send(db, tenant, RecordingTransport())

        db.expire_all()
        notification = db.query(Notification).filter(Notification.user_id == owner.id).one()
        assert "10/10" in notification.message
        assert notification.link == "/dashboard/settings"
        assert notification.is_read is False

    def test_alerts_go_to_owner_only(self, db, tenant, owner, admin, agent_a):
        set_usage(db, tenant, 9)

        send(db, tenant, RecordingTransport())

        db.expire_all()
        recipients = {n.user_id for n in db.query(Notification).all()}
        assert recipients == {owner.id}
