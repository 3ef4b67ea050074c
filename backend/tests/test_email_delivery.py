"""
Email templates and transports.
"""

import smtplib
from decimal import Decimal
from types import SimpleNamespace

import pytest

from pipeline_crm.services import email_transport
from pipeline_crm.services.email_templates import build_deal_won_email, build_proposal_email
from pipeline_crm.services.email_transport import (
    EmailDeliveryError,
    LogTransport,
    SMTPTransport,
    get_transport,
)


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username))

    def send_message(self, msg):
        self.calls.append(("send", msg["To"], msg["Subject"]))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_transport.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_proposal_email_escapes_user_text():
    items = [
        SimpleNamespace(
            description="<script>alert(1)</script>",
            quantity=Decimal("2"),
            unit_price=Decimal("10.00"),
            total_price=Decimal("20.00"),
        )
    ]

    subject, html = build_proposal_email("Ana & Co", "Q3 <deal>", items, Decimal("20.00"), "abc-123")

    assert subject == "Proposal: Q3 <deal>"
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "Ana &amp; Co" in html
    assert "20.00" in html
    assert "/proposal/abc-123" in html


def test_deal_won_email():
    subject, html = build_deal_won_email(None, "Website redesign")

    assert subject == "Welcome aboard: Website redesign"
    assert "Hello there," in html
    assert "Website redesign" in html


def test_default_transport_logs():
    assert isinstance(get_transport(), LogTransport)


def test_smtp_selected_by_setting(monkeypatch):
    monkeypatch.setattr(email_transport.settings, "email_transport", "smtp")

    assert isinstance(get_transport(), SMTPTransport)


def test_smtp_sends_with_tls_and_login(fake_smtp):
    transport = SMTPTransport(
        host="relay.acme.com", port=587, username="mailer", password="secret", use_tls=True
    )

    transport.deliver("client@client.com", "Hi", "<p>Hi</p>")

    server = fake_smtp.instances[0]
    assert (server.host, server.port) == ("relay.acme.com", 587)
    assert server.calls == [
        "starttls",
        ("login", "mailer"),
        ("send", "client@client.com", "Hi"),
    ]


def test_smtp_without_credentials_skips_login(fake_smtp):
    transport = SMTPTransport(host="localhost", port=1025, username="", password="", use_tls=False)

    transport.deliver("client@client.com", "Hi", "<p>Hi</p>")

    assert fake_smtp.instances[0].calls == [("send", "client@client.com", "Hi")]


def test_smtp_failure_is_wrapped(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "busy")

    monkeypatch.setattr(email_transport.smtplib, "SMTP", refuse)
    transport = SMTPTransport(host="relay.acme.com", port=587, use_tls=False)

    with pytest.raises(EmailDeliveryError):
        transport.deliver("client@client.com", "Hi", "<p>Hi</p>")
