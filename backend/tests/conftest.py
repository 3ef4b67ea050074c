"""
Shared fixtures.

The whole suite runs against one in-memory SQLite database (StaticPool,
so every session shares the connection). Tables are recreated per test.
"""

import os

# Must be set before pipeline_crm.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["EMAIL_TRANSPORT"] = "log"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from pipeline_crm.core.database import Base, SessionLocal, engine
from pipeline_crm.main import app
from pipeline_crm.models import UserRole
from pipeline_crm.services import email_gate

from factories import RecordingTransport, create_tenant, create_user


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def transport(monkeypatch):
    """Route every gate send (including background ones) to memory."""
    recorder = RecordingTransport()
    monkeypatch.setattr(email_gate, "get_transport", lambda: recorder)
    return recorder


@pytest.fixture
def tenant(db):
    return create_tenant(db)


@pytest.fixture
def owner(db, tenant):
    return create_user(db, tenant, UserRole.OWNER, "owner@acme.com", "Olivia Owner")


@pytest.fixture
def admin(db, tenant):
    return create_user(db, tenant, UserRole.ADMIN, "admin@acme.com", "Adam Admin")


@pytest.fixture
def agent_a(db, tenant):
    return create_user(db, tenant, UserRole.AGENT, "ana@acme.com", "Ana Agent")


@pytest.fixture
def agent_b(db, tenant):
    return create_user(db, tenant, UserRole.AGENT, "bruno@acme.com", "Bruno Agent")


@pytest.fixture
def other_tenant(db):
    return create_tenant(db, name="Globex")


@pytest.fixture
def outsider(db, other_tenant):
    """An agent of a different tenant."""
    return create_user(db, other_tenant, UserRole.AGENT, "eve@globex.com", "Eve Outsider")
