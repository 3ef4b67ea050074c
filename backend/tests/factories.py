"""
Row factories and fake transports used by the tests.
"""

from typing import Optional

from pipeline_crm.core.security import create_access_token, hash_password
from pipeline_crm.models import (
    Contact,
    Lead,
    LeadLog,
    LeadStatus,
    Plan,
    Stage,
    Task,
    Tenant,
    User,
    UserRole,
)
from pipeline_crm.services.email_transport import EmailDeliveryError, EmailTransport


TEST_PASSWORD = "correct-horse-battery"
# bcrypt is slow on purpose; hash once for every test user
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# =============================================================================
# Transports
# =============================================================================

class RecordingTransport(EmailTransport):
    """Keeps delivered messages in memory."""

    def __init__(self):
        self.sent = []

    def deliver(self, to: str, subject: str, body: str) -> None:
        self.sent.append({"to": to, "subject": subject, "body": body})


class FailingTransport(EmailTransport):
    def deliver(self, to: str, subject: str, body: str) -> None:
        raise EmailDeliveryError(f"relay refused {to}")


# =============================================================================
# Tenancy
# =============================================================================

def create_tenant(
    db, name: str = "Acme", max_emails: Optional[int] = 10, max_users: Optional[int] = None
) -> Tenant:
    plan = Plan(name=f"{name} plan", max_emails_month=max_emails, max_users=max_users)
    db.add(plan)
    db.flush()
    tenant = Tenant(name=name, plan_id=plan.id)
    db.add(tenant)
    db.commit()
    return tenant


def create_user(db, tenant: Tenant, role: UserRole, email: str, name: Optional[str] = None) -> User:
    user = User(
        tenant_id=tenant.id,
        name=name or email.split("@")[0].title(),
        email=email,
        password_hash=TEST_PASSWORD_HASH,
        role=role,
    )
    db.add(user)
    db.commit()
    return user


def auth_headers(user: User) -> dict:
    token = create_access_token(
        {"sub": str(user.id), "tenant_id": str(user.tenant_id), "role": user.role.value}
    )
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Leads and sales
# =============================================================================

def create_lead(db, tenant: Tenant, **fields) -> Lead:
    fields.setdefault("name", "Maria Souza")
    fields.setdefault("email", "maria@client.com")
    lead = Lead(tenant_id=tenant.id, status=LeadStatus.NEW, **fields)
    db.add(lead)
    db.commit()
    return lead


def log_actions(db, lead_id) -> list:
    """Actions logged for a lead, oldest first."""
    db.expire_all()
    rows = (
        db.query(LeadLog)
        .filter(LeadLog.lead_id == lead_id)
        .order_by(LeadLog.created_at, LeadLog.id)
        .all()
    )
    return [row.action for row in rows]


def create_contact(db, tenant: Tenant, email: Optional[str] = "client@client.com") -> Contact:
    contact = Contact(tenant_id=tenant.id, name="Carla Client", email=email)
    db.add(contact)
    db.commit()
    return contact


def create_stages(db, tenant: Tenant) -> dict:
    stages = {
        "open": Stage(tenant_id=tenant.id, name="Negotiation", position=0, is_won=False),
        "won": Stage(tenant_id=tenant.id, name="Won", position=1, is_won=True),
    }
    db.add_all(stages.values())
    db.commit()
    return stages


def create_task(db, user: User, **fields) -> Task:
    fields.setdefault("title", "Follow up")
    task = Task(tenant_id=user.tenant_id, user_id=user.id, **fields)
    db.add(task)
    db.commit()
    return task
