"""
Bootstrap a Tenant
==================
Creates a plan (if missing), a tenant, its owner account and the default
deal pipeline stages. Prints a temporary password for the owner.

Usage (from the project root, after `pip install -e .`):
    python backend/scripts/bootstrap_tenant.py --tenant "Acme" --email owner@acme.com
    python backend/scripts/bootstrap_tenant.py --tenant "Acme" --email owner@acme.com --plan Pro --max-emails 1000

Flags:
    --tenant      NAME   (required) Tenant (company) name
    --email       EMAIL  (required) Owner's email address
    --name        NAME   (optional) Owner's display name. Derived from email if omitted.
    --plan        NAME   (optional) Plan name. Default: Free
    --max-emails  N      (optional) Monthly email limit when the plan is created. Default: 100
    --create-tables      (optional) Create missing tables first (development only)
"""

import argparse
import secrets
import sys

from pipeline_crm.core.database import SessionLocal, init_db
from pipeline_crm.core.security import hash_password
from pipeline_crm.core.transactions import transaction
from pipeline_crm.models import Plan, Tenant, User, UserRole, Stage


DEFAULT_STAGES = (
    ("Prospecting", False),
    ("Qualification", False),
    ("Proposal", False),
    ("Negotiation", False),
    ("Won", True),
)


def generate_temp_password() -> str:
    """Readable temporary password (12 chars URL-safe)."""
    return secrets.token_urlsafe(9)


def name_from_email(email: str) -> str:
    local = email.split("@")[0]
    parts = local.replace(".", " ").replace("_", " ").replace("-", " ").split()
    return " ".join(p.capitalize() for p in parts) or local


def main():
    parser = argparse.ArgumentParser(
        description="Create a tenant with its owner account for Pipeline CRM."
    )
    parser.add_argument("--tenant", required=True, help="Tenant (company) name")
    parser.add_argument("--email", required=True, help="Owner's email address")
    parser.add_argument("--name", default=None, help="Owner's display name")
    parser.add_argument("--plan", default="Free", help="Plan name (default: Free)")
    parser.add_argument(
        "--max-emails",
        type=int,
        default=100,
        help="Monthly email limit if the plan does not exist yet (default: 100)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before inserting (development only)",
    )
    args = parser.parse_args()

    email = args.email.strip().lower()
    owner_name = args.name.strip() if args.name else name_from_email(email)

    print("=" * 60)
    print("  BOOTSTRAP TENANT")
    print("=" * 60)

    if args.create_tables:
        init_db()
        print("  [OK] Tables ensured")

    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            print(f"  [FAIL] A user with email {email} already exists")
            sys.exit(1)

        temp_password = generate_temp_password()
        with transaction(db):
            plan = db.query(Plan).filter(Plan.name == args.plan).first()
            if plan is None:
                plan = Plan(name=args.plan, max_emails_month=args.max_emails)
                db.add(plan)
                db.flush()
                print(f"  [OK] Created plan {plan.name} ({plan.max_emails_month} emails/month)")

            tenant = Tenant(name=args.tenant.strip(), plan_id=plan.id)
            db.add(tenant)
            db.flush()

            owner = User(
                tenant_id=tenant.id,
                name=owner_name,
                email=email,
                password_hash=hash_password(temp_password),
                role=UserRole.OWNER,
            )
            db.add(owner)

            for position, (stage_name, is_won) in enumerate(DEFAULT_STAGES):
                db.add(Stage(tenant_id=tenant.id, name=stage_name, position=position, is_won=is_won))

        print(f"  Tenant:   {tenant.name} ({tenant.id})")
        print(f"  Owner:    {owner_name} <{email}>")
        print(f"  Temp PW:  {temp_password}")
        print("=" * 60)
    finally:
        db.close()


if __name__ == "__main__":
    main()
