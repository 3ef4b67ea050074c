"""
Team management: listing, inviting and removing members.
"""

from uuid import UUID, uuid4

from pipeline_crm.models import User, UserRole
from pipeline_crm.services.lead_lifecycle import LeadService

from factories import auth_headers, create_lead, create_tenant, create_user


def invite(client, actor, **overrides):
    payload = {"name": "Nina New", "email": "nina@acme.com", "password": "s3cret!", "role": "agent"}
    payload.update(overrides)
    return client.post("/api/users/invite", json=payload, headers=auth_headers(actor))


class TestList:
    def test_lists_own_tenant_by_name(self, client, owner, agent_a, admin, outsider):
        team = client.get("/api/users", headers=auth_headers(agent_a)).json()

        assert [member["name"] for member in team] == ["Adam Admin", "Ana Agent", "Olivia Owner"]
        assert all("password_hash" not in member for member in team)


class TestInvite:
    def test_admin_adds_agent_who_can_log_in(self, client, db, tenant, admin):
        response = invite(client, admin, email="Nina@Acme.com")

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "nina@acme.com"
        assert body["role"] == "agent"
        assert body["is_active"] is True

        db.expire_all()
        assert db.query(User).filter(User.id == UUID(body["id"])).one().tenant_id == tenant.id

        login = client.post(
            "/api/auth/login", json={"email": "nina@acme.com", "password": "s3cret!"}
        )
        assert login.status_code == 200

    def test_owner_may_add_admin(self, client, owner):
        response = invite(client, owner, role="admin")

        assert response.status_code == 201
        assert response.json()["role"] == "admin"

    def test_agent_may_not_invite(self, client, agent_a):
        response = invite(client, agent_a)

        assert response.status_code == 403
        assert response.json()["error"] == "permission_denied"

    def test_owner_role_cannot_be_invited(self, client, owner):
        response = invite(client, owner, role="owner")

        assert response.status_code == 422

    def test_email_used_in_any_tenant_is_conflict(self, client, admin, outsider):
        response = invite(client, admin, email="eve@globex.com")

        assert response.status_code == 409

    def test_short_password_rejected(self, client, admin):
        response = invite(client, admin, password="123")

        assert response.status_code == 422

    def test_plan_seat_limit(self, client, db):
        small = create_tenant(db, name="Small", max_users=2)
        boss = create_user(db, small, UserRole.OWNER, "boss@small.com")
        create_user(db, small, UserRole.AGENT, "only@small.com")

        response = invite(client, boss, email="third@small.com")

        assert response.status_code == 403
        assert response.json()["error"] == "plan_limit_reached"
        db.expire_all()
        assert db.query(User).filter(User.tenant_id == small.id).count() == 2

    def test_removed_member_frees_a_seat(self, client, db):
        small = create_tenant(db, name="Small", max_users=2)
        boss = create_user(db, small, UserRole.OWNER, "boss@small.com")
        leaving = create_user(db, small, UserRole.AGENT, "leaving@small.com")

        client.delete(f"/api/users/{leaving.id}", headers=auth_headers(boss))
        response = invite(client, boss, email="third@small.com")

        assert response.status_code == 201


class TestRemove:
    def test_removed_member_is_deactivated(self, client, db, admin, agent_a):
        headers = auth_headers(agent_a)

        response = client.delete(f"/api/users/{agent_a.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["message"] == "User removed successfully"
        db.expire_all()
        assert db.query(User).filter(User.id == agent_a.id).one().is_active is False
        assert client.get("/api/auth/me", headers=headers).status_code == 403

    def test_cannot_remove_self(self, client, admin):
        response = client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 400

    def test_cannot_remove_owner(self, client, owner, admin):
        response = client.delete(f"/api/users/{owner.id}", headers=auth_headers(admin))

        assert response.status_code == 409

    def test_member_with_open_leads_stays(self, client, db, tenant, admin, agent_a):
        lead = create_lead(db, tenant)
        LeadService(db).claim(lead.id, tenant.id, agent_a.id)

        response = client.delete(f"/api/users/{agent_a.id}", headers=auth_headers(admin))

        assert response.status_code == 409
        db.expire_all()
        assert db.query(User).filter(User.id == agent_a.id).one().is_active is True

    def test_member_of_other_tenant_is_not_found(self, client, db, admin, outsider):
        response = client.delete(f"/api/users/{outsider.id}", headers=auth_headers(admin))

        assert response.status_code == 404
        db.expire_all()
        assert db.query(User).filter(User.id == outsider.id).one().is_active is True

    def test_unknown_member(self, client, admin):
        response = client.delete(f"/api/users/{uuid4()}", headers=auth_headers(admin))

        assert response.status_code == 404

    def test_agent_may_not_remove(self, client, agent_a, agent_b):
        response = client.delete(f"/api/users/{agent_b.id}", headers=auth_headers(agent_a))

        assert response.status_code == 403
