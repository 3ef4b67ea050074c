"""
Deals and proposals, including the emails they send through the quota gate.
"""

from uuid import UUID

from pipeline_crm.models import Notification, Proposal, ProposalStatus, Tenant

from factories import auth_headers, create_contact, create_stages


def titles_for(db, user):
    db.expire_all()
    return [
        n.title
        for n in db.query(Notification)
        .filter(Notification.user_id == user.id)
        .order_by(Notification.created_at)
        .all()
    ]


def usage_of(db, tenant):
    db.expire_all()
    return db.query(Tenant).filter(Tenant.id == tenant.id).one().email_usage_count


def create_deal(client, user, stage, contact=None, **extra):
    payload = {"title": "Website redesign", "stage_id": str(stage.id), "value": "15000.00"}
    if contact is not None:
        payload["contact_id"] = str(contact.id)
    payload.update(extra)
    response = client.post("/api/deals", json=payload, headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()


def create_proposal(client, user, contact):
    response = client.post(
        "/api/proposals",
        json={
            "title": "Annual support",
            "contact_id": str(contact.id),
            "items": [
                {"description": "Onboarding", "quantity": "1", "unit_price": "500.00"},
                {"description": "Support hours", "quantity": "10", "unit_price": "120.50"},
            ],
        },
        headers=auth_headers(user),
    )
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Deals
# =============================================================================

class TestDeals:
    def test_stages_in_pipeline_order(self, client, db, tenant, agent_a):
        create_stages(db, tenant)

        stages = client.get("/api/deals/stages", headers=auth_headers(agent_a)).json()

        assert [s["name"] for s in stages] == ["Negotiation", "Won"]
        assert stages[1]["is_won"] is True

    def test_agent_owns_created_deal(self, client, db, tenant, agent_a, agent_b):
        stages = create_stages(db, tenant)

        deal = create_deal(client, agent_a, stages["open"], user_id=str(agent_b.id))

        assert deal["user_id"] == str(agent_a.id)

    def test_admin_assigns_deal(self, client, db, tenant, admin, agent_a):
        stages = create_stages(db, tenant)

        deal = create_deal(client, admin, stages["open"], user_id=str(agent_a.id))

        assert deal["user_id"] == str(agent_a.id)

    def test_agents_only_list_their_deals(self, client, db, tenant, admin, agent_a, agent_b):
        stages = create_stages(db, tenant)
        create_deal(client, agent_a, stages["open"], title="Ana's")
        create_deal(client, agent_b, stages["open"], title="Bruno's")

        ana = client.get("/api/deals", headers=auth_headers(agent_a)).json()
        everyone = client.get("/api/deals", headers=auth_headers(admin)).json()

        assert [d["title"] for d in ana] == ["Ana's"]
        assert len(everyone) == 2

    def test_stage_of_other_tenant_is_rejected(self, client, db, tenant, other_tenant, agent_a):
        foreign = create_stages(db, other_tenant)

        response = client.post(
            "/api/deals",
            json={"title": "Sneaky", "stage_id": str(foreign["open"].id)},
            headers=auth_headers(agent_a),
        )

        assert response.status_code == 404

    def test_moving_to_won_emails_contact(self, client, db, tenant, owner, agent_a, transport):
        stages = create_stages(db, tenant)
        contact = create_contact(db, tenant)
        deal = create_deal(client, agent_a, stages["open"], contact=contact)

        response = client.put(
            f"/api/deals/{deal['id']}/move",
            json={"stage_id": str(stages["won"].id)},
            headers=auth_headers(agent_a),
        )

        assert response.status_code == 200
        assert response.json()["stage_id"] == str(stages["won"].id)
        assert len(transport.sent) == 1
        assert transport.sent[0]["to"] == "client@client.com"
        assert "Website redesign" in transport.sent[0]["subject"]
        assert usage_of(db, tenant) == 1

    def test_moving_to_open_stage_sends_nothing(self, client, db, tenant, admin, transport):
        stages = create_stages(db, tenant)
        contact = create_contact(db, tenant)
        deal = create_deal(client, admin, stages["won"], contact=contact)

        client.put(
            f"/api/deals/{deal['id']}/move",
            json={"stage_id": str(stages["open"].id)},
            headers=auth_headers(admin),
        )

        assert transport.sent == []
        assert usage_of(db, tenant) == 0

    def test_won_without_contact_email_sends_nothing(self, client, db, tenant, agent_a, transport):
        stages = create_stages(db, tenant)
        contact = create_contact(db, tenant, email=None)
        deal = create_deal(client, agent_a, stages["open"], contact=contact)

        response = client.put(
            f"/api/deals/{deal['id']}/move",
            json={"stage_id": str(stages["won"].id)},
            headers=auth_headers(agent_a),
        )

        assert response.status_code == 200
        assert transport.sent == []

    def test_move_by_admin_notifies_owner_agent(self, client, db, tenant, admin, agent_a):
        stages = create_stages(db, tenant)
        deal = create_deal(client, agent_a, stages["open"])

        client.put(
            f"/api/deals/{deal['id']}/move",
            json={"stage_id": str(stages["won"].id)},
            headers=auth_headers(admin),
        )

        assert titles_for(db, agent_a) == ["Deal moved"]
        assert titles_for(db, admin) == []

    def test_agent_cannot_move_others_deal(self, client, db, tenant, agent_a, agent_b):
        stages = create_stages(db, tenant)
        deal = create_deal(client, agent_a, stages["open"])

        response = client.put(
            f"/api/deals/{deal['id']}/move",
            json={"stage_id": str(stages["won"].id)},
            headers=auth_headers(agent_b),
        )

        assert response.status_code == 404

    def test_won_email_blocked_by_quota_still_moves(self, client, db, tenant, owner, agent_a, transport):
        stages = create_stages(db, tenant)
        contact = create_contact(db, tenant)
        deal = create_deal(client, agent_a, stages["open"], contact=contact)
        db.query(Tenant).filter(Tenant.id == tenant.id).update({Tenant.email_usage_count: 10})
        db.commit()

        response = client.put(
            f"/api/deals/{deal['id']}/move",
            json={"stage_id": str(stages["won"].id)},
            headers=auth_headers(agent_a),
        )

        assert response.status_code == 200
        assert transport.sent == []
        assert usage_of(db, tenant) == 10
        assert titles_for(db, owner) == ["Email limit reached, send blocked"]


# =============================================================================
# Proposals
# =============================================================================

class TestProposals:
    def test_create_computes_total(self, client, db, tenant, agent_a):
        contact = create_contact(db, tenant)

        proposal = create_proposal(client, agent_a, contact)

        assert proposal["status"] == "draft"
        assert float(proposal["total_amount"]) == 1705.0
        assert len(proposal["items"]) == 2

    def test_items_are_required(self, client, db, tenant, agent_a):
        response = client.post(
            "/api/proposals", json={"title": "Empty", "items": []}, headers=auth_headers(agent_a)
        )

        assert response.status_code == 422

    def test_send_emails_contact(self, client, db, tenant, agent_a, transport):
        contact = create_contact(db, tenant)
        proposal = create_proposal(client, agent_a, contact)

        response = client.post(f"/api/proposals/{proposal['id']}/send", headers=auth_headers(agent_a))

        assert response.status_code == 200
        assert response.json()["status"] == "sent"
        assert response.json()["sent_at"] is not None
        assert len(transport.sent) == 1
        assert transport.sent[0]["subject"] == "Proposal: Annual support"
        assert f"/proposal/{proposal['id']}" in transport.sent[0]["body"]
        assert usage_of(db, tenant) == 1

    def test_send_without_contact_email(self, client, db, tenant, agent_a, transport):
        contact = create_contact(db, tenant, email=None)
        proposal = create_proposal(client, agent_a, contact)

        response = client.post(f"/api/proposals/{proposal['id']}/send", headers=auth_headers(agent_a))

        assert response.status_code == 400
        assert transport.sent == []

    def test_send_blocked_by_quota_still_succeeds(self, client, db, tenant, owner, agent_a, transport):
        contact = create_contact(db, tenant)
        proposal = create_proposal(client, agent_a, contact)
        db.query(Tenant).filter(Tenant.id == tenant.id).update({Tenant.email_usage_count: 10})
        db.commit()

        response = client.post(f"/api/proposals/{proposal['id']}/send", headers=auth_headers(agent_a))

        assert response.status_code == 200
        assert response.json()["status"] == "sent"
        assert transport.sent == []
        assert titles_for(db, owner) == ["Email limit reached, send blocked"]

    def test_public_view_and_answer(self, client, db, tenant, owner, agent_a, transport):
        contact = create_contact(db, tenant)
        proposal = create_proposal(client, agent_a, contact)
        client.post(f"/api/proposals/{proposal['id']}/send", headers=auth_headers(agent_a))

        public = client.get(f"/api/proposals/{proposal['id']}/public")
        assert public.status_code == 200
        assert public.json()["title"] == "Annual support"

        response = client.post(f"/api/proposals/{proposal['id']}/respond", json={"accepted": True})
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"
        assert response.json()["responded_at"] is not None
        assert titles_for(db, owner) == ["Proposal accepted"]

        # The answer is final
        response = client.post(f"/api/proposals/{proposal['id']}/respond", json={"accepted": False})
        assert response.status_code == 409

        db.expire_all()
        stored = db.query(Proposal).filter(Proposal.id == UUID(proposal["id"])).one()
        assert stored.status == ProposalStatus.ACCEPTED

    def test_rejecting(self, client, db, tenant, owner, agent_a, transport):
        contact = create_contact(db, tenant)
        proposal = create_proposal(client, agent_a, contact)
        client.post(f"/api/proposals/{proposal['id']}/send", headers=auth_headers(agent_a))

        response = client.post(f"/api/proposals/{proposal['id']}/respond", json={"accepted": False})

        assert response.json()["status"] == "rejected"
        assert titles_for(db, owner) == ["Proposal rejected"]

    def test_draft_cannot_be_answered(self, client, db, tenant, agent_a):
        contact = create_contact(db, tenant)
        proposal = create_proposal(client, agent_a, contact)

        response = client.post(f"/api/proposals/{proposal['id']}/respond", json={"accepted": True})

        assert response.status_code == 409

    def test_answered_proposal_cannot_be_resent(self, client, db, tenant, agent_a, transport):
        contact = create_contact(db, tenant)
        proposal = create_proposal(client, agent_a, contact)
        headers = auth_headers(agent_a)
        client.post(f"/api/proposals/{proposal['id']}/send", headers=headers)
        client.post(f"/api/proposals/{proposal['id']}/respond", json={"accepted": True})

        response = client.post(f"/api/proposals/{proposal['id']}/send", headers=headers)

        assert response.status_code == 409
        assert len(transport.sent) == 1

    def test_other_tenant_cannot_read(self, client, db, tenant, agent_a, outsider):
        contact = create_contact(db, tenant)
        proposal = create_proposal(client, agent_a, contact)

        response = client.get(f"/api/proposals/{proposal['id']}", headers=auth_headers(outsider))

        assert response.status_code == 404
        assert client.get("/api/proposals", headers=auth_headers(outsider)).json() == []
