"""
Tests para el CRM de leads
"""

from datetime import date, timedelta

from app.modules.customers.models import Customer


def create_lead(client, headers, **overrides):
    payload = {
        "name": "Abena Asante",
        "company": "Asante Events",
        "email": "abena@asante-events.com",
        "phone": "0277001122",
        "source": "instagram",
        "priority": "high",
    }
    payload.update(overrides)
    response = client.post("/leads", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestLeads:

    def test_create_defaults(self, client, owner):
        lead = create_lead(client, owner["headers"], metadata={"campaign": "easter"})
        assert lead["status"] == "new"
        assert lead["phone"] == "+233277001122"
        assert lead["metadata"] == {"campaign": "easter"}
        assert lead["converted_customer_id"] is None

    def test_filters(self, client, owner):
        create_lead(client, owner["headers"])
        create_lead(client, owner["headers"], name="Kojo Badu", company=None, email=None, phone=None,
                    priority="low", status="contacted")

        high = client.get("/leads", headers=owner["headers"], params={"priority": "high"}).json()
        assert high["total"] == 1
        contacted = client.get("/leads", headers=owner["headers"], params={"status": "contacted"}).json()
        assert contacted["items"][0]["name"] == "Kojo Badu"
        search = client.get("/leads", headers=owner["headers"], params={"search": "asante"}).json()
        assert search["total"] == 1

    def test_update_merges_metadata(self, client, owner):
        lead = create_lead(client, owner["headers"], metadata={"campaign": "easter"})
        response = client.put(f"/leads/{lead['id']}", headers=owner["headers"], json={
            "status": "qualified", "metadata": {"budget": 2000}
        })
        assert response.status_code == 200
        assert response.json()["status"] == "qualified"
        assert response.json()["metadata"] == {"campaign": "easter", "budget": 2000}

    def test_archive_requires_manager(self, client, owner, add_member):
        lead = create_lead(client, owner["headers"])
        staff_headers = add_member("staff")
        assert client.delete(f"/leads/{lead['id']}", headers=staff_headers).status_code == 403

        response = client.delete(f"/leads/{lead['id']}", headers=owner["headers"])
        assert response.status_code == 200
        assert client.get("/leads", headers=owner["headers"]).json()["total"] == 0
        archived = client.get("/leads", headers=owner["headers"], params={"is_active": False}).json()
        assert archived["total"] == 1

    def test_tenant_isolation(self, client, owner, other_tenant):
        lead = create_lead(client, owner["headers"])
        assert client.get(f"/leads/{lead['id']}", headers=other_tenant["headers"]).status_code == 404


    def test_assignee_must_belong_to_tenant(self, client, owner, other_tenant):
        response = client.post("/leads", headers=owner["headers"], json={
            "name": "Kofi Annan", "assigned_to": other_tenant["user_id"]
        })
        assert response.status_code == 404

        lead = create_lead(client, owner["headers"], assigned_to=owner["user_id"])
        response = client.put(f"/leads/{lead['id']}", headers=owner["headers"], json={"assigned_to": other_tenant["user_id"]})
        assert response.status_code == 404


class TestLeadActivities:

    def test_call_updates_contact_and_follow_up(self, client, owner):
        lead = create_lead(client, owner["headers"])
        follow_up = (date.today() + timedelta(days=3)).isoformat()
        response = client.post(f"/leads/{lead['id']}/activities", headers=owner["headers"], json={
            "type": "call",
            "subject": "Intro call",
            "follow_up_date": follow_up,
            "update_status": "contacted",
        })
        assert response.status_code == 201, response.text
        assert response.json()["created_by"] == owner["user_id"]

        lead = client.get(f"/leads/{lead['id']}", headers=owner["headers"]).json()
        assert lead["status"] == "contacted"
        assert lead["next_follow_up"] == follow_up
        assert lead["last_contacted_at"] is not None

    def test_note_does_not_touch_last_contacted(self, client, owner):
        lead = create_lead(client, owner["headers"])
        client.post(f"/leads/{lead['id']}/activities", headers=owner["headers"], json={"notes": "Asked for samples"})

        activities = client.get(f"/leads/{lead['id']}/activities", headers=owner["headers"]).json()
        assert len(activities) == 1
        assert activities[0]["type"] == "note"
        lead = client.get(f"/leads/{lead['id']}", headers=owner["headers"]).json()
        assert lead["last_contacted_at"] is None


class TestLeadConversion:

    def test_convert_creates_customer(self, client, owner, db_session):
        lead = create_lead(client, owner["headers"])
        response = client.post(f"/leads/{lead['id']}/convert", headers=owner["headers"])
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["lead"]["status"] == "converted"
        assert body["lead"]["converted_customer_id"] == body["customer_id"]

        customer = client.get(f"/customers/{body['customer_id']}", headers=owner["headers"]).json()
        assert customer["name"] == "Abena Asante"
        assert customer["phone"] == "+233277001122"
        assert customer["how_did_you_hear"] == "instagram"
        assert db_session.query(Customer).count() == 1

    def test_convert_twice_rejected(self, client, owner):
        lead = create_lead(client, owner["headers"])
        client.post(f"/leads/{lead['id']}/convert", headers=owner["headers"])
        response = client.post(f"/leads/{lead['id']}/convert", headers=owner["headers"])
        assert response.status_code == 400
        assert response.json()["detail"] == "Lead is already converted"


class TestLeadSummary:

    def test_counts_and_upcoming_follow_ups(self, client, owner):
        create_lead(client, owner["headers"], next_follow_up=(date.today() + timedelta(days=2)).isoformat())
        create_lead(client, owner["headers"], name="Kojo Badu", status="lost",
                    next_follow_up=(date.today() + timedelta(days=30)).isoformat())

        summary = client.get("/leads/summary", headers=owner["headers"]).json()
        assert summary["total_leads"] == 2
        assert {s["status"]: s["count"] for s in summary["by_status"]} == {"new": 1, "lost": 1}
        assert [lead["name"] for lead in summary["upcoming_follow_ups"]] == ["Abena Asante"]
