"""
Tests para tenants y miembros
"""


class TestTenant:

    def test_get_current_tenant(self, client, owner):
        response = client.get("/tenants/current", headers=owner["headers"])
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Acme Print House"
        assert body["status"] == "active"
        assert body["plan"] == "trial"
        assert body["trial_ends_at"] is not None

    def test_update_tenant(self, client, owner):
        response = client.put("/tenants/current", headers=owner["headers"], json={
            "name": "Acme Print & Design",
            "business_type": "shop",
        })
        assert response.status_code == 200
        assert response.json()["name"] == "Acme Print & Design"
        assert response.json()["business_type"] == "shop"

    def test_tenants_are_isolated(self, client, owner, other_tenant):
        mine = client.get("/tenants/current", headers=owner["headers"]).json()
        theirs = client.get("/tenants/current", headers=other_tenant["headers"]).json()
        assert mine["id"] != theirs["id"]


class TestMembers:

    def test_add_new_user_as_member(self, client, owner):
        response = client.post("/tenants/current/members", headers=owner["headers"], json={
            "email": "Designer@AcmePrint.com",
            "role": "manager",
            "name": "Efua Designer",
            "password": "Design123!",
        })
        assert response.status_code == 201
        assert response.json()["email"] == "designer@acmeprint.com"
        assert response.json()["role"] == "manager"

        members = client.get("/tenants/current/members", headers=owner["headers"]).json()
        assert members["total"] == 2

    def test_new_user_requires_name_and_password(self, client, owner):
        response = client.post("/tenants/current/members", headers=owner["headers"], json={
            "email": "nobody@acmeprint.com",
            "role": "staff",
        })
        assert response.status_code == 400

    def test_existing_user_joins_second_tenant(self, client, owner, other_tenant):
        response = client.post("/tenants/current/members", headers=owner["headers"], json={
            "email": "owner@kumasicopy.com",
            "role": "admin",
        })
        assert response.status_code == 201
        assert response.json()["is_default"] is False

    def test_duplicate_member_conflict(self, client, owner, add_member):
        add_member("staff")
        response = client.post("/tenants/current/members", headers=owner["headers"], json={
            "email": "staff@acmeprint.com",
            "role": "staff",
        })
        assert response.status_code == 409

    def test_owner_cannot_be_demoted(self, client, owner):
        members = client.get("/tenants/current/members", headers=owner["headers"]).json()["items"]
        owner_membership = next(m for m in members if m["role"] == "owner")
        response = client.patch(
            f"/tenants/current/members/{owner_membership['id']}",
            headers=owner["headers"],
            json={"role": "staff"},
        )
        assert response.status_code == 400

    def test_disabled_member_loses_access(self, client, owner, add_member):
        staff_headers = add_member("staff")
        members = client.get("/tenants/current/members", headers=owner["headers"]).json()["items"]
        staff = next(m for m in members if m["role"] == "staff")

        response = client.patch(
            f"/tenants/current/members/{staff['id']}",
            headers=owner["headers"],
            json={"status": "disabled"},
        )
        assert response.status_code == 200
        assert client.get("/tenants/current", headers=staff_headers).status_code == 403
