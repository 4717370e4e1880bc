"""
Tests para el módulo de clientes
"""

from uuid import uuid4


class TestCustomerCrud:

    def test_create_normalizes_phone(self, client, owner):
        response = client.post("/customers", headers=owner["headers"], json={
            "name": "Ama Owusu",
            "phone": "024 555 1234",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["phone"] == "+233245551234"
        assert float(body["balance"]) == 0
        assert body["is_active"] is True

    def test_create_rejects_invalid_phone(self, client, owner):
        response = client.post("/customers", headers=owner["headers"], json={
            "name": "Ama Owusu",
            "phone": "12ab",
        })
        assert response.status_code == 422

    def test_list_with_search(self, client, owner, customer):
        client.post("/customers", headers=owner["headers"], json={"name": "Esi Boateng"})

        response = client.get("/customers", headers=owner["headers"], params={"search": "mensah"})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == customer["id"]

        response = client.get("/customers", headers=owner["headers"])
        assert response.json()["total"] == 2

    def test_update(self, client, owner, customer):
        response = client.put(f"/customers/{customer['id']}", headers=owner["headers"], json={
            "city": "Kumasi",
            "notes": "Prefers WhatsApp",
        })
        assert response.status_code == 200
        assert response.json()["city"] == "Kumasi"
        assert response.json()["name"] == "Kwame Mensah"

    def test_get_unknown_returns_404(self, client, owner):
        response = client.get(f"/customers/{uuid4()}", headers=owner["headers"])
        assert response.status_code == 404
        assert response.json()["detail"] == "Customer not found"


class TestCustomerIsolation:

    def test_other_tenant_cannot_read_customer(self, client, customer, other_tenant):
        response = client.get(f"/customers/{customer['id']}", headers=other_tenant["headers"])
        assert response.status_code == 404

    def test_other_tenant_list_is_empty(self, client, customer, other_tenant):
        response = client.get("/customers", headers=other_tenant["headers"])
        assert response.json()["total"] == 0


class TestCustomerArchive:

    def test_delete_deactivates(self, client, owner, customer):
        response = client.delete(f"/customers/{customer['id']}", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["message"] == "Customer deactivated"

        response = client.get(f"/customers/{customer['id']}", headers=owner["headers"])
        assert response.json()["is_active"] is False

        active = client.get("/customers", headers=owner["headers"], params={"is_active": True})
        assert active.json()["total"] == 0

    def test_restore_reactivates(self, client, owner, customer):
        client.delete(f"/customers/{customer['id']}", headers=owner["headers"])
        response = client.post(f"/customers/{customer['id']}/restore", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["is_active"] is True

        active = client.get("/customers", headers=owner["headers"], params={"is_active": True})
        assert active.json()["total"] == 1

    def test_staff_cannot_delete(self, client, customer, add_member):
        staff_headers = add_member("staff")
        response = client.delete(f"/customers/{customer['id']}", headers=staff_headers)
        assert response.status_code == 403


class TestCustomerBalance:

    def test_sync_balance_sums_open_invoices(self, client, owner, customer):
        for amount in ("150.00", "50.00"):
            response = client.post("/invoices", headers=owner["headers"], json={
                "customer_id": customer["id"],
                "items": [{"description": "Printing", "quantity": 1, "unit_price": amount}],
            })
            assert response.status_code == 201, response.text
        cancelled = client.post("/invoices", headers=owner["headers"], json={
            "customer_id": customer["id"],
            "items": [{"description": "Binding", "quantity": 1, "unit_price": "999"}],
        }).json()
        client.post(f"/invoices/{cancelled['id']}/cancel", headers=owner["headers"])

        response = client.post(f"/customers/{customer['id']}/sync-balance", headers=owner["headers"])
        assert response.status_code == 200
        assert float(response.json()["balance"]) == 200.0

    def test_sync_all_balances(self, client, owner, customer):
        response = client.post("/customers/sync-balances", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["synced"] == 1
