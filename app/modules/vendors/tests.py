"""
Tests para el módulo de proveedores
"""

from uuid import uuid4


def create_vendor(client, headers, **overrides):
    payload = {"name": "Accra Paper Supplies", "category": "Paper", "phone": "0302123456"}
    payload.update(overrides)
    response = client.post("/vendors", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestVendors:

    def test_create_and_get(self, client, owner):
        vendor = create_vendor(client, owner["headers"])
        assert vendor["phone"] == "+233302123456"
        assert float(vendor["balance"]) == 0

        response = client.get(f"/vendors/{vendor['id']}", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["name"] == "Accra Paper Supplies"

    def test_list_filters_by_category_and_search(self, client, owner):
        create_vendor(client, owner["headers"])
        create_vendor(client, owner["headers"], name="Tema Ink Ltd", category="Ink", phone=None)

        ink = client.get("/vendors", headers=owner["headers"], params={"category": "Ink"}).json()
        assert ink["total"] == 1
        assert ink["items"][0]["name"] == "Tema Ink Ltd"

        search = client.get("/vendors", headers=owner["headers"], params={"search": "paper"}).json()
        assert search["total"] == 1

    def test_update(self, client, owner):
        vendor = create_vendor(client, owner["headers"])
        response = client.put(f"/vendors/{vendor['id']}", headers=owner["headers"], json={"payment_terms": "Net 15"})
        assert response.status_code == 200
        assert response.json()["payment_terms"] == "Net 15"

    def test_delete_deactivates(self, client, owner):
        vendor = create_vendor(client, owner["headers"])
        response = client.delete(f"/vendors/{vendor['id']}", headers=owner["headers"])
        assert response.json()["message"] == "Vendor deactivated"
        assert client.get(f"/vendors/{vendor['id']}", headers=owner["headers"]).json()["is_active"] is False

        restored = client.post(f"/vendors/{vendor['id']}/restore", headers=owner["headers"])
        assert restored.json()["is_active"] is True

    def test_staff_cannot_create(self, client, add_member):
        staff_headers = add_member("staff")
        response = client.post("/vendors", headers=staff_headers, json={"name": "Nope"})
        assert response.status_code == 403

    def test_tenant_isolation(self, client, owner, other_tenant):
        vendor = create_vendor(client, owner["headers"])
        assert client.get(f"/vendors/{vendor['id']}", headers=other_tenant["headers"]).status_code == 404
        assert client.get(f"/vendors/{uuid4()}", headers=owner["headers"]).status_code == 404


class TestVendorPriceList:

    def test_crud(self, client, owner):
        vendor = create_vendor(client, owner["headers"])
        url = f"/vendors/{vendor['id']}/price-list"

        created = client.post(url, headers=owner["headers"], json={
            "name": "A4 80gsm ream", "item_type": "product", "price": "45.499", "unit": "ream",
        })
        assert created.status_code == 201, created.text
        item = created.json()
        assert float(item["price"]) == 45.5
        assert item["unit"] == "ream"

        client.post(url, headers=owner["headers"], json={"name": "Lamination", "price": "2"})
        listed = client.get(url, headers=owner["headers"]).json()
        assert {i["name"] for i in listed} == {"A4 80gsm ream", "Lamination"}
        assert next(i for i in listed if i["name"] == "Lamination")["item_type"] == "service"

        updated = client.put(f"{url}/{item['id']}", headers=owner["headers"], json={"is_active": False})
        assert updated.json()["is_active"] is False
        active = client.get(url, headers=owner["headers"], params={"is_active": True}).json()
        assert [i["name"] for i in active] == ["Lamination"]

        assert client.delete(f"{url}/{item['id']}", headers=owner["headers"]).status_code == 200
        assert client.put(f"{url}/{item['id']}", headers=owner["headers"], json={"price": "1"}).status_code == 404

    def test_foreign_vendor_returns_404(self, client, owner, other_tenant):
        foreign = create_vendor(client, other_tenant["headers"])
        url = f"/vendors/{foreign['id']}/price-list"
        assert client.get(url, headers=owner["headers"]).status_code == 404
        assert client.post(url, headers=owner["headers"], json={"name": "X", "price": "1"}).status_code == 404

    def test_staff_reads_but_cannot_write(self, client, owner, add_member):
        vendor = create_vendor(client, owner["headers"])
        staff_headers = add_member("staff")
        url = f"/vendors/{vendor['id']}/price-list"
        assert client.get(url, headers=staff_headers).status_code == 200
        assert client.post(url, headers=staff_headers, json={"name": "X", "price": "1"}).status_code == 403
