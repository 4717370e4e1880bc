"""
Tests para el módulo de inventario

Cubre:
- Categorías e items (SKU único por tenant)
- Movimientos: compra, ajuste y consumo por trabajo
- Existencias nunca negativas y resumen con stock bajo
"""


def create_item(client, headers, **overrides):
    payload = {
        "name": "A4 paper 80gsm",
        "sku": "PAP-A4-80",
        "unit": "ream",
        "quantity_on_hand": "20",
        "reorder_level": "5",
        "unit_cost": "45.00",
    }
    payload.update(overrides)
    response = client.post("/inventory/items", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestInventoryCategories:

    def test_create_and_reject_duplicate(self, client, owner):
        response = client.post("/inventory/categories", headers=owner["headers"], json={"name": "Paper"})
        assert response.status_code == 201
        response = client.post("/inventory/categories", headers=owner["headers"], json={"name": "Paper"})
        assert response.status_code == 409

    def test_delete_detaches_items(self, client, owner):
        category = client.post("/inventory/categories", headers=owner["headers"], json={"name": "Paper"}).json()
        item = create_item(client, owner["headers"], category_id=category["id"])

        assert client.delete(f"/inventory/categories/{category['id']}", headers=owner["headers"]).status_code == 200
        item = client.get(f"/inventory/items/{item['id']}", headers=owner["headers"]).json()
        assert item["category_id"] is None


class TestInventoryItems:

    def test_opening_stock_records_purchase(self, client, owner):
        item = create_item(client, owner["headers"])
        assert float(item["quantity_on_hand"]) == 20.0

        movements = client.get(f"/inventory/items/{item['id']}/movements", headers=owner["headers"]).json()
        assert len(movements) == 1
        assert movements[0]["type"] == "purchase"
        assert movements[0]["reference"] == "Opening stock"
        assert float(movements[0]["previous_quantity"]) == 0.0

    def test_duplicate_sku_conflicts(self, client, owner, other_tenant):
        create_item(client, owner["headers"])
        response = client.post("/inventory/items", headers=owner["headers"], json={"name": "Other", "sku": "PAP-A4-80"})
        assert response.status_code == 409
        create_item(client, other_tenant["headers"])

    def test_preferred_vendor_must_belong_to_tenant(self, client, owner, other_tenant):
        foreign_vendor = client.post("/vendors", headers=other_tenant["headers"], json={"name": "Kumasi Paper"}).json()
        response = client.post("/inventory/items", headers=owner["headers"], json={
            "name": "Toner", "preferred_vendor_id": foreign_vendor["id"]
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Vendor not found"

        item = create_item(client, owner["headers"])
        response = client.put(
            f"/inventory/items/{item['id']}", headers=owner["headers"],
            json={"preferred_vendor_id": foreign_vendor["id"]}
        )
        assert response.status_code == 404

    def test_deactivated_items_are_hidden(self, client, owner):
        item = create_item(client, owner["headers"])
        client.delete(f"/inventory/items/{item['id']}", headers=owner["headers"])
        assert client.get("/inventory/items", headers=owner["headers"]).json()["total"] == 0
        listing = client.get("/inventory/items", headers=owner["headers"], params={"include_inactive": True}).json()
        assert listing["total"] == 1


class TestInventoryMovements:

    def test_restock_updates_cost(self, client, owner):
        item = create_item(client, owner["headers"])
        response = client.post(f"/inventory/items/{item['id']}/restock", headers=owner["headers"], json={
            "quantity": "10", "unit_cost": "48.00", "reference": "PO-118"
        })
        assert response.status_code == 200, response.text
        body = response.json()
        assert float(body["item"]["quantity_on_hand"]) == 30.0
        assert float(body["item"]["unit_cost"]) == 48.0
        assert float(body["movement"]["previous_quantity"]) == 20.0
        assert float(body["movement"]["new_quantity"]) == 30.0

    def test_adjust_to_counted_quantity(self, client, owner):
        item = create_item(client, owner["headers"])
        response = client.post(f"/inventory/items/{item['id']}/adjust", headers=owner["headers"], json={
            "new_quantity": "17", "notes": "Stock count"
        })
        body = response.json()
        assert body["movement"]["type"] == "adjustment"
        assert float(body["movement"]["quantity_delta"]) == -3.0
        assert float(body["item"]["quantity_on_hand"]) == 17.0

    def test_adjust_without_change_rejected(self, client, owner):
        item = create_item(client, owner["headers"])
        response = client.post(f"/inventory/items/{item['id']}/adjust", headers=owner["headers"], json={"new_quantity": "20"})
        assert response.status_code == 400

    def test_adjust_requires_target(self, client, owner):
        item = create_item(client, owner["headers"])
        response = client.post(f"/inventory/items/{item['id']}/adjust", headers=owner["headers"], json={})
        assert response.status_code == 422

    def test_quantity_cannot_go_negative(self, client, owner):
        item = create_item(client, owner["headers"])
        response = client.post(f"/inventory/items/{item['id']}/adjust", headers=owner["headers"], json={"quantity_delta": "-21"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Resulting quantity cannot be negative"
        item = client.get(f"/inventory/items/{item['id']}", headers=owner["headers"]).json()
        assert float(item["quantity_on_hand"]) == 20.0

    def test_usage_against_job(self, client, owner, customer):
        item = create_item(client, owner["headers"])
        job = client.post("/jobs", headers=owner["headers"], json={
            "customer_id": customer["id"], "title": "Exam papers", "final_price": "300"
        }).json()

        response = client.post(f"/inventory/items/{item['id']}/usage", headers=owner["headers"], json={
            "job_id": job["id"], "quantity": "4"
        })
        assert response.status_code == 200, response.text
        movement = response.json()["movement"]
        assert movement["type"] == "usage"
        assert movement["job_id"] == job["id"]
        assert movement["reference"] == job["job_number"]
        assert float(response.json()["item"]["quantity_on_hand"]) == 16.0

    def test_staff_cannot_adjust(self, client, owner, add_member):
        item = create_item(client, owner["headers"])
        staff_headers = add_member("staff")
        response = client.post(f"/inventory/items/{item['id']}/adjust", headers=staff_headers, json={"quantity_delta": "1"})
        assert response.status_code == 403


class TestInventorySummary:

    def test_summary_and_low_stock(self, client, owner):
        create_item(client, owner["headers"])
        create_item(client, owner["headers"], name="Black toner", sku="TON-BLK", unit="cartridge",
                    quantity_on_hand="2", reorder_level="3", unit_cost="300")

        low = client.get("/inventory/items", headers=owner["headers"], params={"low_stock": True}).json()
        assert low["total"] == 1
        assert low["items"][0]["sku"] == "TON-BLK"

        summary = client.get("/inventory/summary", headers=owner["headers"]).json()
        assert summary["total_items"] == 2
        assert float(summary["total_quantity"]) == 22.0
        assert float(summary["inventory_value"]) == 1500.0
        assert summary["low_stock_count"] == 1
