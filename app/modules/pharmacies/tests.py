"""
Tests para farmacias, medicamentos y recetas

Cubre:
- Vencimientos y stock bajo
- Despacho total, parcial y sin stock
- Bloqueo por interacciones (en ambos sentidos)
- Factura de la receta según lo despachado
"""

from datetime import date, timedelta

from app.modules.pharmacies.models import Drug
from app.modules.pharmacies.service import find_interactions


def create_drug(client, headers, **overrides):
    payload = {
        "name": "Amoxicillin 500mg",
        "generic_name": "amoxicillin",
        "sku": "AMX-500",
        "drug_type": "prescription",
        "selling_price": "2.50",
        "quantity_on_hand": "100",
        "reorder_level": "20",
        "strength": "500mg",
        "form": "capsule",
        "unit": "capsule",
    }
    payload.update(overrides)
    response = client.post("/drugs", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_prescription(client, headers, items, **overrides):
    payload = {"prescriber_name": "Dr. Efua Mensah", "items": items}
    payload.update(overrides)
    response = client.post("/prescriptions", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestFindInteractions:

    def test_detects_either_direction(self):
        warfarin = Drug(name="Warfarin", generic_name="warfarin", interactions=["Aspirin"])
        aspirin = Drug(name="Aspirin 75mg", generic_name="aspirin", interactions=[])
        paracetamol = Drug(name="Paracetamol", generic_name="paracetamol", interactions=[])

        assert find_interactions([warfarin, aspirin]) == [{"drug": "Warfarin", "interacts_with": "Aspirin 75mg"}]
        assert len(find_interactions([aspirin, warfarin])) == 1
        assert find_interactions([warfarin, paracetamol]) == []


class TestPharmacies:

    def test_create_and_duplicate_code(self, client, owner):
        response = client.post("/pharmacies", headers=owner["headers"], json={
            "name": "Lapaz Pharmacy", "code": "LPZ", "license_number": "PC-2231"
        })
        assert response.status_code == 201
        response = client.post("/pharmacies", headers=owner["headers"], json={"name": "Dup", "code": "LPZ"})
        assert response.status_code == 409

    def test_pharmacy_with_prescriptions_cannot_be_deleted(self, client, owner):
        pharmacy = client.post("/pharmacies", headers=owner["headers"], json={"name": "Lapaz Pharmacy"}).json()
        drug = create_drug(client, owner["headers"], pharmacy_id=pharmacy["id"])
        create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "10"}],
                            pharmacy_id=pharmacy["id"])
        assert client.delete(f"/pharmacies/{pharmacy['id']}", headers=owner["headers"]).status_code == 400


class TestDrugs:

    def test_expiring_and_low_stock(self, client, owner):
        create_drug(client, owner["headers"], expiry_date=(date.today() + timedelta(days=10)).isoformat())
        create_drug(client, owner["headers"], name="Ibuprofen 400mg", generic_name="ibuprofen", sku="IBU-400",
                    quantity_on_hand="5", expiry_date=(date.today() + timedelta(days=200)).isoformat())

        expiring = client.get("/drugs/expiring", headers=owner["headers"]).json()
        assert [d["sku"] for d in expiring] == ["AMX-500"]
        expiring = client.get("/drugs/expiring", headers=owner["headers"], params={"days": 365}).json()
        assert len(expiring) == 2

        low = client.get("/drugs/low-stock", headers=owner["headers"]).json()
        assert [d["sku"] for d in low] == ["IBU-400"]

    def test_filter_by_type(self, client, owner):
        create_drug(client, owner["headers"])
        create_drug(client, owner["headers"], name="Vitamin C", generic_name="ascorbic acid", sku="VIT-C",
                    drug_type="supplement")
        supplements = client.get("/drugs", headers=owner["headers"], params={"drug_type": "supplement"}).json()
        assert supplements["total"] == 1

    def test_referenced_drug_cannot_be_deleted(self, client, owner):
        drug = create_drug(client, owner["headers"])
        create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "1"}])
        assert client.delete(f"/drugs/{drug['id']}", headers=owner["headers"]).status_code == 400


class TestPrescriptions:

    def test_create_prices_from_drug(self, client, owner, customer):
        drug = create_drug(client, owner["headers"])
        rx = create_prescription(client, owner["headers"], [
            {"drug_id": drug["id"], "quantity": "21", "dosage": "1 capsule 3x daily", "duration": "7 days"}
        ], customer_id=customer["id"])

        assert rx["prescription_number"] == f"RX-{date.today().strftime('%Y%m%d')}-0001"
        assert rx["status"] == "pending"
        assert float(rx["total_amount"]) == 52.5
        assert rx["items"][0]["drug_name"] == "Amoxicillin 500mg"
        assert rx["items"][0]["strength"] == "500mg"

    def test_fill_with_enough_stock(self, client, owner):
        drug = create_drug(client, owner["headers"])
        rx = create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "21"}])

        response = client.post(f"/prescriptions/{rx['id']}/fill", headers=owner["headers"])
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["status"] == "filled"
        assert body["filled_at"] is not None
        assert body["items"][0]["status"] == "filled"

        drug = client.get(f"/drugs/{drug['id']}", headers=owner["headers"]).json()
        assert float(drug["quantity_on_hand"]) == 79.0

        again = client.post(f"/prescriptions/{rx['id']}/fill", headers=owner["headers"])
        assert again.status_code == 400

    def test_partial_fill(self, client, owner):
        drug = create_drug(client, owner["headers"], quantity_on_hand="8")
        rx = create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "21"}])

        body = client.post(f"/prescriptions/{rx['id']}/fill", headers=owner["headers"]).json()
        assert body["status"] == "partially_filled"
        assert float(body["items"][0]["quantity_filled"]) == 8.0
        assert float(body["total_amount"]) == 20.0

        drug = client.get(f"/drugs/{drug['id']}", headers=owner["headers"]).json()
        assert float(drug["quantity_on_hand"]) == 0.0

    def test_unavailable_item(self, client, owner):
        drug = create_drug(client, owner["headers"], quantity_on_hand="0")
        rx = create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "5"}])

        body = client.post(f"/prescriptions/{rx['id']}/fill", headers=owner["headers"]).json()
        assert body["status"] == "pending"
        assert body["items"][0]["status"] == "unavailable"

    def test_interaction_blocks_fill(self, client, owner):
        warfarin = create_drug(client, owner["headers"], name="Warfarin 5mg", generic_name="warfarin",
                               sku="WAR-5", interactions=["aspirin"])
        aspirin = create_drug(client, owner["headers"], name="Aspirin 75mg", generic_name="Aspirin", sku="ASP-75")
        rx = create_prescription(client, owner["headers"], [
            {"drug_id": warfarin["id"], "quantity": "30"},
            {"drug_id": aspirin["id"], "quantity": "30"},
        ])

        response = client.post(f"/prescriptions/{rx['id']}/fill", headers=owner["headers"])
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Drug interactions detected")

        warfarin = client.get(f"/drugs/{warfarin['id']}", headers=owner["headers"]).json()
        assert float(warfarin["quantity_on_hand"]) == 100.0

    def test_cancel(self, client, owner):
        drug = create_drug(client, owner["headers"])
        rx = create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "5"}])

        body = client.post(f"/prescriptions/{rx['id']}/cancel", headers=owner["headers"]).json()
        assert body["status"] == "cancelled"
        assert body["items"][0]["status"] == "cancelled"
        assert client.post(f"/prescriptions/{rx['id']}/fill", headers=owner["headers"]).status_code == 400
        assert client.post(f"/prescriptions/{rx['id']}/invoice", headers=owner["headers"]).status_code == 400

    def test_only_pending_can_be_updated(self, client, owner):
        drug = create_drug(client, owner["headers"])
        rx = create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "5"}])
        response = client.put(f"/prescriptions/{rx['id']}", headers=owner["headers"], json={"notes": "Take with food"})
        assert response.status_code == 200

        client.post(f"/prescriptions/{rx['id']}/fill", headers=owner["headers"])
        response = client.put(f"/prescriptions/{rx['id']}", headers=owner["headers"], json={"notes": "Late"})
        assert response.status_code == 400


class TestPrescriptionInvoice:

    def test_invoice_uses_filled_quantities(self, client, owner, customer):
        drug = create_drug(client, owner["headers"], quantity_on_hand="8")
        rx = create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "21"}],
                                 customer_id=customer["id"], amount_paid="5")
        client.post(f"/prescriptions/{rx['id']}/fill", headers=owner["headers"])

        response = client.post(f"/prescriptions/{rx['id']}/invoice", headers=owner["headers"])
        assert response.status_code == 201, response.text
        invoice = response.json()
        assert invoice["source_type"] == "prescription"
        assert float(invoice["total_amount"]) == 20.0
        assert float(invoice["amount_paid"]) == 5.0
        assert invoice["status"] == "partial"
        assert invoice["items"][0]["description"] == "Amoxicillin 500mg 500mg"

        again = client.post(f"/prescriptions/{rx['id']}/invoice", headers=owner["headers"])
        assert again.status_code == 400

    def test_unfilled_prescription_invoices_prescribed_quantities(self, client, owner):
        drug = create_drug(client, owner["headers"])
        rx = create_prescription(client, owner["headers"], [{"drug_id": drug["id"], "quantity": "4"}])
        invoice = client.post(f"/prescriptions/{rx['id']}/invoice", headers=owner["headers"]).json()
        assert float(invoice["total_amount"]) == 10.0
        assert invoice["status"] == "sent"
