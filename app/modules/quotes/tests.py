"""
Tests para el módulo de cotizaciones
"""

from datetime import date
from uuid import UUID

from app.modules.invoices.models import Invoice
from app.modules.jobs.models import Job


def create_quote(client, headers, customer_id, **overrides):
    payload = {
        "customer_id": customer_id,
        "title": "Church programme booklets",
        "items": [
            {"description": "Booklet, 16 pages", "quantity": 100, "unit_price": "4.50", "discount_amount": "25"},
            {"description": "Cover lamination", "quantity": 100, "unit_price": "0.50"},
        ],
    }
    payload.update(overrides)
    response = client.post("/quotes", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestQuotes:

    def test_create_computes_totals(self, client, owner, customer):
        quote = create_quote(client, owner["headers"], customer["id"])
        assert quote["quote_number"] == f"QTE-{date.today().strftime('%Y%m')}-0001"
        assert quote["status"] == "draft"
        assert float(quote["subtotal"]) == 500.0
        assert float(quote["discount_total"]) == 25.0
        assert float(quote["total_amount"]) == 475.0
        assert float(quote["items"][0]["total"]) == 425.0

    def test_items_are_required(self, client, owner, customer):
        response = client.post("/quotes", headers=owner["headers"], json={
            "customer_id": customer["id"], "title": "Empty", "items": []
        })
        assert response.status_code == 422

    def test_update_items_recalculates(self, client, owner, customer):
        quote = create_quote(client, owner["headers"], customer["id"])
        response = client.put(f"/quotes/{quote['id']}", headers=owner["headers"], json={
            "items": [{"description": "Booklet, 8 pages", "quantity": 100, "unit_price": "2"}],
        })
        assert response.status_code == 200
        assert float(response.json()["total_amount"]) == 200.0
        assert len(response.json()["items"]) == 1

    def test_send_marks_sent(self, client, owner, customer):
        quote = create_quote(client, owner["headers"], customer["id"])
        response = client.post(f"/quotes/{quote['id']}/send", headers=owner["headers"])
        assert response.json()["status"] == "sent"

    def test_list_filters_by_status(self, client, owner, customer):
        first = create_quote(client, owner["headers"], customer["id"])
        create_quote(client, owner["headers"], customer["id"], title="Funeral posters")
        client.post(f"/quotes/{first['id']}/send", headers=owner["headers"])

        sent = client.get("/quotes", headers=owner["headers"], params={"status": "sent"}).json()
        assert sent["total"] == 1
        posters = client.get("/quotes", headers=owner["headers"], params={"search": "poster"}).json()
        assert posters["total"] == 1


class TestQuoteConversion:

    def test_convert_creates_job_and_invoice(self, client, owner, customer, db_session):
        quote = create_quote(client, owner["headers"], customer["id"])
        response = client.post(f"/quotes/{quote['id']}/convert-to-job", headers=owner["headers"])
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["quote"]["status"] == "accepted"
        assert body["quote"]["accepted_at"] is not None
        assert body["job_number"].startswith("JOB-")
        assert body["invoice_id"] is not None

        job = db_session.query(Job).filter(Job.id == UUID(body["job_id"])).one()
        assert job.quote_id == UUID(quote["id"])
        assert float(job.final_price) == 475.0
        assert len(job.items) == 2

        invoice = db_session.query(Invoice).filter(Invoice.id == UUID(body["invoice_id"])).one()
        assert float(invoice.total_amount) == 475.0

    def test_accepted_quote_is_locked(self, client, owner, customer):
        quote = create_quote(client, owner["headers"], customer["id"])
        client.post(f"/quotes/{quote['id']}/convert-to-job", headers=owner["headers"])

        again = client.post(f"/quotes/{quote['id']}/convert-to-job", headers=owner["headers"])
        assert again.status_code == 400
        assert again.json()["detail"] == "Cannot convert an accepted quote"
        assert client.put(f"/quotes/{quote['id']}", headers=owner["headers"], json={"notes": "x"}).status_code == 400
        assert client.delete(f"/quotes/{quote['id']}", headers=owner["headers"]).status_code == 400

    def test_staff_cannot_convert(self, client, owner, customer, add_member):
        quote = create_quote(client, owner["headers"], customer["id"])
        staff_headers = add_member("staff")
        assert client.post(f"/quotes/{quote['id']}/convert-to-job", headers=staff_headers).status_code == 403

    def test_delete_draft(self, client, owner, customer):
        quote = create_quote(client, owner["headers"], customer["id"])
        assert client.delete(f"/quotes/{quote['id']}", headers=owner["headers"]).status_code == 200
        assert client.get(f"/quotes/{quote['id']}", headers=owner["headers"]).status_code == 404
