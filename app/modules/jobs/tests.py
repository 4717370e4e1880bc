"""
Tests para el módulo de trabajos

Cubre:
- Creación con items, número JOB-YYYYMM-NNNN y factura automática
- Historial de estados
- Adjuntos inline
- Eliminación conservando facturas
"""

from datetime import date
from uuid import UUID

from app.modules.invoices.models import Invoice


def create_job(client, headers, customer_id, **overrides):
    payload = {
        "customer_id": customer_id,
        "title": "Graduation brochures",
        "job_type": "Brochure",
        "items": [
            {"description": "A5 brochure, full colour", "quantity": 2, "unit_price": "50.00",
             "discount_amount": "10.00", "discount_reason": "Loyal customer"},
            {"description": "Design fee", "quantity": 1, "unit_price": "30.00"},
        ],
    }
    payload.update(overrides)
    response = client.post("/jobs", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestJobCreation:

    def test_create_computes_final_price_and_history(self, client, owner, customer):
        job = create_job(client, owner["headers"], customer["id"])
        assert job["job_number"] == f"JOB-{date.today().strftime('%Y%m')}-0001"
        assert float(job["final_price"]) == 130.0
        assert job["order_date"] == date.today().isoformat()
        assert len(job["items"]) == 2
        assert len(job["status_history"]) == 1
        assert job["status_history"][0]["status"] == "new"
        assert job["status_history"][0]["comment"] == "Job created"

    def test_create_generates_draft_invoice(self, client, owner, customer, db_session):
        job = create_job(client, owner["headers"], customer["id"])

        invoice = db_session.query(Invoice).filter(Invoice.job_id == UUID(job["id"])).one()
        assert invoice.status.value == "draft"
        assert invoice.source_type.value == "job"
        assert float(invoice.subtotal) == 130.0
        assert float(invoice.discount_amount) == 10.0
        assert float(invoice.total_amount) == 120.0
        assert invoice.discount_reason == "Loyal customer"
        assert len(invoice.items) == 2

    def test_job_without_items_invoices_final_price(self, client, owner, customer, db_session):
        job = create_job(client, owner["headers"], customer["id"], items=[], final_price="450")

        invoice = db_session.query(Invoice).filter(Invoice.job_id == UUID(job["id"])).one()
        assert float(invoice.total_amount) == 450.0
        assert invoice.items[0]["description"] == "Graduation brochures"

    def test_invoice_from_job_rejects_duplicate(self, client, owner, customer):
        job = create_job(client, owner["headers"], customer["id"])
        response = client.post(f"/invoices/from-job/{job['id']}", headers=owner["headers"])
        assert response.status_code == 400
        assert response.json()["detail"] == "Invoice already exists for this job"

    def test_unknown_customer_returns_404(self, client, owner, other_tenant):
        foreign = client.post("/customers", headers=other_tenant["headers"], json={"name": "Yaw"}).json()
        response = client.post("/jobs", headers=owner["headers"], json={"customer_id": foreign["id"], "title": "X"})
        assert response.status_code == 404

    def test_staff_can_create(self, client, customer, add_member):
        staff_headers = add_member("staff")
        job = create_job(client, staff_headers, customer["id"])
        assert job["status"] == "new"


class TestJobStatus:

    def test_status_change_is_recorded(self, client, owner, customer):
        job = create_job(client, owner["headers"], customer["id"])

        response = client.put(f"/jobs/{job['id']}", headers=owner["headers"], json={"status": "in_progress"})
        assert response.status_code == 200
        history = response.json()["status_history"]
        assert len(history) == 2
        assert "Status changed from new to in_progress" in [h["comment"] for h in history]

    def test_completing_sets_completion_date(self, client, owner, customer):
        job = create_job(client, owner["headers"], customer["id"])
        response = client.put(f"/jobs/{job['id']}", headers=owner["headers"], json={
            "status": "completed",
            "status_comment": "Picked up by customer",
        })
        body = response.json()
        assert body["status"] == "completed"
        assert body["completion_date"] == date.today().isoformat()
        assert "Picked up by customer" in [h["comment"] for h in body["status_history"]]

    def test_update_without_status_change_keeps_history(self, client, owner, customer):
        job = create_job(client, owner["headers"], customer["id"])
        response = client.put(f"/jobs/{job['id']}", headers=owner["headers"], json={"notes": "Use matte finish"})
        assert len(response.json()["status_history"]) == 1

    def test_replacing_items_recomputes_final_price(self, client, owner, customer):
        job = create_job(client, owner["headers"], customer["id"])
        response = client.put(f"/jobs/{job['id']}", headers=owner["headers"], json={
            "items": [{"description": "Poster A2", "quantity": 4, "unit_price": "15"}],
        })
        assert float(response.json()["final_price"]) == 60.0
        assert len(response.json()["items"]) == 1


class TestJobQueries:

    def test_list_filters_and_stats(self, client, owner, customer):
        create_job(client, owner["headers"], customer["id"])
        second = create_job(client, owner["headers"], customer["id"], title="Wedding cards")
        client.put(f"/jobs/{second['id']}", headers=owner["headers"], json={"status": "on_hold"})

        on_hold = client.get("/jobs", headers=owner["headers"], params={"status": "on_hold"}).json()
        assert on_hold["total"] == 1
        assert on_hold["items"][0]["title"] == "Wedding cards"

        search = client.get("/jobs", headers=owner["headers"], params={"search": "brochure"}).json()
        assert search["total"] == 1

        stats = client.get("/jobs/stats", headers=owner["headers"]).json()
        assert stats["total_jobs"] == 2
        assert {s["status"] for s in stats["by_status"]} == {"new", "on_hold"}

    def test_tenant_isolation(self, client, owner, customer, other_tenant):
        job = create_job(client, owner["headers"], customer["id"])
        assert client.get(f"/jobs/{job['id']}", headers=other_tenant["headers"]).status_code == 404


    def test_assignee_must_belong_to_tenant(self, client, owner, customer, other_tenant):
        response = client.post("/jobs", headers=owner["headers"], json={
            "customer_id": customer["id"], "title": "Banner", "assigned_to": other_tenant["user_id"]
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Assignee not found"

        job = create_job(client, owner["headers"], customer["id"], assigned_to=owner["user_id"])
        assert job["assigned_to"] == owner["user_id"]
        response = client.put(f"/jobs/{job['id']}", headers=owner["headers"], json={"assigned_to": other_tenant["user_id"]})
        assert response.status_code == 404


class TestJobAttachments:

    def test_upload_and_remove(self, client, owner, customer):
        job = create_job(client, owner["headers"], customer["id"])

        response = client.post(
            f"/jobs/{job['id']}/attachments",
            headers=owner["headers"],
            files={"file": ("proof.pdf", b"%PDF-1.4 proof", "application/pdf")},
        )
        assert response.status_code == 201, response.text
        attachment = response.json()
        assert attachment["original_name"] == "proof.pdf"
        assert attachment["file_data"].startswith("data:application/pdf;base64,")

        detail = client.get(f"/jobs/{job['id']}", headers=owner["headers"]).json()
        assert len(detail["attachments"]) == 1

        response = client.delete(f"/jobs/{job['id']}/attachments/{attachment['id']}", headers=owner["headers"])
        assert response.status_code == 200
        response = client.delete(f"/jobs/{job['id']}/attachments/{attachment['id']}", headers=owner["headers"])
        assert response.status_code == 404


class TestJobDeletion:

    def test_delete_keeps_invoice(self, client, owner, customer, db_session):
        job = create_job(client, owner["headers"], customer["id"])
        response = client.delete(f"/jobs/{job['id']}", headers=owner["headers"])
        assert response.status_code == 200

        assert client.get(f"/jobs/{job['id']}", headers=owner["headers"]).status_code == 404
        invoice = db_session.query(Invoice).filter(Invoice.tenant_id == UUID(owner["tenant_id"])).one()
        assert invoice.job_id is None

    def test_staff_cannot_delete(self, client, owner, customer, add_member):
        job = create_job(client, owner["headers"], customer["id"])
        staff_headers = add_member("staff")
        assert client.delete(f"/jobs/{job['id']}", headers=staff_headers).status_code == 403
