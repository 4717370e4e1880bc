"""
Tests para el módulo de pagos
"""

from datetime import date


class TestPayments:

    def test_income_payment_reduces_customer_balance(self, client, owner, customer):
        client.post("/invoices", headers=owner["headers"], json={
            "customer_id": customer["id"], "subtotal": "500"
        })
        client.post(f"/customers/{customer['id']}/sync-balance", headers=owner["headers"])

        response = client.post("/payments", headers=owner["headers"], json={
            "type": "income",
            "customer_id": customer["id"],
            "amount": "200",
            "payment_method": "mobile_money",
            "reference_number": "MOMO-7781",
        })
        assert response.status_code == 201, response.text
        payment = response.json()
        assert payment["payment_number"] == f"PAY-IN-{date.today().strftime('%Y%m')}-0001"
        assert payment["status"] == "completed"

        balance = client.get(f"/customers/{customer['id']}", headers=owner["headers"]).json()["balance"]
        assert float(balance) == 300.0

    def test_expense_payment_uses_pay_out_prefix(self, client, owner):
        vendor = client.post("/vendors", headers=owner["headers"], json={"name": "Tema Ink Ltd"}).json()
        response = client.post("/payments", headers=owner["headers"], json={
            "type": "expense",
            "vendor_id": vendor["id"],
            "amount": "75.50",
        })
        assert response.status_code == 201
        assert response.json()["payment_number"].startswith("PAY-OUT-")

        vendor = client.get(f"/vendors/{vendor['id']}", headers=owner["headers"]).json()
        assert float(vendor["balance"]) == -75.5

    def test_counterparty_must_match_type(self, client, owner, customer):
        response = client.post("/payments", headers=owner["headers"], json={
            "type": "expense",
            "customer_id": customer["id"],
            "amount": "10",
        })
        assert response.status_code == 422

    def test_list_by_type_and_stats(self, client, owner, customer):
        client.post("/payments", headers=owner["headers"], json={"type": "income", "amount": "120"})
        client.post("/payments", headers=owner["headers"], json={"type": "income", "amount": "30"})
        client.post("/payments", headers=owner["headers"], json={"type": "expense", "amount": "40"})
        client.post("/payments", headers=owner["headers"], json={"type": "expense", "amount": "60", "status": "pending"})

        income = client.get("/payments", headers=owner["headers"], params={"type": "income"}).json()
        assert income["total"] == 2

        stats = client.get("/payments/stats", headers=owner["headers"]).json()
        assert float(stats["total_income"]) == 150.0
        assert float(stats["total_expense"]) == 40.0

    def test_update_and_delete(self, client, owner):
        payment = client.post("/payments", headers=owner["headers"], json={"type": "income", "amount": "10"}).json()
        response = client.put(f"/payments/{payment['id']}", headers=owner["headers"], json={"status": "refunded"})
        assert response.json()["status"] == "refunded"

        assert client.delete(f"/payments/{payment['id']}", headers=owner["headers"]).status_code == 200
        assert client.get(f"/payments/{payment['id']}", headers=owner["headers"]).status_code == 404


class TestPaymentReferences:

    def test_foreign_invoice_or_job_returns_404(self, client, owner, other_tenant):
        foreign_customer = client.post("/customers", headers=other_tenant["headers"], json={"name": "Yaw Boateng"}).json()
        foreign_invoice = client.post("/invoices", headers=other_tenant["headers"], json={"subtotal": "80"}).json()
        foreign_job = client.post("/jobs", headers=other_tenant["headers"], json={
            "customer_id": foreign_customer["id"], "title": "Wedding cards"
        }).json()

        response = client.post("/payments", headers=owner["headers"], json={
            "type": "income", "amount": "10", "invoice_id": foreign_invoice["id"]
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Invoice not found"

        response = client.post("/payments", headers=owner["headers"], json={
            "type": "income", "amount": "10", "job_id": foreign_job["id"]
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Job not found"
        assert client.get("/payments", headers=owner["headers"]).json()["total"] == 0

    def test_deleting_foreign_job_leaves_payments_alone(self, client, owner, customer, other_tenant):
        job = client.post("/jobs", headers=owner["headers"], json={"customer_id": customer["id"], "title": "Flyers"}).json()
        payment = client.post("/payments", headers=owner["headers"], json={
            "type": "income", "amount": "10", "job_id": job["id"]
        }).json()

        assert client.delete(f"/jobs/{job['id']}", headers=other_tenant["headers"]).status_code == 404
        stored = client.get(f"/payments/{payment['id']}", headers=owner["headers"]).json()
        assert stored["job_id"] == job["id"]
