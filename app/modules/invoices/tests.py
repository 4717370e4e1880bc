"""
Tests para el módulo de facturas

Cubre:
- Cálculo de impuesto, descuento, total y saldo
- Numeración INV-YYYYMM-NNNN por tenant
- Pagos parciales, totales y sobrepagos
- Cancelación, eliminación y consulta pública por token
"""

from datetime import date, timedelta
from uuid import UUID

from app.modules.accounting.models import JournalEntry
from app.modules.accounting.service import AccountingService
from app.modules.payments.models import Payment


def create_invoice(client, headers, customer_id=None, **overrides):
    payload = {
        "customer_id": customer_id,
        "items": [
            {"description": "Business cards", "quantity": 2, "unit_price": "25.00"},
            {"description": "Flyers", "quantity": 1, "unit_price": "50.00"},
        ],
    }
    payload.update(overrides)
    response = client.post("/invoices", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestInvoiceTotals:

    def test_subtotal_from_items(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        assert float(invoice["subtotal"]) == 100.0
        assert float(invoice["total_amount"]) == 100.0
        assert float(invoice["balance"]) == 100.0
        assert invoice["status"] == "draft"
        assert invoice["items"][0]["total"] == 50.0

    def test_tax_and_percentage_discount(self, client, owner, customer):
        invoice = create_invoice(
            client, owner["headers"], customer["id"],
            tax_rate="10", discount_type="percentage", discount_value="5"
        )
        assert float(invoice["tax_amount"]) == 10.0
        assert float(invoice["discount_amount"]) == 5.0
        assert float(invoice["total_amount"]) == 105.0

    def test_fixed_discount(self, client, owner, customer):
        invoice = create_invoice(
            client, owner["headers"], customer["id"],
            discount_type="fixed", discount_value="20"
        )
        assert float(invoice["total_amount"]) == 80.0

    def test_subtotal_without_items(self, client, owner):
        invoice = create_invoice(client, owner["headers"], items=[], subtotal="300")
        assert float(invoice["total_amount"]) == 300.0

    def test_default_due_date_is_net_30(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        assert invoice["due_date"] == (date.today() + timedelta(days=30)).isoformat()

    def test_past_due_date_marks_overdue(self, client, owner, customer):
        invoice = create_invoice(
            client, owner["headers"], customer["id"],
            status="sent", due_date=(date.today() - timedelta(days=3)).isoformat()
        )
        assert invoice["status"] == "overdue"


class TestInvoiceNumbering:

    def test_numbers_are_sequential_per_tenant(self, client, owner, other_tenant):
        first = create_invoice(client, owner["headers"])
        second = create_invoice(client, owner["headers"])
        foreign = create_invoice(client, other_tenant["headers"])

        period = date.today().strftime("%Y%m")
        assert first["invoice_number"] == f"INV-{period}-0001"
        assert second["invoice_number"] == f"INV-{period}-0002"
        assert foreign["invoice_number"] == f"INV-{period}-0001"

    def test_unknown_customer_returns_404(self, client, owner, other_tenant):
        foreign_customer = client.post("/customers", headers=other_tenant["headers"], json={"name": "Yaw"}).json()
        response = client.post("/invoices", headers=owner["headers"], json={
            "customer_id": foreign_customer["id"],
            "subtotal": "10",
        })
        assert response.status_code == 404


class TestInvoicePayments:

    def test_partial_then_full_payment(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])

        response = client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={
            "amount": "40",
            "payment_method": "cash",
        })
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["invoice"]["status"] == "partial"
        assert float(body["invoice"]["balance"]) == 60.0
        assert body["payment_number"].startswith("PAY-IN-")

        response = client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={
            "amount": "60",
            "payment_method": "mobile_money",
        })
        body = response.json()
        assert body["invoice"]["status"] == "paid"
        assert float(body["invoice"]["balance"]) == 0.0
        assert body["invoice"]["paid_date"] is not None

        balance = client.get(f"/customers/{customer['id']}", headers=owner["headers"]).json()["balance"]
        assert float(balance) == 0.0

    def test_partial_payment_on_past_due_invoice_stays_partial(self, client, owner, customer):
        invoice = create_invoice(
            client, owner["headers"], customer["id"],
            items=[], subtotal="100", status="sent",
            due_date=(date.today() - timedelta(days=30)).isoformat()
        )
        assert invoice["status"] == "overdue"

        response = client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={"amount": "40"})
        assert response.status_code == 201, response.text
        assert response.json()["invoice"]["status"] == "partial"

        stats = client.get("/invoices/stats", headers=owner["headers"]).json()
        assert stats["overdue"] == 0

    def test_payment_updates_customer_balance(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={"amount": "25"})

        balance = client.get(f"/customers/{customer['id']}", headers=owner["headers"]).json()["balance"]
        assert float(balance) == 75.0

    def test_overpayment_rejected(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        response = client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={"amount": "100.01"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Payment amount exceeds invoice total"

    def test_payment_on_cancelled_invoice_rejected(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        client.post(f"/invoices/{invoice['id']}/cancel", headers=owner["headers"])
        response = client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={"amount": "10"})
        assert response.status_code == 400

    def test_payment_posts_journal_when_accounts_exist(self, client, owner, customer, db_session):
        tenant_id = UUID(owner["tenant_id"])
        AccountingService(db_session).ensure_accounts(tenant_id)
        invoice = create_invoice(client, owner["headers"], customer["id"])

        client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={
            "amount": "100",
            "payment_method": "credit_card",
        })

        entry = db_session.query(JournalEntry).filter(JournalEntry.tenant_id == tenant_id).one()
        assert entry.source == "invoice_payment"
        assert entry.reference == invoice["invoice_number"]
        assert len(entry.lines) == 2

    def test_payment_succeeds_without_chart_of_accounts(self, client, owner, customer, db_session):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        response = client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={"amount": "100"})
        assert response.status_code == 201
        assert db_session.query(JournalEntry).count() == 0
        assert db_session.query(Payment).count() == 1


class TestInvoiceLifecycle:

    def test_send_moves_draft_to_sent(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        response = client.post(f"/invoices/{invoice['id']}/send", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["status"] == "sent"
        assert response.json()["sent_date"] is not None

    def test_paid_invoice_cannot_be_updated_cancelled_or_deleted(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        client.post(f"/invoices/{invoice['id']}/payments", headers=owner["headers"], json={"amount": "100"})

        assert client.put(f"/invoices/{invoice['id']}", headers=owner["headers"], json={"notes": "x"}).status_code == 400
        assert client.post(f"/invoices/{invoice['id']}/cancel", headers=owner["headers"]).status_code == 400
        assert client.delete(f"/invoices/{invoice['id']}", headers=owner["headers"]).status_code == 400

    def test_update_items_recalculates(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        response = client.put(f"/invoices/{invoice['id']}", headers=owner["headers"], json={
            "items": [{"description": "Banner", "quantity": 3, "unit_price": "40"}],
        })
        assert response.status_code == 200
        assert float(response.json()["subtotal"]) == 120.0
        assert float(response.json()["total_amount"]) == 120.0

    def test_delete_draft(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        response = client.delete(f"/invoices/{invoice['id']}", headers=owner["headers"])
        assert response.status_code == 200
        assert client.get(f"/invoices/{invoice['id']}", headers=owner["headers"]).status_code == 404

    def test_staff_cannot_create(self, client, add_member):
        staff_headers = add_member("staff")
        response = client.post("/invoices", headers=staff_headers, json={"subtotal": "10"})
        assert response.status_code == 403

    def test_detail_includes_customer(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        response = client.get(f"/invoices/{invoice['id']}", headers=owner["headers"])
        assert response.json()["customer"]["name"] == "Kwame Mensah"


class TestInvoiceQueries:

    def test_list_filters_by_status_and_search(self, client, owner, customer):
        first = create_invoice(client, owner["headers"], customer["id"])
        create_invoice(client, owner["headers"])
        client.post(f"/invoices/{first['id']}/send", headers=owner["headers"])

        sent = client.get("/invoices", headers=owner["headers"], params={"status": "sent"}).json()
        assert sent["total"] == 1

        by_name = client.get("/invoices", headers=owner["headers"], params={"search": "Kwame"}).json()
        assert by_name["total"] == 1
        assert by_name["items"][0]["id"] == first["id"]

    def test_stats(self, client, owner, customer):
        paid = create_invoice(client, owner["headers"], customer["id"])
        create_invoice(client, owner["headers"], customer["id"])
        client.post(f"/invoices/{paid['id']}/payments", headers=owner["headers"], json={"amount": "100"})

        stats = client.get("/invoices/stats", headers=owner["headers"]).json()
        assert stats["total_invoices"] == 2
        assert stats["paid"] == 1
        assert stats["unpaid"] == 1
        assert float(stats["total_revenue"]) == 100.0
        assert float(stats["outstanding_amount"]) == 100.0


class TestPublicInvoice:

    def test_lookup_by_payment_token_without_auth(self, client, owner, customer):
        invoice = create_invoice(client, owner["headers"], customer["id"])
        response = client.get(f"/public/invoices/{invoice['payment_token']}")
        assert response.status_code == 200
        body = response.json()
        assert body["invoice_number"] == invoice["invoice_number"]
        assert body["business_name"] == "Acme Print House"
        assert float(body["balance"]) == 100.0

    def test_unknown_token_returns_404(self, client):
        assert client.get("/public/invoices/doesnotexist").status_code == 404
