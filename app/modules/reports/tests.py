"""
Tests para reportes y dashboard

Escenario base: una factura pagada de 100, otra enviada con saldo de 100
y dos gastos (Paper 40, Ink 10).
"""

from datetime import date, datetime, timedelta, timezone

import pytest


@pytest.fixture
def ledger(client, owner, customer):
    headers = owner["headers"]
    items = [{"description": "Business cards", "quantity": 1, "unit_price": "100"}]

    paid = client.post("/invoices", headers=headers, json={"customer_id": customer["id"], "items": items}).json()
    response = client.post(f"/invoices/{paid['id']}/payments", headers=headers, json={"amount": "100"})
    assert response.status_code == 201, response.text

    open_invoice = client.post("/invoices", headers=headers, json={"customer_id": customer["id"], "items": items}).json()
    client.post(f"/invoices/{open_invoice['id']}/send", headers=headers)

    for category, amount in (("Paper", "40"), ("Ink", "10")):
        response = client.post("/expenses", headers=headers, json={
            "category": category, "description": f"{category} restock", "amount": amount
        })
        assert response.status_code == 201, response.text

    return {"paid": paid, "open": open_invoice}


class TestFinancialReports:

    def test_revenue(self, client, owner, ledger):
        response = client.get("/reports/revenue", headers=owner["headers"])
        assert response.status_code == 200
        body = response.json()
        assert float(body["total_revenue"]) == 100.0
        assert body["invoice_count"] == 1
        assert body["by_period"][0]["period"] == datetime.now(timezone.utc).strftime("%Y-%m")
        assert body["top_customers"][0]["customer_name"] == "Kwame Mensah"

    def test_revenue_grouped_by_day(self, client, owner, ledger):
        body = client.get("/reports/revenue", headers=owner["headers"], params={"group_by": "day"}).json()
        assert [(p["period"], float(p["revenue"]), p["count"]) for p in body["by_period"]] == [
            (datetime.now(timezone.utc).strftime("%Y-%m-%d"), 100.0, 1)
        ]

    def test_revenue_csv_export(self, client, owner, ledger):
        response = client.get("/reports/revenue", headers=owner["headers"], params={"export": "csv"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=revenue_all_" in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0] == "Period,Revenue,Invoices"
        assert lines[1].endswith(",100.00,1")

    def test_expenses(self, client, owner, ledger):
        body = client.get("/reports/expenses", headers=owner["headers"]).json()
        assert float(body["total_expenses"]) == 50.0
        assert [c["category"] for c in body["by_category"]] == ["Paper", "Ink"]
        assert body["by_vendor"][0]["vendor_name"] == "No vendor"
        assert [(m["month"], float(m["amount"]), m["count"]) for m in body["by_month"]] == [
            (date.today().strftime("%Y-%m"), 50.0, 2)
        ]

    def test_outstanding(self, client, owner, ledger):
        body = client.get("/reports/outstanding", headers=owner["headers"]).json()
        assert float(body["total_outstanding"]) == 100.0
        assert [i["invoice_number"] for i in body["invoices"]] == [ledger["open"]["invoice_number"]]
        assert float(body["aging"]["current"]) == 100.0
        assert body["by_customer"][0]["invoice_count"] == 1

    def test_profit_loss_and_kpis(self, client, owner, ledger):
        pnl = client.get("/reports/profit-loss", headers=owner["headers"]).json()
        assert float(pnl["gross_profit"]) == 50.0
        assert pnl["profit_margin"] == 50.0

        kpi = client.get("/reports/kpi", headers=owner["headers"]).json()
        assert kpi["active_customers"] == 1
        assert float(kpi["pending_invoices"]) == 100.0

    def test_expense_period_filter(self, client, owner, ledger):
        client.post("/expenses", headers=owner["headers"], json={
            "category": "Rent", "description": "Last year", "amount": "500",
            "expense_date": (date.today() - timedelta(days=400)).isoformat(),
        })
        body = client.get("/reports/expenses", headers=owner["headers"], params={
            "start_date": (date.today() - timedelta(days=30)).isoformat(),
            "end_date": date.today().isoformat(),
        }).json()
        assert float(body["total_expenses"]) == 50.0

    def test_invalid_period(self, client, owner):
        response = client.get("/reports/kpi", headers=owner["headers"], params={
            "start_date": "2026-03-01", "end_date": "2026-02-01"
        })
        assert response.status_code == 422

    def test_staff_forbidden(self, client, add_member):
        assert client.get("/reports/revenue", headers=add_member("staff")).status_code == 403


class TestOperationsReports:

    def test_pipeline_and_service_analytics(self, client, owner, customer, ledger):
        client.post("/jobs", headers=owner["headers"], json={
            "customer_id": customer["id"],
            "title": "Church programme",
            "items": [
                {"description": "Booklets", "quantity": 2, "unit_price": "50", "category": "Printing"},
                {"description": "Layout", "quantity": 1, "unit_price": "30", "category": "Design"},
            ],
        })
        client.post("/leads", headers=owner["headers"], json={"name": "Yaa Asantewaa"})

        pipeline = client.get("/reports/pipeline", headers=owner["headers"]).json()
        assert pipeline["active_jobs"] == 1
        assert pipeline["active_jobs_by_status"] == {"new": 1}
        assert float(pipeline["active_jobs_value"]) == 130.0
        assert pipeline["open_leads"] == 1
        assert pipeline["pending_invoices"] == 1
        assert float(pipeline["pending_invoices_amount"]) == 100.0

        analytics = client.get("/reports/service-analytics", headers=owner["headers"]).json()
        assert [(row["category"], float(row["revenue"])) for row in analytics] == [("Printing", 100.0), ("Design", 30.0)]


class TestSalesReport:

    def test_completed_sales_only(self, client, owner):
        headers = owner["headers"]
        product = client.post("/products", headers=headers, json={
            "name": "Ballpoint pen (blue)", "sku": "PEN-BLU", "selling_price": "10.00", "quantity_on_hand": "50"
        }).json()
        client.post("/sales", headers=headers, json={
            "items": [{"product_id": product["id"], "quantity": "3", "tax": "1.50"}], "discount": "2.00"
        })
        client.post("/sales", headers=headers, json={
            "items": [{"product_id": product["id"], "quantity": "1"}], "payment_method": "mobile_money"
        })
        cancelled = client.post("/sales", headers=headers, json={
            "items": [{"product_id": product["id"], "quantity": "5"}]
        }).json()
        client.post(f"/sales/{cancelled['id']}/cancel", headers=headers)

        body = client.get("/reports/sales", headers=headers).json()
        totals = body["totals"]
        assert totals["sales_count"] == 2
        assert float(totals["total_revenue"]) == 39.5
        assert float(totals["average_sale"]) == 19.75
        assert float(totals["total_tax"]) == 1.5
        assert [m["payment_method"] for m in body["by_payment_method"]] == ["cash", "mobile_money"]
        assert float(body["top_products"][0]["quantity"]) == 4.0
        assert float(body["top_products"][0]["revenue"]) == 41.5


class TestDashboard:

    def test_overview(self, client, owner, ledger):
        body = client.get("/dashboard/overview", headers=owner["headers"]).json()
        assert body["customers"] == 1
        assert float(body["month_revenue"]) == 100.0
        assert float(body["month_expenses"]) == 50.0
        assert float(body["outstanding_balance"]) == 100.0
        assert body["jobs"]["total"] == 0

    def test_revenue_by_month(self, client, owner, ledger):
        now = datetime.now(timezone.utc)
        body = client.get("/dashboard/revenue-by-month", headers=owner["headers"], params={"year": now.year}).json()
        assert len(body["months"]) == 12
        assert float(body["months"][now.month - 1]["revenue"]) == 100.0
        assert float(body["total"]) == 100.0

    def test_expenses_by_category(self, client, owner, ledger):
        body = client.get("/dashboard/expenses-by-category", headers=owner["headers"]).json()
        assert {c["category"]: float(c["amount"]) for c in body} == {"Paper": 40.0, "Ink": 10.0}

    def test_job_status_distribution_lists_every_status(self, client, owner):
        body = client.get("/dashboard/job-status-distribution", headers=owner["headers"]).json()
        assert all(row["count"] == 0 for row in body)
        assert "completed" in {row["status"] for row in body}

    def test_staff_can_view_dashboard(self, client, add_member, ledger):
        response = client.get("/dashboard/overview", headers=add_member("staff"))
        assert response.status_code == 200
