"""
Tests para el módulo de gastos
"""

from datetime import date, timedelta
from uuid import uuid4


def create_expense(client, headers, **overrides):
    payload = {"category": "Supplies", "description": "A4 paper, 10 reams", "amount": "250.00"}
    payload.update(overrides)
    response = client.post("/expenses", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestExpenses:

    def test_create_assigns_number_and_date(self, client, owner):
        expense = create_expense(client, owner["headers"])
        assert expense["expense_number"] == f"EXP-{date.today().strftime('%Y%m')}-0001"
        assert expense["expense_date"] == date.today().isoformat()
        assert expense["status"] == "pending"
        assert float(expense["amount"]) == 250.0

    def test_recurring_requires_frequency(self, client, owner):
        response = client.post("/expenses", headers=owner["headers"], json={
            "category": "Rent",
            "description": "Shop rent",
            "amount": "1200",
            "is_recurring": True,
        })
        assert response.status_code == 422

    def test_unknown_vendor_returns_404(self, client, owner):
        response = client.post("/expenses", headers=owner["headers"], json={
            "category": "Supplies",
            "description": "Toner",
            "amount": "80",
            "vendor_id": str(uuid4()),
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Vendor not found"

    def test_foreign_job_returns_404(self, client, owner, other_tenant):
        foreign_customer = client.post("/customers", headers=other_tenant["headers"], json={"name": "Yaw Boateng"}).json()
        foreign_job = client.post("/jobs", headers=other_tenant["headers"], json={
            "customer_id": foreign_customer["id"], "title": "Wedding cards"
        }).json()

        response = client.post("/expenses", headers=owner["headers"], json={
            "category": "Supplies", "description": "Card stock", "amount": "20", "job_id": foreign_job["id"]
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Job not found"

        expense = create_expense(client, owner["headers"])
        response = client.put(f"/expenses/{expense['id']}", headers=owner["headers"], json={"job_id": foreign_job["id"]})
        assert response.status_code == 404

    def test_list_filters(self, client, owner):
        create_expense(client, owner["headers"])
        create_expense(
            client, owner["headers"], category="Utilities", description="ECG bill", amount="300",
            expense_date=(date.today() - timedelta(days=40)).isoformat()
        )

        utilities = client.get("/expenses", headers=owner["headers"], params={"category": "Utilities"}).json()
        assert utilities["total"] == 1

        recent = client.get("/expenses", headers=owner["headers"], params={
            "start_date": (date.today() - timedelta(days=7)).isoformat()
        }).json()
        assert recent["total"] == 1
        assert recent["items"][0]["category"] == "Supplies"

    def test_update_and_delete(self, client, owner):
        expense = create_expense(client, owner["headers"])
        response = client.put(f"/expenses/{expense['id']}", headers=owner["headers"], json={"status": "paid"})
        assert response.json()["status"] == "paid"

        assert client.delete(f"/expenses/{expense['id']}", headers=owner["headers"]).status_code == 200
        assert client.get(f"/expenses/{expense['id']}", headers=owner["headers"]).status_code == 404

    def test_stats_by_category(self, client, owner):
        create_expense(client, owner["headers"])
        create_expense(client, owner["headers"], amount="50")
        create_expense(client, owner["headers"], category="Utilities", description="Water", amount="100")

        stats = client.get("/expenses/stats", headers=owner["headers"]).json()
        assert stats["count"] == 3
        assert float(stats["total_expenses"]) == 400.0
        assert stats["by_category"][0]["category"] == "Supplies"
        assert float(stats["by_category"][0]["total"]) == 300.0

    def test_staff_can_read_but_not_create(self, client, owner, add_member):
        create_expense(client, owner["headers"])
        staff_headers = add_member("staff")
        assert client.get("/expenses", headers=staff_headers).json()["total"] == 1
        response = client.post("/expenses", headers=staff_headers, json={
            "category": "Supplies", "description": "Pens", "amount": "5"
        })
        assert response.status_code == 403
