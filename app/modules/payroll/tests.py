"""
Tests para el módulo de nómina

Cubre:
- Cálculo de bruto, PAYE, SSNIT y neto con las tasas del tenant
- Contabilización de la corrida (cuentas requeridas, asiento balanceado)
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from app.modules.accounting.models import JournalEntry
from app.modules.accounting.service import AccountingService
from app.modules.payroll.service import calculate_pay, PAYROLL_ACCOUNT_CODES

RUN_PAYLOAD = {
    "period_start": "2026-09-01",
    "period_end": "2026-09-30",
    "pay_date": "2026-09-30",
}

DEFAULT_RATES = {"income_tax_rate": 0.15, "ssnit_employee_rate": 0.055, "ssnit_employer_rate": 0.13}


def add_employee(client, headers, first_name, salary):
    response = client.post("/employees", headers=headers, json={
        "first_name": first_name,
        "last_name": "Owusu",
        "salary_amount": salary,
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestCalculatePay:

    def test_default_rates(self):
        pay = calculate_pay(Decimal("3000"), DEFAULT_RATES)
        assert pay["income_tax"] == Decimal("450.00")
        assert pay["ssnit_employee"] == Decimal("165.00")
        assert pay["ssnit_employer"] == Decimal("390.00")
        assert pay["net_pay"] == Decimal("2385.00")

    def test_rounds_to_cents(self):
        pay = calculate_pay("1234.57", DEFAULT_RATES)
        assert pay["income_tax"] == Decimal("185.19")
        assert pay["net_pay"] == pay["gross_pay"] - pay["income_tax"] - pay["ssnit_employee"]


class TestPayrollRuns:

    def test_create_run_totals(self, client, owner):
        add_employee(client, owner["headers"], "Abena", "3000")
        add_employee(client, owner["headers"], "Kojo", "2000")

        response = client.post("/payroll/runs", headers=owner["headers"], json=RUN_PAYLOAD)
        assert response.status_code == 201, response.text
        run = response.json()
        assert run["status"] == "draft"
        assert float(run["total_gross"]) == 5000.0
        assert float(run["total_tax"]) == 1025.0
        assert float(run["total_employer_contributions"]) == 650.0
        assert float(run["total_net"]) == 3975.0
        assert len(run["entries"]) == 2
        assert {e["employee_name"] for e in run["entries"]} == {"Abena Owusu", "Kojo Owusu"}

    def test_run_uses_tenant_rates(self, client, owner):
        add_employee(client, owner["headers"], "Abena", "1000")
        client.put("/settings/payroll", headers=owner["headers"], json={"value": {"income_tax_rate": 0.1}})

        run = client.post("/payroll/runs", headers=owner["headers"], json=RUN_PAYLOAD).json()
        entry = run["entries"][0]
        assert float(entry["income_tax"]) == 100.0
        assert entry["metadata"]["settings_used"]["income_tax_rate"] == 0.1

    def test_run_limited_to_selected_employees(self, client, owner):
        abena = add_employee(client, owner["headers"], "Abena", "1000")
        add_employee(client, owner["headers"], "Kojo", "2000")

        run = client.post("/payroll/runs", headers=owner["headers"], json={
            **RUN_PAYLOAD, "employee_ids": [abena["id"]]
        }).json()
        assert len(run["entries"]) == 1
        assert float(run["total_gross"]) == 1000.0

    def test_terminated_employees_are_skipped(self, client, owner):
        employee = add_employee(client, owner["headers"], "Abena", "1000")
        client.delete(f"/employees/{employee['id']}", headers=owner["headers"])

        response = client.post("/payroll/runs", headers=owner["headers"], json=RUN_PAYLOAD)
        assert response.status_code == 400

    def test_period_end_before_start_rejected(self, client, owner):
        response = client.post("/payroll/runs", headers=owner["headers"], json={
            **RUN_PAYLOAD, "period_end": "2026-08-01"
        })
        assert response.status_code == 422


class TestPayrollPosting:

    def test_post_requires_accounts(self, client, owner):
        add_employee(client, owner["headers"], "Abena", "3000")
        run = client.post("/payroll/runs", headers=owner["headers"], json=RUN_PAYLOAD).json()

        response = client.post(f"/payroll/runs/{run['id']}/post", headers=owner["headers"])
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Missing required accounts")

    def test_post_creates_balanced_journal(self, client, owner, db_session):
        AccountingService(db_session).ensure_accounts(UUID(owner["tenant_id"]), PAYROLL_ACCOUNT_CODES)
        add_employee(client, owner["headers"], "Abena", "3000")
        run = client.post("/payroll/runs", headers=owner["headers"], json=RUN_PAYLOAD).json()

        response = client.post(f"/payroll/runs/{run['id']}/post", headers=owner["headers"])
        assert response.status_code == 200, response.text
        posted = response.json()
        assert posted["status"] == "posted"
        assert posted["journal_entry_id"] is not None

        entry = db_session.query(JournalEntry).filter(JournalEntry.id == UUID(posted["journal_entry_id"])).one()
        assert entry.source == "payroll"
        assert entry.entry_date == date(2026, 9, 30)
        assert sum(line.debit for line in entry.lines) == sum(line.credit for line in entry.lines)
        assert sum(line.debit for line in entry.lines) == Decimal("3390.00")

        again = client.post(f"/payroll/runs/{run['id']}/post", headers=owner["headers"])
        assert again.status_code == 400

    def test_staff_cannot_view_runs(self, client, add_member):
        staff_headers = add_member("staff")
        assert client.get("/payroll/runs", headers=staff_headers).status_code == 403
