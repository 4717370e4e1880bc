"""
Tests para el módulo contable

Cubre:
- Plan de cuentas (códigos únicos por tenant, plan estándar)
- Asientos balanceados y actualización de saldos
- Balance de comprobación
"""

from datetime import date
from uuid import UUID

from app.modules.accounting.service import AccountingService


def create_account(client, headers, code, name, account_type):
    response = client.post("/accounting/accounts", headers=headers, json={
        "code": code, "name": name, "type": account_type
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestAccounts:

    def test_create_and_list_ordered_by_code(self, client, owner):
        create_account(client, owner["headers"], "4000", "Service Revenue", "income")
        create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")

        body = client.get("/accounting/accounts", headers=owner["headers"]).json()
        assert body["total"] == 2
        assert [a["code"] for a in body["items"]] == ["1000", "4000"]

        assets = client.get("/accounting/accounts", headers=owner["headers"], params={"type": "asset"}).json()
        assert assets["total"] == 1

    def test_duplicate_code_conflicts(self, client, owner):
        create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        response = client.post("/accounting/accounts", headers=owner["headers"], json={
            "code": "1000", "name": "Petty cash", "type": "asset"
        })
        assert response.status_code == 409

    def test_same_code_allowed_in_other_tenant(self, client, owner, other_tenant):
        create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        create_account(client, other_tenant["headers"], "1000", "Cash on Hand", "asset")

    def test_account_cannot_be_its_own_parent(self, client, owner):
        account = create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        response = client.put(f"/accounting/accounts/{account['id']}", headers=owner["headers"], json={
            "parent_id": account["id"]
        })
        assert response.status_code == 400

    def test_ensure_standard_accounts_is_idempotent(self, owner, db_session):
        service = AccountingService(db_session)
        created = service.ensure_accounts(UUID(owner["tenant_id"]))
        assert "1100" in [a.code for a in created]
        assert service.ensure_accounts(UUID(owner["tenant_id"])) == []

    def test_summary_by_type(self, client, owner, db_session):
        AccountingService(db_session).ensure_accounts(UUID(owner["tenant_id"]), codes=["1000", "1100", "4000"])
        summary = client.get("/accounting/accounts/summary", headers=owner["headers"]).json()
        assert summary["total_accounts"] == 3
        counts = {row["type"]: row["count"] for row in summary["by_type"]}
        assert counts == {"asset": 2, "income": 1}


class TestJournalEntries:

    def test_unbalanced_entry_rejected(self, client, owner):
        cash = create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        revenue = create_account(client, owner["headers"], "4000", "Service Revenue", "income")
        response = client.post("/accounting/journal-entries", headers=owner["headers"], json={
            "lines": [
                {"account_id": cash["id"], "debit": "100"},
                {"account_id": revenue["id"], "credit": "90"},
            ]
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Debits must equal credits"

    def test_single_line_rejected(self, client, owner):
        cash = create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        response = client.post("/accounting/journal-entries", headers=owner["headers"], json={
            "lines": [{"account_id": cash["id"], "debit": "0", "credit": "0"}]
        })
        assert response.status_code == 400

    def test_account_from_other_tenant_rejected(self, client, owner, other_tenant):
        cash = create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        foreign = create_account(client, other_tenant["headers"], "4000", "Service Revenue", "income")
        response = client.post("/accounting/journal-entries", headers=owner["headers"], json={
            "lines": [
                {"account_id": cash["id"], "debit": "50"},
                {"account_id": foreign["id"], "credit": "50"},
            ]
        })
        assert response.status_code == 404

    def test_posted_entry_updates_trial_balance(self, client, owner):
        cash = create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        revenue = create_account(client, owner["headers"], "4000", "Service Revenue", "income")

        response = client.post("/accounting/journal-entries", headers=owner["headers"], json={
            "reference": "CASH-SALE-1",
            "status": "posted",
            "lines": [
                {"account_id": cash["id"], "debit": "250"},
                {"account_id": revenue["id"], "credit": "250"},
            ]
        })
        assert response.status_code == 201, response.text
        entry = response.json()
        assert entry["posted_at"] is not None
        assert len(entry["lines"]) == 2

        today = date.today()
        trial = client.get("/accounting/trial-balance", headers=owner["headers"], params={
            "fiscal_year": today.year, "period": today.month
        }).json()
        assert trial["summary"]["is_balanced"] is True
        assert float(trial["summary"]["total_debit"]) == 250.0
        rows = {row["code"]: row for row in trial["accounts"]}
        assert float(rows["1000"]["balance"]) == 250.0
        assert float(rows["4000"]["balance"]) == -250.0

    def test_draft_entry_does_not_touch_balances(self, client, owner):
        cash = create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        revenue = create_account(client, owner["headers"], "4000", "Service Revenue", "income")
        client.post("/accounting/journal-entries", headers=owner["headers"], json={
            "lines": [
                {"account_id": cash["id"], "debit": "10"},
                {"account_id": revenue["id"], "credit": "10"},
            ]
        })
        trial = client.get("/accounting/trial-balance", headers=owner["headers"]).json()
        assert trial["accounts"] == []

        drafts = client.get("/accounting/journal-entries", headers=owner["headers"], params={"status": "draft"}).json()
        assert drafts["total"] == 1

    def test_account_with_lines_cannot_be_deleted(self, client, owner):
        cash = create_account(client, owner["headers"], "1000", "Cash on Hand", "asset")
        revenue = create_account(client, owner["headers"], "4000", "Service Revenue", "income")
        client.post("/accounting/journal-entries", headers=owner["headers"], json={
            "status": "posted",
            "lines": [
                {"account_id": cash["id"], "debit": "10"},
                {"account_id": revenue["id"], "credit": "10"},
            ]
        })
        response = client.delete(f"/accounting/accounts/{cash['id']}", headers=owner["headers"])
        assert response.status_code == 400

        unused = create_account(client, owner["headers"], "5200", "Rent", "expense")
        assert client.delete(f"/accounting/accounts/{unused['id']}", headers=owner["headers"]).status_code == 200

    def test_staff_cannot_post_entries(self, client, owner, add_member):
        staff_headers = add_member("staff")
        response = client.post("/accounting/journal-entries", headers=staff_headers, json={"lines": []})
        assert response.status_code == 403
