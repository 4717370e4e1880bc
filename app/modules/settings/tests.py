"""
Tests para el módulo de configuración
"""


class TestSettings:

    def test_defaults_are_returned(self, client, owner):
        response = client.get("/settings/payroll", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["value"]["ssnit_employer_rate"] == 0.13

    def test_unknown_key_returns_empty_value(self, client, owner):
        response = client.get("/settings/branding", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["value"] == {}

    def test_organization_seeded_from_signup(self, client, owner):
        value = client.get("/settings/organization", headers=owner["headers"]).json()["value"]
        assert value["name"] == "Acme Print House"
        assert value["currency"] == "GHS"

    def test_update_merges_values(self, client, owner):
        response = client.put("/settings/payroll", headers=owner["headers"], json={
            "value": {"income_tax_rate": 0.175},
            "description": "2026 PAYE band",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["value"]["income_tax_rate"] == 0.175
        assert body["value"]["ssnit_employee_rate"] == 0.055
        assert body["description"] == "2026 PAYE band"

    def test_access_token_is_masked(self, client, owner):
        response = client.put("/settings/whatsapp", headers=owner["headers"], json={
            "value": {"enabled": True, "access_token": "EAAG-secret-token-9876"}
        })
        assert response.json()["value"]["access_token"] == "****9876"

        response = client.get("/settings/whatsapp", headers=owner["headers"])
        assert response.json()["value"]["access_token"] == "****9876"

    def test_manager_cannot_update(self, client, add_member):
        manager_headers = add_member("manager")
        response = client.put("/settings/payroll", headers=manager_headers, json={"value": {"income_tax_rate": 0}})
        assert response.status_code == 403

    def test_settings_are_per_tenant(self, client, owner, other_tenant):
        client.put("/settings/payroll", headers=owner["headers"], json={"value": {"income_tax_rate": 0.2}})
        other = client.get("/settings/payroll", headers=other_tenant["headers"]).json()
        assert other["value"]["income_tax_rate"] == 0.15
