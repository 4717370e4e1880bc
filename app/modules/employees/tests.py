"""
Tests para el módulo de empleados
"""


def create_employee(client, headers, **overrides):
    payload = {
        "first_name": "Abena",
        "last_name": "Asante",
        "email": "abena@acmeprint.com",
        "phone": "0551234567",
        "job_title": "Press operator",
        "department": "Production",
        "salary_amount": "3000",
    }
    payload.update(overrides)
    response = client.post("/employees", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestEmployees:

    def test_create(self, client, owner):
        employee = create_employee(client, owner["headers"], metadata={"ssnit_number": "C123"})
        assert employee["phone"] == "+233551234567"
        assert employee["status"] == "active"
        assert employee["pay_frequency"] == "monthly"
        assert float(employee["salary_amount"]) == 3000.0
        assert employee["metadata"] == {"ssnit_number": "C123"}

    def test_list_filters(self, client, owner):
        create_employee(client, owner["headers"])
        create_employee(client, owner["headers"], first_name="Kofi", last_name="Darko",
                        email="kofi@acmeprint.com", department="Design", job_title="Designer")

        design = client.get("/employees", headers=owner["headers"], params={"department": "Design"}).json()
        assert design["total"] == 1
        assert design["items"][0]["first_name"] == "Kofi"

        search = client.get("/employees", headers=owner["headers"], params={"search": "press"}).json()
        assert search["total"] == 1

    def test_update_salary(self, client, owner):
        employee = create_employee(client, owner["headers"])
        response = client.put(f"/employees/{employee['id']}", headers=owner["headers"], json={"salary_amount": "3500.499"})
        assert response.status_code == 200
        assert float(response.json()["salary_amount"]) == 3500.5

    def test_delete_terminates_and_hides(self, client, owner):
        employee = create_employee(client, owner["headers"])
        response = client.delete(f"/employees/{employee['id']}", headers=owner["headers"])
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "terminated"
        assert body["is_active"] is False
        assert body["end_date"] is not None

        assert client.get("/employees", headers=owner["headers"]).json()["total"] == 0
        everyone = client.get("/employees", headers=owner["headers"], params={"include_inactive": True}).json()
        assert everyone["total"] == 1

    def test_staff_cannot_create(self, client, add_member):
        staff_headers = add_member("staff")
        response = client.post("/employees", headers=staff_headers, json={"first_name": "A", "last_name": "B"})
        assert response.status_code == 403

    def test_tenant_isolation(self, client, owner, other_tenant):
        employee = create_employee(client, owner["headers"])
        assert client.get(f"/employees/{employee['id']}", headers=other_tenant["headers"]).status_code == 404
