"""
Tests para plantillas de precios

Cubre:
- CRUD y filtros por categoría y estado
- Cálculo: base + unidades + preparación, tramo de descuento y opciones
- Selección de plantilla por criterios y rango de cantidad, aislada por tenant
"""


def create_template(client, headers, **overrides):
    payload = {
        "name": "Flyers A5 color",
        "category": "Flyers",
        "job_type": "flyer",
        "paper_type": "gloss",
        "paper_size": "A5",
        "color_type": "color",
        "base_price": "50.00",
        "price_per_unit": "0.50",
        "setup_fee": "10.00",
        "discount_tiers": [
            {"min_quantity": 100, "max_quantity": 499, "discount_percent": "10"},
            {"min_quantity": 500, "discount_percent": "15"},
        ],
        "additional_options": [{"name": "Lamination", "price": "20.00"}],
    }
    payload.update(overrides)
    response = client.post("/pricing", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestPricingTemplates:

    def test_create_list_update_delete(self, client, owner):
        template = create_template(client, owner["headers"])
        assert template["discount_tiers"][1]["max_quantity"] is None
        create_template(client, owner["headers"], name="Banner", category="Banners", is_active=False)

        flyers = client.get("/pricing", headers=owner["headers"], params={"category": "Flyers"}).json()
        assert flyers["total"] == 1
        inactive = client.get("/pricing", headers=owner["headers"], params={"is_active": False}).json()
        assert [t["name"] for t in inactive["items"]] == ["Banner"]

        updated = client.put(f"/pricing/{template['id']}", headers=owner["headers"], json={"setup_fee": "0"})
        assert float(updated.json()["setup_fee"]) == 0.0

        assert client.delete(f"/pricing/{template['id']}", headers=owner["headers"]).status_code == 200
        assert client.get(f"/pricing/{template['id']}", headers=owner["headers"]).status_code == 404

    def test_invalid_tier_range_rejected(self, client, owner):
        response = client.post("/pricing", headers=owner["headers"], json={
            "name": "Bad", "category": "X", "base_price": "1",
            "discount_tiers": [{"min_quantity": 50, "max_quantity": 10, "discount_percent": "5"}],
        })
        assert response.status_code == 422

    def test_staff_cannot_create_but_can_calculate(self, client, owner, add_member):
        create_template(client, owner["headers"])
        staff_headers = add_member("staff")
        assert client.post("/pricing", headers=staff_headers, json={
            "name": "X", "category": "X", "base_price": "1",
        }).status_code == 403
        response = client.post("/pricing/calculate", headers=staff_headers, json={"quantity": 10})
        assert response.status_code == 200


class TestPriceCalculation:

    def test_discount_applies_before_options(self, client, owner):
        create_template(client, owner["headers"])
        response = client.post("/pricing/calculate", headers=owner["headers"], json={
            "job_type": "flyer", "paper_size": "A5", "color_type": "color",
            "quantity": 200, "additional_options": ["Lamination", "Gold foil"],
        })
        assert response.status_code == 200, response.text
        body = response.json()
        breakdown = body["breakdown"]
        assert float(breakdown["unit_price"]) == 100.0
        assert float(breakdown["subtotal"]) == 160.0
        assert float(breakdown["discount"]) == 16.0
        assert float(breakdown["additional_options"]) == 20.0
        assert float(body["calculated_price"]) == 164.0
        assert float(body["applied_discount"]["percentage"]) == 10.0
        assert body["unknown_options"] == ["Gold foil"]

    def test_open_ended_tier_and_no_discount(self, client, owner):
        create_template(client, owner["headers"])
        large = client.post("/pricing/calculate", headers=owner["headers"], json={"quantity": 1000}).json()
        # (50 + 500 + 10) * 0.85
        assert float(large["calculated_price"]) == 476.0

        small = client.post("/pricing/calculate", headers=owner["headers"], json={"quantity": 10}).json()
        assert small["applied_discount"] is None
        assert float(small["calculated_price"]) == 65.0

    def test_no_matching_template(self, client, owner, other_tenant):
        create_template(client, other_tenant["headers"])
        response = client.post("/pricing/calculate", headers=owner["headers"], json={"quantity": 10})
        assert response.status_code == 404
        assert response.json()["detail"] == "No pricing template found for the given criteria"

        create_template(client, owner["headers"], color_type="black_white", is_active=False)
        response = client.post("/pricing/calculate", headers=owner["headers"], json={
            "color_type": "black_white", "quantity": 10,
        })
        assert response.status_code == 404

    def test_quantity_range_selects_template(self, client, owner):
        create_template(client, owner["headers"], name="Short run", maximum_quantity=99)
        create_template(client, owner["headers"], name="Long run", minimum_quantity=100, base_price="0")

        short = client.post("/pricing/calculate", headers=owner["headers"], json={"quantity": 50}).json()
        long = client.post("/pricing/calculate", headers=owner["headers"], json={"quantity": 150}).json()
        assert short["template_name"] == "Short run"
        assert long["template_name"] == "Long run"
