"""
Tests para tiendas, productos y ventas (POS)

Cubre:
- Códigos de tienda y SKU únicos por tenant
- Venta: totales, cambio, descuento de stock (mínimo 0)
- Cancelación con devolución de stock
- Variantes de producto con stock propio
- Factura a partir de la venta con total igual al de la venta
"""

from datetime import date


def create_shop(client, headers, **overrides):
    payload = {"name": "Osu Branch", "code": "OSU", "phone": "0302555000"}
    payload.update(overrides)
    response = client.post("/shops", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_product(client, headers, **overrides):
    payload = {
        "name": "Ballpoint pen (blue)",
        "sku": "PEN-BLU",
        "barcode": "6001234500011",
        "selling_price": "10.00",
        "cost_price": "6.00",
        "quantity_on_hand": "10",
        "reorder_level": "8",
    }
    payload.update(overrides)
    response = client.post("/products", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_sale(client, headers, product_id, **overrides):
    payload = {
        "items": [{"product_id": product_id, "quantity": "3", "tax": "1.50"}],
        "discount": "2.00",
        "amount_paid": "50.00",
    }
    payload.update(overrides)
    response = client.post("/sales", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestShops:

    def test_create_and_duplicate_code(self, client, owner):
        shop = create_shop(client, owner["headers"], metadata={"opening_hours": "8-18"})
        assert shop["phone"] == "+233302555000"
        assert shop["metadata"] == {"opening_hours": "8-18"}
        response = client.post("/shops", headers=owner["headers"], json={"name": "Another", "code": "OSU"})
        assert response.status_code == 409

    def test_update_merges_metadata(self, client, owner):
        shop = create_shop(client, owner["headers"], metadata={"opening_hours": "8-18"})
        response = client.put(f"/shops/{shop['id']}", headers=owner["headers"], json={"metadata": {"floor": 2}})
        assert response.json()["metadata"] == {"opening_hours": "8-18", "floor": 2}

    def test_manager_must_belong_to_tenant(self, client, owner, other_tenant):
        response = client.post("/shops", headers=owner["headers"], json={
            "name": "Osu Branch", "code": "OSU", "manager_id": other_tenant["user_id"]
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Manager not found"

        shop = create_shop(client, owner["headers"], manager_id=owner["user_id"])
        response = client.put(f"/shops/{shop['id']}", headers=owner["headers"], json={"manager_id": other_tenant["user_id"]})
        assert response.status_code == 404

    def test_shop_with_sales_cannot_be_deleted(self, client, owner):
        shop = create_shop(client, owner["headers"])
        product = create_product(client, owner["headers"], shop_id=shop["id"])
        create_sale(client, owner["headers"], product["id"], shop_id=shop["id"])

        response = client.delete(f"/shops/{shop['id']}", headers=owner["headers"])
        assert response.status_code == 400

    def test_delete_shop_without_sales(self, client, owner):
        shop = create_shop(client, owner["headers"])
        product = create_product(client, owner["headers"], shop_id=shop["id"])
        assert client.delete(f"/shops/{shop['id']}", headers=owner["headers"]).status_code == 200
        assert client.get(f"/products/{product['id']}", headers=owner["headers"]).json()["shop_id"] is None


class TestProducts:

    def test_duplicate_sku_conflicts(self, client, owner):
        create_product(client, owner["headers"])
        response = client.post("/products", headers=owner["headers"], json={"name": "Pen", "sku": "PEN-BLU"})
        assert response.status_code == 409

    def test_lookup_by_barcode(self, client, owner):
        product = create_product(client, owner["headers"])
        response = client.get("/products/barcode/6001234500011", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["id"] == product["id"]
        assert client.get("/products/barcode/000", headers=owner["headers"]).status_code == 404

    def test_low_stock_filter(self, client, owner):
        create_product(client, owner["headers"])
        create_product(client, owner["headers"], name="Stapler", sku="STP-1", barcode=None,
                       quantity_on_hand="40", reorder_level="5")
        low = client.get("/products", headers=owner["headers"], params={"low_stock": True}).json()
        assert low["total"] == 0

        create_product(client, owner["headers"], name="Glue stick", sku="GLU-1", barcode=None,
                       quantity_on_hand="2", reorder_level="5")
        low = client.get("/products", headers=owner["headers"], params={"low_stock": True}).json()
        assert low["total"] == 1
        assert low["items"][0]["sku"] == "GLU-1"

    def test_product_with_sales_cannot_be_deleted(self, client, owner):
        product = create_product(client, owner["headers"])
        create_sale(client, owner["headers"], product["id"])
        assert client.delete(f"/products/{product['id']}", headers=owner["headers"]).status_code == 400


class TestSales:

    def test_sale_totals_change_and_stock(self, client, owner, customer):
        product = create_product(client, owner["headers"])
        sale = create_sale(client, owner["headers"], product["id"], customer_id=customer["id"])

        assert sale["sale_number"] == f"SALE-{date.today().strftime('%Y%m%d')}-0001"
        assert sale["status"] == "completed"
        assert float(sale["subtotal"]) == 30.0
        assert float(sale["discount"]) == 2.0
        assert float(sale["tax"]) == 1.5
        assert float(sale["total"]) == 29.5
        assert float(sale["change"]) == 20.5
        assert sale["items"][0]["name"] == "Ballpoint pen (blue)"
        assert float(sale["items"][0]["total"]) == 31.5

        product = client.get(f"/products/{product['id']}", headers=owner["headers"]).json()
        assert float(product["quantity_on_hand"]) == 7.0

    def test_amount_paid_defaults_to_total(self, client, owner):
        product = create_product(client, owner["headers"])
        sale = create_sale(client, owner["headers"], product["id"], amount_paid=None)
        assert float(sale["amount_paid"]) == 29.5
        assert float(sale["change"]) == 0.0

    def test_stock_never_goes_below_zero(self, client, owner):
        product = create_product(client, owner["headers"], quantity_on_hand="1")
        create_sale(client, owner["headers"], product["id"])
        product = client.get(f"/products/{product['id']}", headers=owner["headers"]).json()
        assert float(product["quantity_on_hand"]) == 0.0

    def test_unknown_product_returns_404(self, client, owner, other_tenant):
        foreign = create_product(client, other_tenant["headers"])
        response = client.post("/sales", headers=owner["headers"], json={
            "items": [{"product_id": foreign["id"], "quantity": "1"}]
        })
        assert response.status_code == 404

    def test_cancel_restores_stock(self, client, owner):
        product = create_product(client, owner["headers"])
        sale = create_sale(client, owner["headers"], product["id"])

        response = client.post(f"/sales/{sale['id']}/cancel", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        product = client.get(f"/products/{product['id']}", headers=owner["headers"]).json()
        assert float(product["quantity_on_hand"]) == 10.0

        again = client.post(f"/sales/{sale['id']}/cancel", headers=owner["headers"])
        assert again.status_code == 400

    def test_staff_can_sell_but_not_cancel(self, client, owner, add_member):
        product = create_product(client, owner["headers"])
        staff_headers = add_member("staff")
        sale = create_sale(client, staff_headers, product["id"])
        assert client.post(f"/sales/{sale['id']}/cancel", headers=staff_headers).status_code == 403


class TestProductVariants:

    def create_variant(self, client, headers, product_id, **overrides):
        payload = {
            "name": "Red",
            "sku": "PEN-RED",
            "selling_price": "12.00",
            "quantity_on_hand": "4",
            "attributes": {"color": "red"},
        }
        payload.update(overrides)
        response = client.post(f"/products/{product_id}/variants", headers=headers, json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    def test_crud_and_duplicate_sku(self, client, owner):
        product = create_product(client, owner["headers"])
        variant = self.create_variant(client, owner["headers"], product["id"])
        assert variant["attributes"] == {"color": "red"}

        duplicate = client.post(f"/products/{product['id']}/variants", headers=owner["headers"], json={
            "name": "Crimson", "sku": "PEN-RED",
        })
        assert duplicate.status_code == 409

        updated = client.put(
            f"/products/{product['id']}/variants/{variant['id']}",
            headers=owner["headers"], json={"name": "Scarlet"}
        )
        assert updated.json()["name"] == "Scarlet"

        listed = client.get(f"/products/{product['id']}/variants", headers=owner["headers"]).json()
        assert [v["name"] for v in listed] == ["Scarlet"]

        deleted = client.delete(f"/products/{product['id']}/variants/{variant['id']}", headers=owner["headers"])
        assert deleted.status_code == 200
        assert client.get(f"/products/{product['id']}/variants", headers=owner["headers"]).json() == []

    def test_foreign_product_variants_hidden(self, client, owner, other_tenant):
        foreign = create_product(client, other_tenant["headers"])
        response = client.get(f"/products/{foreign['id']}/variants", headers=owner["headers"])
        assert response.status_code == 404

    def test_sale_decrements_and_cancel_restores_variant_stock(self, client, owner):
        product = create_product(client, owner["headers"])
        variant = self.create_variant(client, owner["headers"], product["id"])

        sale = create_sale(client, owner["headers"], product["id"], items=[
            {"product_id": product["id"], "product_variant_id": variant["id"], "quantity": "3"}
        ], discount="0", amount_paid=None)
        item = sale["items"][0]
        assert item["product_variant_id"] == variant["id"]
        assert item["name"] == "Ballpoint pen (blue) (Red)"
        assert item["sku"] == "PEN-RED"
        assert float(item["unit_price"]) == 12.0
        assert float(sale["total"]) == 36.0

        variants = client.get(f"/products/{product['id']}/variants", headers=owner["headers"]).json()
        assert float(variants[0]["quantity_on_hand"]) == 1.0
        product_after = client.get(f"/products/{product['id']}", headers=owner["headers"]).json()
        assert float(product_after["quantity_on_hand"]) == 7.0

        client.post(f"/sales/{sale['id']}/cancel", headers=owner["headers"])
        variants = client.get(f"/products/{product['id']}/variants", headers=owner["headers"]).json()
        assert float(variants[0]["quantity_on_hand"]) == 4.0

    def test_variant_of_other_product_returns_404(self, client, owner):
        pen = create_product(client, owner["headers"])
        pencil = create_product(client, owner["headers"], name="Pencil", sku="PCL", barcode="6001234500028")
        variant = self.create_variant(client, owner["headers"], pencil["id"])

        response = client.post("/sales", headers=owner["headers"], json={
            "items": [{"product_id": pen["id"], "product_variant_id": variant["id"], "quantity": "1"}]
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Product variant not found"


class TestSaleInvoice:

    def test_invoice_matches_sale_total(self, client, owner, customer):
        product = create_product(client, owner["headers"])
        sale = create_sale(client, owner["headers"], product["id"], customer_id=customer["id"])

        response = client.post(f"/sales/{sale['id']}/invoice", headers=owner["headers"])
        assert response.status_code == 201, response.text
        invoice = response.json()
        assert invoice["source_type"] == "sale"
        assert invoice["sale_id"] == sale["id"]
        assert float(invoice["total_amount"]) == 29.5
        assert invoice["status"] == "paid"
        assert [i["description"] for i in invoice["items"]] == ["Ballpoint pen (blue)", "Tax"]

        sale = client.get(f"/sales/{sale['id']}", headers=owner["headers"]).json()
        assert sale["invoice_id"] == invoice["id"]

        again = client.post(f"/sales/{sale['id']}/invoice", headers=owner["headers"])
        assert again.status_code == 400

    def test_partially_paid_sale_invoice(self, client, owner, customer):
        product = create_product(client, owner["headers"])
        sale = create_sale(client, owner["headers"], product["id"], customer_id=customer["id"],
                           payment_method="credit", amount_paid="10")

        invoice = client.post(f"/sales/{sale['id']}/invoice", headers=owner["headers"]).json()
        assert invoice["status"] == "partial"
        assert float(invoice["balance"]) == 19.5


class TestReceipt:

    def test_receipt(self, client, owner, customer):
        shop = create_shop(client, owner["headers"])
        product = create_product(client, owner["headers"], shop_id=shop["id"])
        sale = create_sale(client, owner["headers"], product["id"], shop_id=shop["id"], customer_id=customer["id"])

        receipt = client.get(f"/sales/{sale['id']}/receipt", headers=owner["headers"]).json()
        assert receipt["sale_number"] == sale["sale_number"]
        assert receipt["shop"]["name"] == "Osu Branch"
        assert receipt["customer_name"] == "Kwame Mensah"
        assert receipt["sold_by"] == "Owner Acme Print House"
        assert len(receipt["items"]) == 1
