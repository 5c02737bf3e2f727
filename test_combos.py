from decimal import Decimal


def create_products(client):
    p1 = client.post("/products", json={"name": "Rose face wash", "price": 100, "offer_percentage": 10}).json()
    p2 = client.post("/products", json={"name": "Kumkumadi oil", "price": 300, "stock_quantity": 4}).json()
    return p1["id"], p2["id"]


def create_combo(client, items, **overrides):
    combo_data = {
        "title": "Glow kit",
        "discount_type": "percentage",
        "discount_value": 20,
        "items": items,
    }
    combo_data.update(overrides)
    return client.post("/combos", json=combo_data)


def test_create_and_get_product(client):
    p1, _ = create_products(client)
    data = client.get(f"/products/{p1}").json()
    assert data["name"] == "Rose face wash"
    assert Decimal(str(data["price"])) == Decimal("100")
    assert client.get("/products/999").status_code == 404
    assert len(client.get("/products").json()) == 2


def test_create_combo_reports_live_status(client):
    p1, p2 = create_products(client)
    response = create_combo(client, [{"product_id": p1, "quantity": 2}, {"product_id": p2, "quantity": 1}],
                            start_date="2024-01-01", end_date="2024-01-31")
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "active"
    assert data["items"] == [{"product_id": p1, "quantity": 2}, {"product_id": p2, "quantity": 1}]


def test_invalid_combo_definitions(client):
    p1, _ = create_products(client)
    items = [{"product_id": p1, "quantity": 1}]
    assert create_combo(client, items, discount_value=120).status_code == 400
    assert create_combo(client, items, start_date="2024-02-01", end_date="2024-01-01").status_code == 400
    assert create_combo(client, []).status_code == 422


def test_list_combos_filtered_by_status(client):
    p1, _ = create_products(client)
    items = [{"product_id": p1, "quantity": 1}]
    create_combo(client, items, title="Current")
    create_combo(client, items, title="Next month", start_date="2024-02-01")
    create_combo(client, items, title="Last year", end_date="2023-12-31")
    create_combo(client, items, title="Switched off", is_active=False, end_date="2099-01-01")

    all_combos = client.get("/combos").json()
    assert [c["status"] for c in all_combos] == ["active", "upcoming", "expired", "expired"]

    active = client.get("/combos", params={"status": "active"}).json()
    assert [c["title"] for c in active] == ["Current"]
    upcoming = client.get("/combos", params={"status": "upcoming"}).json()
    assert [c["title"] for c in upcoming] == ["Next month"]


def test_combo_pricing_allocates_bundle_discount(client):
    p1, p2 = create_products(client)
    combo_id = create_combo(client, [{"product_id": p1, "quantity": 2}, {"product_id": p2, "quantity": 1}]).json()["id"]

    response = client.get(f"/combos/{combo_id}/pricing")
    assert response.status_code == 200
    data = response.json()
    assert data["bundle_subtotal"] == "500.00"
    assert data["bundle_discount"] == "100.00"
    assert data["bundle_discounted_total"] == "400.00"
    assert [line["allocated_discount"] for line in data["lines"]] == ["40.00", "60.00"]
    assert [line["discounted_total"] for line in data["lines"]] == ["160.00", "240.00"]
    assert data["missing_item_ids"] == []


def test_combo_pricing_with_missing_product(client):
    p1, _ = create_products(client)
    combo_id = create_combo(client, [{"product_id": p1, "quantity": 1}, {"product_id": 999, "quantity": 1}],
                            discount_type="fixed", discount_value=30).json()["id"]

    data = client.get(f"/combos/{combo_id}/pricing").json()
    assert data["bundle_subtotal"] == "100.00"
    assert data["bundle_discounted_total"] == "70.00"
    assert data["missing_item_ids"] == [999]


def test_combo_cart_lines(client):
    p1, p2 = create_products(client)
    combo_id = create_combo(client, [{"product_id": p1, "quantity": 2}, {"product_id": p2, "quantity": 1}]).json()["id"]

    response = client.post(f"/combos/{combo_id}/cart-lines")
    assert response.status_code == 200
    items = response.json()["items"]
    assert [(i["item_id"], i["quantity"], i["unit_base_price"]) for i in items] == [
        (p1, 1, "80.00"), (p1, 1, "80.00"), (p2, 1, "240.00"),
    ]
    assert all(i["origin_combo_id"] == combo_id for i in items)
    assert all(i["bundle_discounted_total_at_add_time"] == "400.00" for i in items)
    assert items[0]["original_unit_price"] == "100.00"


def test_combo_cart_lines_refused_when_not_active(client):
    p1, _ = create_products(client)
    combo_id = create_combo(client, [{"product_id": p1, "quantity": 1}], start_date="2024-02-01").json()["id"]

    response = client.post(f"/combos/{combo_id}/cart-lines")
    assert response.status_code == 409
    assert "upcoming" in response.json()["error"]["detail"]


def test_update_combo_changes_pricing_and_listing(client):
    p1, p2 = create_products(client)
    combo_id = create_combo(client, [{"product_id": p1, "quantity": 1}]).json()["id"]
    assert client.get("/combos").json()[0]["title"] == "Glow kit"

    response = client.put(f"/combos/{combo_id}", json={
        "title": "Glow kit XL",
        "discount_type": "fixed",
        "discount_value": 50,
        "items": [{"product_id": p1, "quantity": 1}, {"product_id": p2, "quantity": 1}],
    })
    assert response.status_code == 200
    assert client.get("/combos").json()[0]["title"] == "Glow kit XL"

    data = client.get(f"/combos/{combo_id}/pricing").json()
    assert data["bundle_subtotal"] == "400.00"
    assert data["bundle_discounted_total"] == "350.00"


def test_delete_combo(client):
    p1, _ = create_products(client)
    combo_id = create_combo(client, [{"product_id": p1, "quantity": 1}]).json()["id"]
    assert client.delete(f"/combos/{combo_id}").status_code == 204
    assert client.get(f"/combos/{combo_id}").status_code == 404
    assert client.get("/combos").json() == []
    assert client.delete(f"/combos/{combo_id}").status_code == 404
