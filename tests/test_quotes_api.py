"""
Quote API tests — quote CRUD, line items priced from product snapshots,
re-pricing on edit, totals with tax and markup.
"""

from datetime import datetime
from decimal import Decimal

from contractor_quotes import models


def _create_quote(client, **fields):
    resp = client.post("/api/quotes/", json={"customer_name": "Pat Rivera", **fields})
    assert resp.status_code == 200
    return resp.json()


def _addon_id(client, product_id, name):
    product = client.get(f"/api/products/{product_id}").json()
    return next(a["id"] for a in product["addons"] if a["name"] == name)


def _variation_id(client, product_id, name):
    product = client.get(f"/api/products/{product_id}").json()
    return next(v["id"] for v in product["variations"] if v["name"] == name)


# --- Quotes ---

def test_create_quote(client):
    quote = _create_quote(client)
    assert quote["quote_number"] == f"Q-{datetime.utcnow().year}-0001"
    assert quote["status"] == "draft"
    assert Decimal(quote["total"]) == 0
    assert quote["line_items"] == []


def test_quote_numbers_increment(client):
    _create_quote(client)
    second = _create_quote(client)
    assert second["quote_number"].endswith("-0002")


def test_quote_number_not_reused_after_delete(client):
    first = _create_quote(client)
    second = _create_quote(client)
    assert client.delete(f"/api/quotes/{first['id']}").status_code == 200

    third = _create_quote(client)
    assert third["quote_number"].endswith("-0003")
    numbers = {q["quote_number"] for q in client.get("/api/quotes/").json()}
    assert numbers == {second["quote_number"], third["quote_number"]}


def test_list_and_get_quotes(client):
    created = _create_quote(client)
    listing = client.get("/api/quotes/").json()
    assert [q["quote_number"] for q in listing] == [created["quote_number"]]
    assert listing[0]["item_count"] == 0
    assert client.get(f"/api/quotes/{created['id']}").json()["id"] == created["id"]


def test_get_missing_quote(client):
    assert client.get("/api/quotes/999").status_code == 404


def test_delete_quote(client):
    quote = _create_quote(client)
    assert client.delete(f"/api/quotes/{quote['id']}").json() == {"ok": True}
    assert client.get(f"/api/quotes/{quote['id']}").status_code == 404


# --- Line items ---

def test_add_lot_product_to_quote(client, seeded):
    quote = _create_quote(client)
    sod_id = seeded["Sod Installation"]["id"]
    resp = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": sod_id,
        "measurement": {"type": "area", "value": 500},
    })
    assert resp.status_code == 200
    item = resp.json()
    assert item["product_name"] == "Sod Installation"
    assert Decimal(item["quantity"]) == Decimal("900")
    assert item["increments_applied"]["increment_label"] == "pallet"
    assert Decimal(item["line_total"]) == Decimal("1665")

    refreshed = client.get(f"/api/quotes/{quote['id']}").json()
    assert Decimal(refreshed["subtotal"]) == Decimal("1665")
    assert Decimal(refreshed["total"]) == Decimal("1665")
    assert refreshed["display"]["total"] == "$1,665.00"


def test_below_minimum_order_is_rejected(client, seeded):
    quote = _create_quote(client)
    resp = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": seeded["Sod Installation"]["id"],
        "measurement": {"value": 50},
    })
    assert resp.status_code == 422
    assert resp.json()["detail"] == ["Minimum order quantity is 100"]


def test_unknown_addon_is_rejected(client, seeded):
    quote = _create_quote(client)
    resp = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": seeded["Sod Installation"]["id"],
        "measurement": {"value": 500},
        "addons": [{"addon_id": "9999"}],
    })
    assert resp.status_code == 422
    assert resp.json()["detail"] == ["Add-on 9999 does not belong to this product"]


def test_add_missing_product(client):
    quote = _create_quote(client)
    resp = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": 999,
        "measurement": {"value": 10},
    })
    assert resp.status_code == 404


def test_fence_uses_default_variation_and_area_addon(client, seeded):
    quote = _create_quote(client)
    fence_id = seeded["Wood Privacy Fence"]["id"]
    stain_id = _addon_id(client, fence_id, "Stain & seal")
    resp = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": fence_id,
        "measurement": {"type": "linear", "value": 100},
        "addons": [{"addon_id": stain_id}],
    })
    assert resp.status_code == 200
    item = resp.json()
    assert item["variation_id"] == _variation_id(client, fence_id, "6 ft")
    # (32 + 8) x 100 ft, stain 1.25 x 100 ft x 6 ft
    assert Decimal(item["unit_price"]) == Decimal("40")
    assert Decimal(item["addons_total"]) == Decimal("750")
    assert Decimal(item["line_total"]) == Decimal("4750")


def test_update_item_reprices_from_snapshot(client, seeded):
    quote = _create_quote(client)
    fence_id = seeded["Wood Privacy Fence"]["id"]
    stain_id = _addon_id(client, fence_id, "Stain & seal")
    item = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": fence_id,
        "measurement": {"type": "linear", "value": 100},
        "addons": [{"addon_id": stain_id}],
    }).json()

    # Catalog price change after the line was added
    resp = client.patch(f"/api/products/{fence_id}", json={"unit_price": "99"})
    assert resp.status_code == 200

    four_ft = _variation_id(client, fence_id, "4 ft")
    resp = client.patch(f"/api/quotes/{quote['id']}/items/{item['id']}", json={
        "variation_id": four_ft,
    })
    assert resp.status_code == 200
    updated = resp.json()
    # Still $32 from the snapshot; stain now over 4 ft
    assert Decimal(updated["unit_price"]) == Decimal("32")
    assert Decimal(updated["addons_total"]) == Decimal("500")
    assert Decimal(updated["line_total"]) == Decimal("3700")


def test_update_item_toggles_addon_by_quantity(client, seeded):
    quote = _create_quote(client)
    fence_id = seeded["Wood Privacy Fence"]["id"]
    stain_id = _addon_id(client, fence_id, "Stain & seal")
    gate_id = _addon_id(client, fence_id, "Walk gate")
    item = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": fence_id,
        "measurement": {"type": "linear", "value": 100},
        "addons": [{"addon_id": stain_id}],
    }).json()

    updated = client.patch(f"/api/quotes/{quote['id']}/items/{item['id']}", json={
        "addons": [{"addon_id": stain_id, "quantity": 0}, {"addon_id": gate_id, "quantity": 2}],
    }).json()
    assert Decimal(updated["addons_total"]) == Decimal("850")
    assert Decimal(updated["line_total"]) == Decimal("4850")
    assert {a["addon_id"] for a in updated["addons"]} == {stain_id, gate_id}


def test_update_item_measurement(client, seeded):
    quote = _create_quote(client)
    item = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": seeded["Sod Installation"]["id"],
        "measurement": {"value": 500},
    }).json()
    updated = client.patch(f"/api/quotes/{quote['id']}/items/{item['id']}", json={
        "measurement": {"value": 200},
        "notes": "Front yard only",
    }).json()
    assert Decimal(updated["quantity"]) == Decimal("450")
    assert updated["notes"] == "Front yard only"

    refreshed = client.get(f"/api/quotes/{quote['id']}").json()
    assert Decimal(refreshed["subtotal"]) == Decimal("832.5")


def test_update_missing_item(client):
    quote = _create_quote(client)
    resp = client.patch(f"/api/quotes/{quote['id']}/items/999", json={"notes": "x"})
    assert resp.status_code == 404


def test_delete_item_recomputes_totals(client, seeded):
    quote = _create_quote(client)
    sod_id = seeded["Sod Installation"]["id"]
    first = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": sod_id, "measurement": {"value": 450},
    }).json()
    client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": sod_id, "measurement": {"value": 900},
    })
    resp = client.delete(f"/api/quotes/{quote['id']}/items/{first['id']}")
    assert resp.status_code == 200
    assert Decimal(resp.json()["subtotal"]) == Decimal("1665")


# --- Totals ---

def test_tax_and_markup_on_quote(client, seeded):
    quote = _create_quote(client, tax_rate_pct="10", markup_pct="20")
    client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": seeded["Sod Installation"]["id"],
        "measurement": {"value": 450},
    })
    data = client.get(f"/api/quotes/{quote['id']}").json()
    # 832.50 + 20% markup = 999.00, + 10% tax = 1098.90
    assert Decimal(data["subtotal"]) == Decimal("832.5")
    assert Decimal(data["markup_amount"]) == Decimal("166.5")
    assert Decimal(data["tax_amount"]) == Decimal("99.9")
    assert Decimal(data["total"]) == Decimal("1098.9")


def test_update_quote_recomputes_tax(client, seeded):
    quote = _create_quote(client)
    client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": seeded["Sod Installation"]["id"],
        "measurement": {"value": 450},
    })
    resp = client.patch(f"/api/quotes/{quote['id']}", json={"tax_rate_pct": "8", "status": "pending"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "pending"
    assert Decimal(data["tax_amount"]) == Decimal("66.6")
    assert Decimal(data["total"]) == Decimal("899.1")


def test_deleted_product_cannot_be_quoted_but_old_lines_still_reprice(client, seeded):
    quote = _create_quote(client)
    sod_id = seeded["Sod Installation"]["id"]
    item = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": sod_id, "measurement": {"value": 450},
    }).json()
    assert client.delete(f"/api/products/{sod_id}").status_code == 200

    resp = client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": sod_id, "measurement": {"value": 450},
    })
    assert resp.status_code == 404

    updated = client.patch(f"/api/quotes/{quote['id']}/items/{item['id']}", json={
        "measurement": {"value": 900},
    }).json()
    assert Decimal(updated["line_total"]) == Decimal("1665")


# --- Review ---

def test_review_groups_lines_by_variation_and_addon_option(client, seeded):
    quote = _create_quote(client)
    fence_id = seeded["Wood Privacy Fence"]["id"]
    fence = client.get(f"/api/products/{fence_id}").json()
    stain = next(a for a in fence["addons"] if a["name"] == "Stain & seal")
    natural = next(o["id"] for o in stain["options"] if o["name"] == "Natural")
    stain_natural = {"addon_id": stain["id"], "option_id": natural}

    for run in (100, 50):
        client.post(f"/api/quotes/{quote['id']}/items", json={
            "product_id": fence_id,
            "measurement": {"type": "linear", "value": run},
            "addons": [stain_natural],
        })
    client.post(f"/api/quotes/{quote['id']}/items", json={
        "product_id": fence_id,
        "measurement": {"type": "linear", "value": 100},
        "variation_id": _variation_id(client, fence_id, "4 ft"),
    })

    resp = client.get(f"/api/quotes/{quote['id']}/review")
    assert resp.status_code == 200
    groups = resp.json()["groups"]
    assert len(groups) == 2

    six_ft, four_ft = groups
    assert six_ft["variation_id"] == _variation_id(client, fence_id, "6 ft")
    assert Decimal(six_ft["total_quantity"]) == Decimal("150")
    # 40 x 150 ft, stain 1.25 x 150 ft x 6 ft
    assert Decimal(six_ft["total_line_total"]) == Decimal("7125")
    assert len(six_ft["addons"]) == 1
    addon = six_ft["addons"][0]
    assert addon["option_id"] == natural
    assert addon["instances"] == 2
    assert Decimal(addon["total"]) == Decimal("1125")

    assert Decimal(four_ft["total_line_total"]) == Decimal("3200")
    assert four_ft["addons"] == []


def test_review_missing_quote(client):
    assert client.get("/api/quotes/999/review").status_code == 404
