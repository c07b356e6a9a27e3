"""Checkout and order administration endpoints."""

import pytest

from conftest import order_line, shipping_address, variant_stock
from models.order import Order


def _checkout(client, *lines, headers=None, expected=201, **extra):
    body = {"items": list(lines), "shipping_address": shipping_address(), "payment_method": "card"}
    body.update(extra)
    response = client.post("/orders", json=body, headers=headers or {})
    assert response.status_code == expected, response.text
    return response.json()


class TestPlaceOrder:
    def test_two_items_ship_free(self, client, make_product):
        shirt = make_product(title="Shirt", price=60.0)
        pants = make_product(title="Pants", price=50.0)

        body = _checkout(client, order_line(shirt), order_line(pants))

        assert body["success"] is True
        order = body["order"]
        assert order["subtotal"] == 110.0
        assert order["tax"] == 11.0
        assert order["shipping_cost"] == 0.0
        assert order["total"] == 121.0
        assert order["payment_status"] == "pending"
        assert order["order_status"] == "pending"
        assert order["order_number"].startswith("ORD-")
        assert order["shipping_address"]["city"] == "Springfield"
        assert [i["line_total"] for i in order["items"]] == [60.0, 50.0]

    def test_single_cheap_item_pays_shipping(self, client, make_product):
        product = make_product(price=20.0)
        order = _checkout(client, order_line(product))["order"]
        assert (order["subtotal"], order["tax"], order["shipping_cost"], order["total"]) == (20.0, 2.0, 10.0, 32.0)

    def test_guest_order_has_no_user(self, client, make_product):
        order = _checkout(client, order_line(make_product(price=20.0)))["order"]
        assert order["user_id"] is None

    def test_signed_in_order_is_attributed(self, client, make_product, make_user, auth_headers):
        user = make_user()
        order = _checkout(client, order_line(make_product(price=20.0)), headers=auth_headers(user))["order"]
        assert order["user_id"] == user.id

    def test_bad_token_checks_out_as_guest(self, client, make_product):
        headers = {"Authorization": "Bearer not-a-jwt"}
        order = _checkout(client, order_line(make_product(price=20.0)), headers=headers)["order"]
        assert order["user_id"] is None

    def test_stock_to_zero_then_rejected(self, client, db, make_product):
        product = make_product(price=20.0, variants=[("M", "White", 5)])
        _checkout(client, order_line(product, quantity=5))
        assert variant_stock(db, product.id, "M", "White") == 0

        body = _checkout(client, order_line(product, quantity=1), expected=409)
        assert body == {"error": "Insufficient stock for Linen Shirt (M/White)"}

    def test_over_request_leaves_stock_unchanged(self, client, db, make_product):
        product = make_product(price=20.0, variants=[("M", "White", 5)])
        _checkout(client, order_line(product, quantity=6), expected=409)
        assert variant_stock(db, product.id, "M", "White") == 5
        assert db.query(Order).count() == 0

    def test_items_are_a_frozen_snapshot(self, client, db, make_product):
        product = make_product(title="Shirt", price=20.0)
        number = _checkout(client, order_line(product))["order"]["order_number"]

        product.title = "Renamed Shirt"
        product.price = 99.0
        db.commit()

        order = client.get(f"/orders/number/{number}").json()
        assert order["items"][0]["title"] == "Shirt"
        assert order["items"][0]["price"] == 20.0

    def test_empty_items_rejected(self, client):
        body = _checkout(client, expected=422)
        assert body == {"error": "items: Order must have at least one item"}

    def test_invalid_email_rejected(self, client, make_product):
        body = {
            "items": [order_line(make_product(price=20.0))],
            "shipping_address": shipping_address(email="nope"),
            "payment_method": "card",
        }
        response = client.post("/orders", json=body)
        assert response.status_code == 422
        assert response.json()["error"].startswith("shipping_address.email:")

    def test_missing_payment_method_rejected(self, client, make_product):
        body = _checkout(client, order_line(make_product(price=20.0)), expected=422, payment_method="")
        assert body["error"].startswith("payment_method:")


class TestIdempotency:
    def test_same_key_returns_same_order(self, client, db, make_product):
        product = make_product(price=20.0, variants=[("M", "White", 5)])
        client.cookies.set("cart_session", "guest-cart-1")
        headers = {"Idempotency-Key": "checkout-abc"}

        first = _checkout(client, order_line(product, 2), headers=headers)["order"]
        second = _checkout(client, order_line(product, 2), headers=headers)["order"]

        assert first["order_number"] == second["order_number"]
        assert variant_stock(db, product.id, "M", "White") == 3
        assert db.query(Order).count() == 1

    def test_key_does_not_leak_another_customers_order(self, client, db, make_product, make_user, auth_headers):
        product = make_product(price=20.0, variants=[("M", "White", 5)])
        alice = make_user(email="alice@example.com", name="Alice")
        bob = make_user(email="bob@example.com", name="Bob")

        body = {
            "items": [order_line(product)],
            "shipping_address": shipping_address(full_name="Alice Secret", phone="555-ALICE"),
            "payment_method": "card",
        }
        first = client.post("/orders", json=body, headers={**auth_headers(alice), "Idempotency-Key": "1"})
        assert first.status_code == 201

        second = _checkout(
            client, order_line(product, 2), headers={**auth_headers(bob), "Idempotency-Key": "1"}
        )["order"]

        assert second["user_id"] == bob.id
        assert second["shipping_address"]["full_name"] == "Jane Doe"
        assert second["order_number"] != first.json()["order"]["order_number"]
        assert db.query(Order).count() == 2

    def test_guest_key_is_scoped_to_cart_session(self, client, db, make_product):
        product = make_product(price=20.0, variants=[("M", "White", 5)])
        headers = {"Idempotency-Key": "checkout-abc"}

        client.cookies.set("cart_session", "guest-cart-1")
        first = _checkout(client, order_line(product), headers=headers)["order"]
        client.cookies.set("cart_session", "guest-cart-2")
        second = _checkout(client, order_line(product), headers=headers)["order"]

        assert first["order_number"] != second["order_number"]
        assert db.query(Order).count() == 2

    def test_same_key_different_payload_conflicts(self, client, db, make_product):
        product = make_product(price=20.0, variants=[("M", "White", 5)])
        client.cookies.set("cart_session", "guest-cart-1")
        headers = {"Idempotency-Key": "checkout-abc"}

        _checkout(client, order_line(product, 1), headers=headers)
        body = _checkout(client, order_line(product, 2), headers=headers, expected=409)

        assert body == {"error": "Idempotency-Key was already used for a different order"}
        assert variant_stock(db, product.id, "M", "White") == 4

    def test_without_key_duplicates_are_separate_orders(self, client, db, make_product):
        product = make_product(price=20.0, variants=[("M", "White", 5)])
        _checkout(client, order_line(product, 2))
        _checkout(client, order_line(product, 2))
        assert db.query(Order).count() == 2
        assert variant_stock(db, product.id, "M", "White") == 1


class TestCheckoutConsumesCart:
    def test_cart_cleared_after_order(self, client, make_product):
        product = make_product(price=20.0)
        client.post("/cart/items", json={"product_id": product.id, "size": "M", "color": "White"})
        cart = client.get("/cart").json()

        _checkout(client, *[
            {k: item[k] for k in ("product_id", "title", "price", "quantity", "size", "color", "image")}
            for item in cart["items"]
        ])
        assert client.get("/cart").json()["items"] == []

    def test_cart_kept_when_order_fails(self, client, make_product):
        product = make_product(price=20.0, variants=[("M", "White", 1)])
        client.post("/cart/items", json={"product_id": product.id, "size": "M", "color": "White"})

        _checkout(client, order_line(product, quantity=2), expected=409)
        assert len(client.get("/cart").json()["items"]) == 1


class TestReadOrders:
    def test_my_orders_newest_first(self, client, make_product, make_user, auth_headers):
        user = make_user()
        headers = auth_headers(user)
        product = make_product(price=20.0)
        first = _checkout(client, order_line(product), headers=headers)["order"]
        second = _checkout(client, order_line(product), headers=headers)["order"]
        _checkout(client, order_line(product))  # guest

        orders = client.get("/orders/mine", headers=headers).json()
        assert [o["id"] for o in orders] == [second["id"], first["id"]]

    def test_my_orders_requires_login(self, client):
        response = client.get("/orders/mine")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_owner_can_read_order(self, client, make_product, make_user, auth_headers):
        user = make_user()
        headers = auth_headers(user)
        order = _checkout(client, order_line(make_product(price=20.0)), headers=headers)["order"]
        assert client.get(f"/orders/{order['id']}", headers=headers).json()["id"] == order["id"]

    def test_other_user_is_unauthorized(self, client, make_product, make_user, auth_headers):
        owner = make_user()
        other = make_user(email="other@example.com")
        order = _checkout(client, order_line(make_product(price=20.0)), headers=auth_headers(owner))["order"]

        response = client.get(f"/orders/{order['id']}", headers=auth_headers(other))
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_guest_order_unreadable_without_login(self, client, make_product):
        order = _checkout(client, order_line(make_product(price=20.0)))["order"]
        assert client.get(f"/orders/{order['id']}").status_code == 401

    def test_admin_can_read_any_order(self, client, make_product, admin_headers):
        order = _checkout(client, order_line(make_product(price=20.0)))["order"]
        assert client.get(f"/orders/{order['id']}", headers=admin_headers).status_code == 200

    def test_missing_order(self, client):
        response = client.get("/orders/12345")
        assert response.status_code == 404
        assert response.json() == {"error": "Order not found"}

    def test_lookup_by_number(self, client, make_product):
        order = _checkout(client, order_line(make_product(price=20.0)))["order"]
        found = client.get(f"/orders/number/{order['order_number']}").json()
        assert found["id"] == order["id"]
        assert client.get("/orders/number/ORD-NOPE-000000").status_code == 404


class TestAdminOrders:
    @pytest.fixture()
    def order(self, client, make_product):
        return _checkout(client, order_line(make_product(price=20.0)))["order"]

    def test_list_requires_admin(self, client, make_user, auth_headers):
        response = client.get("/admin/orders", headers=auth_headers(make_user()))
        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}

    def test_list_and_filter(self, client, admin_headers, order, make_user, auth_headers):
        user = make_user()
        product_line = order["items"][0]
        _checkout(client, product_line, headers=auth_headers(user))

        page = client.get("/admin/orders", headers=admin_headers).json()
        assert page["total"] == 2
        assert page["pages"] == 1

        mine = client.get("/admin/orders", params={"user_id": user.id}, headers=admin_headers).json()
        assert mine["total"] == 1

        client.patch(f"/admin/orders/{order['id']}/status", json={"status": "processing"}, headers=admin_headers)
        processing = client.get("/admin/orders", params={"status": "processing"}, headers=admin_headers).json()
        assert [o["id"] for o in processing["items"]] == [order["id"]]

    def test_pagination(self, client, admin_headers, order):
        line = order["items"][0]
        for _ in range(2):
            _checkout(client, line)
        page = client.get("/admin/orders", params={"page": 2, "page_size": 2}, headers=admin_headers).json()
        assert page["total"] == 3
        assert page["pages"] == 2
        assert len(page["items"]) == 1

    def test_status_walk(self, client, admin_headers, order):
        for status in ("processing", "shipped", "delivered"):
            response = client.patch(
                f"/admin/orders/{order['id']}/status", json={"status": status}, headers=admin_headers
            )
            assert response.status_code == 200
            assert response.json()["order_status"] == status

    def test_illegal_transition(self, client, admin_headers, order):
        response = client.patch(
            f"/admin/orders/{order['id']}/status", json={"status": "delivered"}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Cannot change status from pending to delivered"}

    def test_unknown_status_value(self, client, admin_headers, order):
        response = client.patch(
            f"/admin/orders/{order['id']}/status", json={"status": "lost"}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_cancel_does_not_restock(self, client, db, admin_headers, order):
        product_id = order["items"][0]["product_id"]
        client.patch(f"/admin/orders/{order['id']}/status", json={"status": "cancelled"}, headers=admin_headers)
        assert variant_stock(db, product_id, "M", "White") == 4

    def test_status_change_requires_admin(self, client, order):
        response = client.patch(f"/admin/orders/{order['id']}/status", json={"status": "processing"})
        assert response.status_code == 401

    def test_unknown_order(self, client, admin_headers):
        response = client.patch("/admin/orders/999/status", json={"status": "processing"}, headers=admin_headers)
        assert response.status_code == 404
