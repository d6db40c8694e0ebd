from decimal import Decimal

import pytest

from minimall_server.errors import RequestFailedError
from minimall_server.models import AuthCredentials, ProductForm, ShippingAddress

ADDRESS = ShippingAddress(
    full_name="Ana Cruz",
    phone="09171234567",
    address_line1="12 Mabini St",
    city="Quezon City",
    state="Metro Manila",
    postal_code="1100",
)


def test_signin_stores_token_and_user(client, backend):
    backend.add(
        "POST",
        "/api/auth/signin",
        {"success": True, "token": "tok-1", "user": {"id": 1, "email": "ana@example.com", "full_name": "Ana Cruz"}},
    )

    user = client.signin(AuthCredentials(email="ana@example.com", password="secret1"))

    assert user.full_name == "Ana Cruz"
    assert client.auth_manager.get_token() == "tok-1"
    assert backend.body(backend.requests[0]) == {"email": "ana@example.com", "password": "secret1"}


def test_signin_without_token_fails(client, backend):
    backend.add("POST", "/api/auth/signin", {"success": False, "message": "Invalid credentials"})

    with pytest.raises(RequestFailedError) as exc_info:
        client.signin(AuthCredentials(email="ana@example.com", password="wrong"))

    assert exc_info.value.message == "Invalid credentials"
    assert not client.auth_manager.is_authenticated()


def test_signup_registers_customer(client, backend):
    backend.add("POST", "/api/auth/signup", {"success": True, "token": "tok-2", "user_id": 9})

    result = client.signup("new@example.com", "secret1", "New User", "0917")

    assert result["user_id"] == 9
    assert backend.body(backend.requests[0])["role"] == "customer"
    assert client.auth_manager.get_token() == "tok-2"


def test_verify_otp_reports_whether_token_was_issued(client, backend):
    backend.add("POST", "/api/auth/verify-otp", {"success": True, "message": "Verified"})

    assert client.verify_otp("new@example.com", "123456") is False
    assert not client.auth_manager.is_authenticated()


def test_list_products_skips_unreadable_records(client, backend):
    backend.add(
        "GET",
        "/api/products",
        {
            "success": True,
            "products": [
                {"id": 1, "name": "Mango", "price": "45.50", "quantity_in_stock": 10},
                {"name": "No id"},
                {"id": 2, "name": "Banana", "price": None},
            ],
            "total": 3,
        },
    )

    result = client.list_products(limit=12, offset=12, category_id=4)

    assert [p.name for p in result.products] == ["Mango", "Banana"]
    assert result.products[0].price == Decimal("45.50")
    assert result.products[1].price == Decimal("0")
    assert dict(backend.requests[0].url.params) == {"limit": "12", "offset": "12", "category_id": "4"}


def test_search_rejects_empty_query(client):
    with pytest.raises(ValueError):
        client.search_products("   ")


def test_get_cart_defaults_total_to_line_sum(signed_in, backend):
    backend.add(
        "GET",
        "/api/cart/",
        {
            "success": True,
            "cart": {
                "items": [
                    {"id": 1, "product_id": 5, "product_name": "Mango", "quantity": 2, "price_at_time": "45.50"},
                    {"id": 2, "product": {"id": 6, "name": "Rice"}, "quantity": 1, "price": 300},
                    {"product_name": "Broken line"},
                ]
            },
        },
    )

    cart = signed_in.get_cart()

    assert [item.product_name for item in cart.items] == ["Mango", "Rice"]
    assert cart.items[1].product_id == 6
    assert cart.total == Decimal("391.00")
    assert cart.item_count == 3


def test_update_cart_item_requires_positive_quantity(signed_in, backend):
    with pytest.raises(ValueError):
        signed_in.update_cart_item(1, 0)
    assert backend.requests == []


def test_list_orders_accepts_bare_list(signed_in, backend):
    backend.add(
        "GET",
        "/api/orders",
        [
            {"order_id": 17, "order_number": "ORD-17", "status": "shipped", "total": "560.00", "items": [{"name": "Mango"}]},
            {"order_id": 18, "status": "delivered", "total_amount": 100},
        ],
    )

    orders = signed_in.list_orders()

    assert [o.id for o in orders] == ["17", "18"]
    assert orders[0].items[0].product_name == "Mango"
    assert orders[1].order_number == "18"
    assert orders[1].total == Decimal("100")


def test_get_order_parses_details(signed_in, backend):
    backend.add(
        "GET",
        "/api/orders/17",
        {
            "success": True,
            "order": {
                "id": 17,
                "order_number": "ORD-17",
                "status": "processing",
                "created_at": "2025-03-01 09:15:00",
                "subtotal": 500,
                "tax": 60,
                "shipping_fee": 50,
                "total": 610,
                "shipping_address": ADDRESS.model_dump(),
                "delivery_option": "express",
                "items": [{"product_name": "Shirt", "variant_name": "Size", "variant_value": "M", "quantity": 1}],
            },
        },
    )

    order = signed_in.get_order("17")

    assert order.shipping_address.city == "Quezon City"
    assert order.created_at.year == 2025
    assert order.items[0].variant_value == "M"
    assert order.tax == Decimal("60")


def test_create_order_sends_checkout_payload(signed_in, backend):
    backend.add(
        "POST",
        "/api/checkout/create",
        {"success": True, "order_id": 30, "order_number": "ORD-30", "total": 1200},
    )

    confirmation = signed_in.create_order("gcash", ADDRESS, "express", "Leave at the gate")

    body = backend.body(backend.requests[0])
    assert body["payment_method"] == "gcash"
    assert body["delivery_option"] == "express"
    assert body["customer_notes"] == "Leave at the gate"
    assert body["shipping_info"]["postal_code"] == "1100"
    assert confirmation.order_number == "ORD-30"
    assert confirmation.total == Decimal("1200")
    assert confirmation.payment_method == "gcash"


@pytest.mark.parametrize(
    "status, expected",
    [
        ("shipped", {"status": "shipped", "tracking_number": "TRK1"}),
        ("cancelled", {"status": "cancelled", "notes": "Out of stock"}),
        ("processing", {"status": "processing"}),
    ],
)
def test_update_order_status_payload(signed_in, backend, status, expected):
    backend.add("PATCH", "/api/seller/orders/5/status", {"success": True})

    signed_in.update_order_status(5, status, tracking_number="TRK1", notes="Out of stock")

    assert backend.body(backend.requests[0]) == expected


def test_application_status_none_when_never_applied(signed_in, backend):
    backend.add("GET", "/api/seller/application/status", (404, {"detail": "No application found"}))

    assert signed_in.application_status() is None


def test_application_status_reads_bare_object(signed_in, backend):
    backend.add("GET", "/api/seller/application/status", {"status": "pending", "store_name": "Ana's"})

    assert signed_in.application_status().status == "pending"


def test_seller_profile_none_when_empty(signed_in, backend):
    backend.add("GET", "/api/seller/profile", {"success": True})

    assert signed_in.seller_profile() is None


def test_seller_orders_parse_stats_and_pagination(signed_in, backend):
    backend.add(
        "GET",
        "/api/seller/orders",
        {
            "success": True,
            "orders": [{"id": 1, "status": "pending", "total_amount": "99.90", "user_id": 4}],
            "pagination": {"current_page": 1, "per_page": 10, "total_items": 1, "total_pages": 1},
            "stats": {"total_orders": 1, "pending_orders": 1, "total_revenue": "99.90"},
        },
    )

    result = signed_in.seller_orders(status="pending", date_range="today")

    assert result.orders[0].total_amount == Decimal("99.90")
    assert result.stats.pending_orders == 1
    assert dict(backend.requests[0].url.params)["date_range"] == "today"


def test_create_product_sends_form(signed_in, backend):
    backend.add("POST", "/api/seller/products", {"success": True, "product": {"id": 8, "name": "Mango"}})
    form = ProductForm(name="Mango", category_id=2, price="45.5", quantity_in_stock=10)

    product = signed_in.create_product(form)

    body = backend.body(backend.requests[0])
    assert body["price"] == "45.5"
    assert body["category_id"] == 2
    assert product.id == 8
