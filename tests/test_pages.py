import json
from decimal import Decimal

import httpx

from minimall_server.pages import (
    AuthPage,
    CartPage,
    CatalogPage,
    CheckoutPage,
    CustomersPage,
    OrderDetailsPage,
    OrderHistoryPage,
    OrderSuccessPage,
    PayoutPage,
    ProductDetailPage,
    ProfilePage,
    SellerDashboardPage,
    SellerOrdersPage,
    SellerProductsPage,
)
from minimall_server.pages.seller import payout_balance
from minimall_server.models import SellerOrder

ADDRESS = {
    "full_name": "Ana Cruz",
    "phone": "09171234567",
    "address_line1": "12 Mabini St",
    "city": "Quezon City",
    "state": "Metro Manila",
    "postal_code": "1100",
}


def cart_with(*items):
    return {"success": True, "cart": {"items": list(items)}}


def add_catalog_routes(backend):
    backend.add(
        "GET",
        "/api/products",
        {
            "success": True,
            "products": [
                {"id": 1, "name": "Mango", "price": 45, "quantity_in_stock": 10},
                {"id": 2, "name": "Rice", "price": 300, "quantity_in_stock": 0},
            ],
            "total": 2,
        },
    )
    backend.add("GET", "/api/categories", {"success": True, "categories": [{"id": 3, "name": "Fruit"}]})
    backend.add("GET", "/api/cart/count", {"success": True, "count": 4})


def add_profile_routes(backend, is_seller=False, application=None):
    backend.add(
        "GET",
        "/api/profile/dashboard",
        {
            "profile": {"id": 7, "email": "ana@example.com", "full_name": "Ana Cruz", "is_seller": is_seller},
            "statistics": {"total_orders": 2},
            "recent_transactions": [],
        },
    )
    if application is None:
        backend.add("GET", "/api/seller/application/status", (404, {"detail": "No application"}))
    else:
        backend.add("GET", "/api/seller/application/status", application)


# Cart


def test_cart_totals_use_twelve_percent_estimate(signed_in, backend):
    backend.add(
        "GET",
        "/api/cart/",
        cart_with(
            {"id": 1, "product_name": "Mango", "quantity": 3, "price_at_time": "45.50"},
            {"id": 2, "product_name": "Rice", "quantity": 1, "price_at_time": "300"},
        ),
    )

    result = CartPage(signed_in).load()

    assert result.ok
    assert result.data["subtotal"] == Decimal("436.50")
    assert result.data["tax"] == Decimal("52.38")
    assert result.data["total"] == Decimal("488.88")
    assert result.data["can_checkout"] is True
    assert "Total: ₱488.88" in result.view


def test_empty_cart_disables_checkout(signed_in, backend):
    backend.add("GET", "/api/cart/", cart_with())
    page = CartPage(signed_in)

    result = page.load()
    action = page.checkout()

    assert "Checkout is unavailable" in result.view
    assert not action.ok
    assert action.toasts[0].message == "Your cart is empty"
    assert action.redirect_to is None


def test_decrease_at_quantity_one_removes_line(signed_in, backend):
    backend.add("GET", "/api/cart/", cart_with({"id": 1, "product_name": "Mango", "quantity": 1, "price_at_time": 45}))
    backend.add("DELETE", "/api/cart/items/1", {"success": True})
    page = CartPage(signed_in)
    page.load()

    result = page.decrease(1)

    assert result.ok
    assert result.toasts[0].message == "Item removed from cart"
    assert len(backend.sent("DELETE", "/api/cart/items/1")) == 1
    assert backend.sent("PUT", "/api/cart/items/1") == []


def test_increase_updates_and_reloads(signed_in, backend):
    backend.add("GET", "/api/cart/", cart_with({"id": 1, "product_name": "Mango", "quantity": 2, "price_at_time": 45}))
    backend.add("PUT", "/api/cart/items/1", {"success": True})
    page = CartPage(signed_in)
    page.load()

    result = page.increase(1)

    assert result.ok
    assert backend.body(backend.sent("PUT", "/api/cart/items/1")[0]) == {"quantity": 3}
    assert result.page is not None
    assert len(backend.sent("GET", "/api/cart/")) == 2


def test_busy_action_is_not_repeated(signed_in, backend):
    page = CartPage(signed_in)
    page.busy.add("clear")

    result = page.clear()

    assert not result.ok
    assert result.toasts[0].message == "Please wait..."
    assert backend.requests == []


def test_network_failure_offers_retry(signed_in, backend):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend.add("GET", "/api/cart/", refuse)

    result = CartPage(signed_in).load()

    assert not result.ok
    assert result.error_kind == "network"
    assert result.retry is True
    assert result.redirect_to is None


# Catalog


def test_catalog_without_session_skips_cart_badge(client, backend):
    add_catalog_routes(backend)

    result = CatalogPage(client).load()

    assert result.ok
    assert result.data["cart_count"] is None
    assert backend.sent("GET", "/api/cart/count") == []
    assert "Mango" in result.view


def test_add_selected_reports_successes_and_failures_separately(signed_in, backend):
    add_catalog_routes(backend)

    def add(request):
        if json.loads(request.content)["product_id"] == 2:
            return httpx.Response(400, json={"detail": "Out of stock"})
        return httpx.Response(200, json={"success": True, "message": "Added"})

    backend.add("POST", "/api/cart/add", add)
    page = CatalogPage(signed_in)
    page.load()
    page.toggle_selection(1)
    page.toggle_selection(2)

    result = page.add_selected_to_cart()

    assert not result.ok
    assert [(t.level, t.message) for t in result.toasts] == [
        ("success", "Added 1 product to cart"),
        ("error", "Failed to add 1 product"),
    ]
    assert result.data == {"added": 1, "failed": 1}
    assert page.selected == [2]
    # One request per product, in selection order
    assert [json.loads(r.content)["product_id"] for r in backend.sent("POST", "/api/cart/add")] == [1, 2]


def test_unreadable_add_to_cart_answer_becomes_error_toast(signed_in, backend):
    backend.add("POST", "/api/cart/add", ["ok"])

    result = CatalogPage(signed_in).add_to_cart(5)

    assert not result.ok
    assert result.error_kind == "failed"
    assert result.toasts[0].level == "error"
    assert result.page is None


def test_add_selected_counts_unreadable_answers_as_failures(signed_in, backend):
    add_catalog_routes(backend)
    backend.add("POST", "/api/cart/add", ["ok"])
    page = CatalogPage(signed_in)
    page.load()
    page.toggle_selection(1)

    result = page.add_selected_to_cart()

    assert not result.ok
    assert result.data == {"added": 0, "failed": 1}
    assert page.selected == [1]
    assert "add_selected" not in page.busy


def test_catalog_sends_expired_session_to_login(signed_in, backend, redirects):
    add_catalog_routes(backend)
    backend.add("GET", "/api/cart/count", (401, {"detail": "Token expired"}))

    result = CatalogPage(signed_in).load()

    assert not result.ok
    assert result.error_kind == "unauthenticated"
    assert result.redirect_to == "/login"
    assert redirects == ["/login"]


def test_catalog_filters(client, backend):
    add_catalog_routes(backend)
    backend.add("GET", "/api/products/featured", {"success": True, "products": [{"id": 5, "name": "Durian", "price": 250}]})
    backend.add("GET", "/api/products/tag/organic", {"success": True, "products": [{"id": 6, "name": "Kale", "price": 80}]})
    backend.add("GET", "/api/categories/fruit", {"success": True, "category": {"id": 3, "name": "Fruit", "slug": "fruit"}})
    page = CatalogPage(client)

    featured = page.set_filters(featured=True)
    tagged = page.set_filters(tag="organic")
    by_slug = page.set_filters(category="fruit", page=2)

    assert "Featured products" in featured.view
    assert "Durian" in featured.view
    assert 'Tagged "organic"' in tagged.view
    assert "Kale" in tagged.view
    assert "Category: Fruit" in by_slug.view
    listed = backend.sent("GET", "/api/products")[-1]
    assert dict(listed.url.params) == {"limit": "12", "offset": "12", "category_id": "3"}


def test_toggle_selection_does_not_refetch(client, backend):
    add_catalog_routes(backend)
    page = CatalogPage(client)
    page.load()
    count = len(backend.requests)

    result = page.toggle_selection(1)

    assert "[x] Mango" in result.view
    assert len(backend.requests) == count


def test_missing_product_redirects_to_catalog(client, backend):
    backend.add("GET", "/api/products/id/404", (404, {"detail": "Product not found"}))

    result = ProductDetailPage(client, product_id=404).load()

    assert result.error_kind == "not_found"
    assert result.redirect_to == "/products"


def test_product_quantity_checked_against_stock(signed_in, backend):
    backend.add("GET", "/api/products/id/1", {"id": 1, "name": "Mango", "price": 45, "quantity_in_stock": 2})
    page = ProductDetailPage(signed_in, product_id=1)
    page.load()

    result = page.add_to_cart(5)

    assert not result.ok
    assert result.toasts[0].message == "Only 2 left in stock"
    assert backend.sent("POST", "/api/cart/add") == []


# Orders


def test_order_history_splits_and_filters(signed_in, backend):
    backend.add(
        "GET",
        "/api/orders",
        {
            "success": True,
            "orders": [
                {"id": 1, "order_number": "ORD-1", "status": "pending", "total": 100},
                {"id": 2, "order_number": "ORD-2", "status": "delivered", "total": 200},
                {"id": 3, "order_number": "ORD-3", "status": "shipped", "total": 300},
            ],
        },
    )
    page = OrderHistoryPage(signed_in)

    result = page.load()
    filtered = page.search_orders("ord-2")

    assert "Pending orders (2)" in result.view
    assert "Completed orders (1)" in result.view
    assert "Pending orders (0)" in filtered.view
    assert "Order #ORD-2" in filtered.view
    assert len(backend.requests) == 1


def test_missing_order_redirects_to_history(signed_in, backend):
    backend.add("GET", "/api/orders/77", (404, {"detail": "Not found"}))

    result = OrderDetailsPage(signed_in, order_id="77").load()

    assert result.error == "Order not found"
    assert result.redirect_to == "/orders"


# Checkout


def test_checkout_with_empty_cart_goes_back_to_cart(signed_in, backend):
    backend.add("GET", "/api/checkout/calculate-total", {"success": True, "totals": {"subtotal": 0, "item_count": 0}})

    result = CheckoutPage(signed_in).load()

    assert result.ok
    assert result.redirect_to == "/cart"


def test_checkout_purchase_flow(signed_in, backend):
    backend.add(
        "GET",
        "/api/checkout/calculate-total",
        {
            "success": True,
            "totals": {"subtotal": 1000, "tax": 120, "shipping_fee": 50, "marketplace_fee": 30, "total": 1200, "item_count": 2},
        },
    )
    backend.add("POST", "/api/checkout/create", {"success": True, "order_id": 30, "order_number": "ORD-30", "total": 1200})
    page = CheckoutPage(signed_in)

    loaded = page.load()
    missing = page.purchase()
    page.set_shipping_address(**ADDRESS)
    page.select_payment("gcash")
    placed = page.purchase("Leave at the gate")

    assert "Total: ₱1200.00" in loaded.view
    assert missing.toasts[0].message == "Please enter shipping address"
    assert placed.ok
    assert placed.redirect_to == "/checkout/success?order=ORD-30"
    body = backend.body(backend.sent("POST", "/api/checkout/create")[0])
    assert body["payment_method"] == "gcash"
    assert body["shipping_info"]["city"] == "Quezon City"

    success = OrderSuccessPage(signed_in).load()
    again = OrderSuccessPage(signed_in).load()

    assert "Order number: ORD-30" in success.view
    assert "Total: ₱1200.00" in success.view
    assert success.redirect_to is None
    assert again.redirect_to == "/orders"


def test_invalid_shipping_address_reports_fields(signed_in, backend):
    page = CheckoutPage(signed_in)

    result = page.set_shipping_address(full_name="Ana Cruz", phone="")

    assert not result.ok
    assert result.error_kind == "validation"
    assert "phone" in result.field_errors
    assert "city" in result.field_errors
    assert page.shipping_address is None


def test_unknown_payment_method_is_rejected(signed_in):
    result = CheckoutPage(signed_in).select_payment("bitcoin")

    assert not result.ok
    assert result.toasts[0].message == "Unknown payment method: bitcoin"


def checkout_totals(request):
    option = request.url.params["delivery_option"]
    if option == "same_day":
        return httpx.Response(500, json={"detail": "Pricing unavailable"})
    shipping = {"standard": 50, "express": 150}[option]
    return httpx.Response(
        200,
        json={"success": True, "totals": {"subtotal": 1000, "shipping_fee": shipping, "item_count": 2}},
    )


def test_select_delivery_fetches_totals_again(signed_in, backend):
    backend.add("GET", "/api/checkout/calculate-total", checkout_totals)
    page = CheckoutPage(signed_in)
    page.load()

    result = page.select_delivery("express")

    assert result.ok
    assert page.delivery_option == "express"
    assert backend.requests[-1].url.params["delivery_option"] == "express"
    assert result.page.data["summary"].shipping_fee == Decimal("150")


def test_select_delivery_reverts_when_totals_fail(signed_in, backend):
    backend.add("GET", "/api/checkout/calculate-total", checkout_totals)
    page = CheckoutPage(signed_in)
    page.load()

    result = page.select_delivery("same_day")

    assert not result.ok
    assert page.delivery_option == "standard"
    assert result.toasts[0].level == "error"
    assert result.toasts[0].message == "Pricing unavailable"


# Profile


def test_seller_application_blocked_while_pending(signed_in, backend):
    add_profile_routes(backend, application={"status": "pending"})
    page = ProfilePage(signed_in)
    page.load()

    result = page.apply_as_seller("Ana's Fruits", "individual")

    assert not result.ok
    assert "pending application" in result.toasts[0].message
    assert backend.sent("POST", "/api/seller/apply") == []


def test_seller_application_validates_store_name(signed_in, backend):
    add_profile_routes(backend)
    page = ProfilePage(signed_in)
    page.load()

    result = page.apply_as_seller("ab", "individual")

    assert result.toasts[0].message == "Store name must be at least 3 characters"


def test_seller_application_submitted(signed_in, backend):
    add_profile_routes(backend, application={"status": "rejected", "admin_notes": "Incomplete"})
    backend.add("POST", "/api/seller/apply", {"success": True, "message": "Application submitted"})
    page = ProfilePage(signed_in)
    loaded = page.load()

    result = page.apply_as_seller("Ana's Fruits", "business", "Fresh fruit")

    assert "rejected" in loaded.view
    assert result.ok
    assert result.toasts[0].message == "Application submitted"
    assert backend.body(backend.sent("POST", "/api/seller/apply")[0])["store_name"] == "Ana's Fruits"


def test_seller_dashboard_link_follows_account_state(signed_in, backend):
    add_profile_routes(backend, application={"status": "pending"})
    pending = ProfilePage(signed_in)
    pending.load()
    add_profile_routes(backend, is_seller=True)
    seller = ProfilePage(signed_in)
    seller.load()

    blocked = pending.open_seller_dashboard()
    opened = seller.open_seller_dashboard()

    assert not blocked.ok
    assert blocked.toasts[0].message == "Your seller application is currently under review."
    assert opened.ok
    assert opened.redirect_to == "/seller"


# Auth


def test_signup_sends_code_then_verifies(client, backend):
    backend.add("POST", "/api/auth/send-otp", {"success": True, "message": "Code sent"})
    backend.add(
        "POST",
        "/api/auth/verify-otp",
        {"success": True, "token": "tok-9", "user": {"email": "new@example.com", "full_name": "New User"}},
    )
    page = AuthPage(client)

    first = page.submit_signup("new@example.com", "secret1", "New User")

    assert first.ok
    assert first.toasts[0].message == "Code sent"
    assert AuthPage(client).otp_sent is True

    second = page.submit_signup(otp="123456")

    assert second.ok
    assert second.redirect_to == "/products"
    assert client.auth_manager.get_token() == "tok-9"
    assert client.auth_manager.get_pending_signup() is None
    assert backend.sent("POST", "/api/auth/signup") == []


def test_signup_creates_account_when_verification_issues_no_token(client, backend):
    backend.add("POST", "/api/auth/send-otp", {"success": True})
    backend.add("POST", "/api/auth/verify-otp", {"success": True, "message": "Verified"})
    backend.add("POST", "/api/auth/signup", {"success": True, "token": "tok-10", "user_id": 10})
    page = AuthPage(client)
    page.submit_signup("new@example.com", "secret1", "New User", "0917")

    result = page.submit_signup(otp="123456")

    assert result.ok
    assert backend.body(backend.sent("POST", "/api/auth/signup")[0])["phone"] == "0917"
    assert client.auth_manager.get_token() == "tok-10"


def test_signup_rejects_short_password(client, backend):
    result = AuthPage(client).submit_signup("new@example.com", "123", "New User")

    assert not result.ok
    assert "at least 6 characters" in result.toasts[0].message
    assert backend.requests == []


def test_resend_code_goes_to_pending_email(client, backend):
    backend.add("POST", "/api/auth/send-otp", {"success": True, "message": "Code sent"})
    page = AuthPage(client)

    too_early = page.resend_otp()
    page.submit_signup("new@example.com", "secret1", "New User")
    resent = page.resend_otp()

    assert not too_early.ok
    assert too_early.toasts[0].message == "Start signing up first"
    assert resent.ok
    assert resent.toasts[0].message == "Code sent"
    emails = [backend.body(r)["email"] for r in backend.sent("POST", "/api/auth/send-otp")]
    assert emails == ["new@example.com", "new@example.com"]


def test_cancel_signup_forgets_pending_payload(client, backend):
    backend.add("POST", "/api/auth/send-otp", {"success": True})
    page = AuthPage(client)
    page.submit_signup("new@example.com", "secret1", "New User")

    result = page.cancel_signup()

    assert result.ok
    assert result.data["otp_sent"] is False
    assert client.auth_manager.get_pending_signup() is None


def test_direct_signup_skips_verification(client, backend):
    backend.add("POST", "/api/auth/signup", {"success": True, "token": "tok-11", "message": "Account created", "user_id": 11})

    result = AuthPage(client).signup("new@example.com", "secret1", "New User")

    assert result.ok
    assert result.redirect_to == "/products"
    assert result.toasts[0].message == "Account created"
    assert client.auth_manager.get_token() == "tok-11"
    assert backend.sent("POST", "/api/auth/send-otp") == []
    assert backend.sent("POST", "/api/auth/signin") == []


def test_account_refreshes_user(signed_in, backend):
    backend.add("GET", "/api/auth/verify-token", {"success": True, "valid": True})
    backend.add("GET", "/api/auth/me", {"success": True, "user": {"id": 7, "email": "ana@example.com", "full_name": "Ana C."}})

    result = AuthPage(signed_in).account()

    assert result.ok
    assert result.data["view"] == "Signed in as Ana C."
    assert signed_in.auth_manager.get_user().full_name == "Ana C."


def test_account_with_rejected_token_goes_to_login(signed_in, backend, redirects):
    backend.add("GET", "/api/auth/verify-token", (401, {"detail": "Token expired"}))

    result = AuthPage(signed_in).account()

    assert result.redirect_to == "/login"
    assert not signed_in.auth_manager.is_authenticated()
    assert redirects == ["/login"]
    assert backend.sent("GET", "/api/auth/me") == []


# Seller


def test_seller_dashboard_sends_pending_applicants_to_profile(signed_in, backend):
    backend.add("GET", "/api/seller/profile", (404, {"detail": "No seller profile"}))
    backend.add("GET", "/api/seller/application/status", {"status": "pending"})

    result = SellerDashboardPage(signed_in).load()

    assert result.redirect_to == "/profile"
    assert result.toasts[0].level == "warning"


def test_seller_dashboard_sections_fail_independently(signed_in, backend):
    backend.add("GET", "/api/seller/profile", {"seller": {"id": 1, "store_name": "Ana's Fruits"}})
    backend.add("GET", "/api/profile/statistics", (500, {"detail": "boom"}))
    backend.add(
        "GET",
        "/api/profile/transactions",
        {"success": True, "transactions": [{"order_number": "ORD-1", "amount": 99, "status": "delivered"}]},
    )

    result = SellerDashboardPage(signed_in).load()

    assert result.ok
    assert "Could not load statistics: boom" in result.view
    assert "#ORD-1" in result.view


def test_seller_pages_explain_forbidden(signed_in, backend):
    backend.add("GET", "/api/seller/orders", (403, {"detail": "Forbidden"}))

    result = SellerOrdersPage(signed_in).load()

    assert result.error_kind == "forbidden"
    assert result.error.startswith("This page requires seller access")
    assert signed_in.auth_manager.is_authenticated()


def test_unchanged_order_status_sends_nothing(signed_in, backend):
    backend.add("GET", "/api/seller/orders", {"success": True, "orders": [{"id": 5, "status": "shipped"}]})
    page = SellerOrdersPage(signed_in)
    page.load()

    unchanged = page.change_status(5, "shipped")
    unknown = page.change_status(5, "lost")

    assert unchanged.ok
    assert unchanged.toasts[0].message == "Status unchanged"
    assert not unknown.ok
    assert backend.sent("PATCH", "/api/seller/orders/5/status") == []


def test_seller_order_filters_ignore_unknown_values(signed_in, backend):
    backend.add("GET", "/api/seller/orders", {"success": True, "orders": []})
    page = SellerOrdersPage(signed_in)

    page.set_filters(status="shipped", date_range="this_week", search=" ORD-9 ", page=3)
    result = page.set_filters(status="bogus", date_range="nonsense")

    assert result.ok
    assert page.status == "shipped"
    assert page.date_range == "this_week"
    params = dict(backend.requests[-1].url.params)
    assert params == {"page": "1", "limit": "10", "status": "shipped", "date_range": "this_week", "search": "ORD-9"}
    assert dict(backend.requests[0].url.params)["page"] == "3"


def test_view_seller_order(signed_in, backend):
    backend.add(
        "GET",
        "/api/seller/orders/5",
        {"success": True, "order": {"id": 5, "order_number": "ORD-5", "status": "processing", "customer_email": "bo@x.com"}},
    )

    result = SellerOrdersPage(signed_in).view_order(5)

    assert result.ok
    assert result.page is None
    assert result.data["order"].order_number == "ORD-5"
    assert "Order #ORD-5" in result.data["view"]
    assert "Email: bo@x.com" in result.data["view"]


def test_product_tabs_are_counted(signed_in, backend):
    backend.add(
        "GET",
        "/api/seller/products",
        {
            "success": True,
            "products": [
                {"id": 1, "name": "Mango", "quantity_in_stock": 5},
                {"id": 2, "name": "Draft Rice", "quantity_in_stock": 5, "is_active": False},
                {"id": 3, "name": "Sold Out Eggs", "quantity_in_stock": 0},
            ],
            "total": 3,
        },
    )
    page = SellerProductsPage(signed_in)

    result = page.load()
    drafts = page.set_tab("draft")

    assert result.data["counts"] == {"all": 3, "active": 1, "draft": 1, "out_of_stock": 1}
    assert "Draft Rice" in drafts.view
    assert "Mango" not in drafts.view


def test_invalid_product_form_is_not_sent(signed_in, backend):
    page = SellerProductsPage(signed_in)

    result = page.save_product({"name": "", "category_id": 1, "price": -5, "quantity_in_stock": 1})

    assert not result.ok
    assert set(result.field_errors) == {"name", "price"}
    assert backend.requests == []


def test_edit_then_save_product(signed_in, backend):
    backend.add(
        "GET",
        "/api/products/id/8",
        {"success": True, "product": {"id": 8, "name": "Mango", "price": "45.50", "quantity_in_stock": 10, "category_id": 2}},
    )
    backend.add("PUT", "/api/seller/products/8", {"success": True, "product": {"id": 8, "name": "Ripe Mango"}})
    backend.add("GET", "/api/seller/products", {"success": True, "products": [], "total": 0})
    page = SellerProductsPage(signed_in)

    editing = page.edit_product(8)
    form = dict(editing.data["form"], name="Ripe Mango")
    saved = page.save_product(form)

    assert editing.ok
    assert editing.data["form"]["price"] == Decimal("45.50")
    assert editing.data["form"]["category_id"] == 2
    assert saved.ok
    assert saved.toasts[0].message == 'Product "Ripe Mango" updated'
    assert backend.body(backend.sent("PUT", "/api/seller/products/8")[0])["name"] == "Ripe Mango"
    assert page.editing is None


def test_product_saved_without_echo_still_reloads(signed_in, backend):
    backend.add("POST", "/api/seller/products", {"success": True, "message": "Product created"})
    backend.add("GET", "/api/seller/products", {"success": True, "products": [{"id": 9, "name": "Kale"}], "total": 1})

    result = SellerProductsPage(signed_in).save_product(
        {"name": "Kale", "category_id": 1, "price": 80, "quantity_in_stock": 4}
    )

    assert result.ok
    assert result.field_errors == {}
    assert result.toasts[0].message == 'Product "Kale" created'
    assert result.page.ok
    assert len(backend.sent("POST", "/api/seller/products")) == 1


def test_customers_page_ranks_and_contacts(signed_in, backend):
    backend.add(
        "GET",
        "/api/seller/orders",
        {
            "success": True,
            "orders": [
                {"id": 1, "user_id": 4, "customer_email": "john.doe@x.com", "total_amount": 50},
                {"id": 2, "user_id": 5, "customer_name": "Maria Santos", "total_amount": 80},
                {"id": 3, "user_id": 4, "total_amount": 60},
            ],
        },
    )
    page = CustomersPage(signed_in)

    result = page.load()
    contact = page.contact_customer(4)
    no_email = page.contact_customer(5)

    assert [c.name for c in result.data["customers"]] == ["John Doe", "Maria Santos"]
    assert dict(backend.requests[0].url.params)["limit"] == "1000"
    assert contact.data == {"mailto": "mailto:john.doe@x.com"}
    assert not no_email.ok


def test_payout_balance_counts_earning_orders_only():
    orders = [
        SellerOrder(id=1, status="delivered", seller_payout=90),
        SellerOrder(id=2, status="cancelled", seller_payout=50),
        SellerOrder(id=3, status="processing", seller_subtotal=100),
        SellerOrder(id=4, status="pending", seller_payout=70),
    ]

    assert payout_balance(orders) == Decimal("190")


def test_payout_page(signed_in, backend):
    backend.add("GET", "/api/seller/revenue", {"revenue": [{"revenue": 1000}, {"revenue": 500}]})
    backend.add(
        "GET", "/api/seller/orders/stats/summary", {"stats": {"total_orders": 3, "avg_order_value": 500}}
    )
    backend.add(
        "GET",
        "/api/seller/orders",
        {
            "success": True,
            "orders": [
                {"id": 1, "order_number": "ORD-1", "status": "delivered", "seller_payout": 90, "created_at": "2025-01-01T00:00:00Z"},
                {"id": 2, "order_number": "ORD-2", "status": "cancelled", "seller_payout": 50, "created_at": "2025-03-01T00:00:00Z"},
            ],
        },
    )

    result = PayoutPage(signed_in).load()

    info = result.data["info"]
    assert info["total_revenue"] == Decimal("1500")
    assert info["available_balance"] == Decimal("90")
    assert info["commission_rate"] == 10
    assert [o.order_number for o in result.data["transactions"]] == ["ORD-2", "ORD-1"]
    assert "Cancelled Order" in result.view
    assert "Sale Revenue" in result.view
