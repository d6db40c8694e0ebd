"""Seller pages: dashboard, orders, products, customers and payouts."""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional

from ..customers import aggregate_customers, filter_customers
from ..errors import MinimallError, UnauthenticatedError
from ..formatting import EARNING_STATUSES, MARKETPLACE_FEE_RATE, SELLER_SHARE, next_payout_date
from ..models import ZERO, Product, ProductForm, SellerOrder
from ..views import (
    render_customers,
    render_payout,
    render_seller_dashboard,
    render_seller_order,
    render_seller_orders,
    render_seller_products,
)
from .base import PROFILE_URL, ActionResult, Page, PageResult, Redirect, Toast

logger = logging.getLogger(__name__)

SELLER_ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
DATE_RANGES = ("all", "today", "this_week", "this_month", "last_week")
PRODUCT_TABS = ("all", "active", "draft", "out_of_stock")

# Orders fetched to build the customer list
CUSTOMER_ORDER_LIMIT = 1000
PAYOUT_REVENUE_DAYS = 365
PAYOUT_HISTORY_LIMIT = 50

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SellerPage(Page):
    """Seller-only page. A 403 means the account is not an approved seller."""

    def describe_error(self, error: MinimallError) -> str:
        if error.kind == "forbidden":
            return "This page requires seller access. Your account may not be approved as a seller yet."
        return super().describe_error(error)


def _section(func, label: str) -> tuple[Any, Optional[str]]:
    """Load an independent page section; its failure does not fail the page."""
    try:
        return func(), None
    except UnauthenticatedError:
        raise
    except MinimallError as e:
        logger.warning(f"Could not load {label}: {e.message}")
        return None, e.message


class SellerDashboardPage(SellerPage):
    name = "seller_dashboard"

    def fetch(self) -> dict[str, Any]:
        profile = self.client.seller_profile()
        if profile is None:
            application = self.client.application_status()
            status = application.status if application else None
            if status == "approved":
                logger.info("Application approved, creating seller profile")
                profile = self.client.create_seller_profile()
            elif status == "pending":
                raise Redirect(PROFILE_URL, "Your seller application is still under review.", "warning")
            elif status == "rejected":
                raise Redirect(PROFILE_URL, "Your seller application was rejected.", "warning")
            else:
                raise Redirect(PROFILE_URL, "Apply for a seller account first.", "warning")

        statistics, statistics_error = _section(self.client.profile_statistics, "statistics")
        transactions, transactions_error = _section(
            lambda: self.client.profile_transactions(limit=5), "transactions"
        )
        return {
            "profile": profile,
            "statistics": statistics,
            "statistics_error": statistics_error,
            "transactions": transactions,
            "transactions_error": transactions_error,
        }

    def render(self, data: dict[str, Any]) -> str:
        return render_seller_dashboard(
            data["profile"],
            data["statistics"],
            data["statistics_error"],
            data["transactions"],
            data["transactions_error"],
        )


class SellerOrdersPage(SellerPage):
    name = "seller_orders"

    def __init__(self, client, per_page: int = 10) -> None:
        super().__init__(client)
        self.per_page = per_page
        self.page = 1
        self.status = "all"
        self.date_range = "all"
        self.search: Optional[str] = None

    def fetch(self) -> dict[str, Any]:
        order_list = self.client.seller_orders(
            page=self.page,
            limit=self.per_page,
            status=self.status,
            date_range=self.date_range,
            search=self.search,
        )
        return {"order_list": order_list}

    def render(self, data: dict[str, Any]) -> str:
        return render_seller_orders(data["order_list"], self.status, self.date_range, self.search)

    def set_filters(
        self,
        status: Optional[str] = None,
        date_range: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
    ) -> PageResult:
        """Apply filters and load `page`. Unknown status and date range values are ignored."""
        if status is not None and (status == "all" or status in SELLER_ORDER_STATUSES):
            self.status = status
        if date_range is not None and date_range in DATE_RANGES:
            self.date_range = date_range
        if search is not None:
            self.search = search.strip() or None
        self.page = max(1, page)
        return self.load()

    def _current_status(self, order_id: int) -> Optional[str]:
        if self.last_data:
            for order in self.last_data["order_list"].orders:
                if order.id == order_id:
                    return order.status
        return None

    def change_status(
        self,
        order_id: int,
        new_status: str,
        tracking_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ActionResult:
        """
        Move an order to `new_status`.

        Choosing the status the order already has does nothing. A tracking
        number is passed along for `shipped` and notes for `cancelled`.
        """
        key = f"status:{order_id}"
        if new_status not in SELLER_ORDER_STATUSES:
            return ActionResult(
                action=key, ok=False, error_kind="validation", toasts=[Toast(level="warning", message=f"Unknown status: {new_status}")]
            )
        if self._current_status(order_id) == new_status:
            return ActionResult(action=key, ok=True, toasts=[Toast(level="info", message="Status unchanged")])

        return self.run_action(
            key,
            lambda: self.client.update_order_status(order_id, new_status, tracking_number, notes),
            success=lambda msg: msg,
        )

    def view_order(self, order_id: int) -> ActionResult:
        def do_view() -> dict[str, Any]:
            order = self.client.seller_order(order_id)
            return {"order": order, "view": render_seller_order(order)}

        return self.run_action(f"view:{order_id}", do_view, success=f"Order {order_id}", reload=False)


def product_form_values(product: Product) -> dict[str, Any]:
    """Form values for editing an existing product."""
    return {
        "name": product.name,
        "category_id": product.category_id,
        "price": product.price,
        "quantity_in_stock": product.quantity_in_stock,
        "sku": product.sku,
        "short_description": product.short_description,
        "description": product.description,
        "compare_at_price": product.compare_at_price,
        "weight": product.weight,
        "image_url": product.image_url,
        "is_featured": product.is_featured,
        "is_active": product.is_active,
    }


class SellerProductsPage(SellerPage):
    """Seller's products with search, pagination and status tabs counted client-side."""

    name = "seller_products"

    def __init__(self, client, per_page: int = 10) -> None:
        super().__init__(client)
        self.per_page = per_page
        self.page = 1
        self.search: Optional[str] = None
        self.tab = "all"
        self.editing: Optional[int] = None

    def fetch(self) -> dict[str, Any]:
        result = self.client.seller_products(page=self.page, limit=self.per_page, search=self.search)
        counts = {tab: 0 for tab in PRODUCT_TABS}
        counts["all"] = len(result.products)
        for product in result.products:
            counts[product.status] += 1
        return {
            "products": result.products,
            "counts": counts,
            "page": self.page,
            "total_pages": max(1, math.ceil(result.total / self.per_page)),
        }

    def visible_products(self, data: dict[str, Any]) -> list[Product]:
        if self.tab == "all":
            return list(data["products"])
        return [p for p in data["products"] if p.status == self.tab]

    def render(self, data: dict[str, Any]) -> str:
        return render_seller_products(
            self.visible_products(data), self.tab, data["counts"], data["page"], data["total_pages"]
        )

    def set_tab(self, tab: str) -> PageResult:
        if tab in PRODUCT_TABS:
            self.tab = tab
        return self.rerender()

    def set_filters(self, search: Optional[str] = None, tab: Optional[str] = None, page: int = 1) -> PageResult:
        """Search the backend and load `page`; an unknown tab is ignored."""
        self.search = search.strip() if search and search.strip() else None
        if tab in PRODUCT_TABS:
            self.tab = tab
        self.page = max(1, page)
        return self.load()

    def edit_product(self, product_id: int) -> ActionResult:
        def do_edit() -> dict[str, Any]:
            product = self.client.get_product(product_id)
            self.editing = product_id
            return {"product_id": product_id, "form": product_form_values(product)}

        return self.run_action(f"edit:{product_id}", do_edit, success="Editing product", reload=False)

    def save_product(self, values: dict[str, Any], product_id: Optional[int] = None) -> ActionResult:
        """Create a product, or update `product_id` (or the one being edited)."""
        target = product_id if product_id is not None else self.editing

        def do_save() -> str:
            form = ProductForm(**values)
            if target is None:
                product = self.client.create_product(form)
                return f'Product "{product.name if product else form.name}" created'
            product = self.client.update_product(target, form)
            self.editing = None
            return f'Product "{product.name if product else form.name}" updated'

        return self.run_action(f"save:{target or 'new'}", do_save, success=lambda msg: msg)

    def delete_product(self, product_id: int) -> ActionResult:
        return self.run_action(
            f"delete:{product_id}", lambda: self.client.delete_product(product_id), success="Product deleted"
        )


class CustomersPage(SellerPage):
    """Customers derived from the seller's orders."""

    name = "customers"

    def __init__(self, client) -> None:
        super().__init__(client)
        self.search: Optional[str] = None

    def fetch(self) -> dict[str, Any]:
        order_list = self.client.seller_orders(page=1, limit=CUSTOMER_ORDER_LIMIT)
        return {"customers": aggregate_customers(order_list.orders)}

    def render(self, data: dict[str, Any]) -> str:
        customers = filter_customers(data["customers"], self.search)
        return render_customers(customers, len(data["customers"]), self.search)

    def search_customers(self, term: Optional[str]) -> PageResult:
        self.search = term.strip() if term and term.strip() else None
        return self.rerender()

    def contact_customer(self, customer_id: Any) -> ActionResult:
        key = f"contact:{customer_id}"
        customers = self.last_data["customers"] if self.last_data else []
        customer = next((c for c in customers if str(c.id) == str(customer_id)), None)
        if customer is None:
            return ActionResult(action=key, ok=False, toasts=[Toast(level="warning", message="Customer not found")])
        if not customer.email:
            return ActionResult(
                action=key, ok=False, toasts=[Toast(level="warning", message="No email address for this customer")]
            )
        return ActionResult(
            action=key,
            ok=True,
            toasts=[Toast(level="info", message=f"Opening email to {customer.email}")],
            data={"mailto": f"mailto:{customer.email}"},
        )


def payout_balance(orders: list[SellerOrder]) -> Any:
    """Sum of payouts for orders that are processing, shipped or delivered."""
    return sum((o.payout_amount for o in orders if o.status in EARNING_STATUSES), ZERO)


class PayoutPage(SellerPage):
    name = "payout"

    def fetch(self) -> dict[str, Any]:
        revenue = self.client.seller_revenue(days=PAYOUT_REVENUE_DAYS)
        stats = self.client.seller_order_stats()

        if revenue:
            total_revenue = sum((point.revenue for point in revenue), ZERO)
        else:
            total_revenue = stats.total_revenue

        info = {
            "available_balance": total_revenue * SELLER_SHARE,
            "total_revenue": total_revenue,
            "total_orders": stats.total_orders,
            "average_order_value": stats.avg_order_value,
            "next_payout_date": next_payout_date(),
            "commission_rate": int(MARKETPLACE_FEE_RATE * 100),
        }

        order_list, transactions_error = _section(
            lambda: self.client.seller_orders(page=1, limit=PAYOUT_HISTORY_LIMIT, status="all"),
            "transaction history",
        )
        transactions: list[SellerOrder] = []
        if order_list is not None:
            transactions = sorted(order_list.orders, key=lambda o: o.created_at or _EPOCH, reverse=True)
            info["available_balance"] = payout_balance(order_list.orders)

        return {"info": info, "transactions": transactions, "transactions_error": transactions_error}

    def render(self, data: dict[str, Any]) -> str:
        return render_payout(data["info"], data["transactions"], data["transactions_error"])
