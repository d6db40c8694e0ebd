"""Customer order history and order details."""

from typing import Any, Optional

from ..models import Order
from ..views import render_order_details, render_order_history
from .base import ORDERS_URL, Page, PageResult, Redirect

PENDING_STATUSES = ("pending", "processing", "shipped")
COMPLETED_STATUSES = ("delivered", "completed")


def filter_orders(orders: list[Order], term: Optional[str]) -> list[Order]:
    """Match on order number or status, case-insensitively."""
    if not term or not term.strip():
        return list(orders)
    needle = term.strip().lower()
    return [o for o in orders if needle in o.order_number.lower() or needle in o.status.lower()]


class OrderHistoryPage(Page):
    name = "order_history"

    def __init__(self, client) -> None:
        super().__init__(client)
        self.search: Optional[str] = None

    def fetch(self) -> dict[str, Any]:
        return {"orders": self.client.list_orders()}

    def render(self, data: dict[str, Any]) -> str:
        orders = filter_orders(data["orders"], self.search)
        pending = [o for o in orders if o.status in PENDING_STATUSES]
        completed = [o for o in orders if o.status in COMPLETED_STATUSES]
        return render_order_history(pending, completed, self.search)

    def search_orders(self, term: Optional[str]) -> PageResult:
        """Filter the loaded orders without calling the backend."""
        self.search = term.strip() if term and term.strip() else None
        return self.rerender()


class OrderDetailsPage(Page):
    name = "order_details"
    not_found_redirect = ORDERS_URL

    def __init__(self, client, order_id: Optional[str] = None) -> None:
        super().__init__(client)
        self.order_id = order_id

    def fetch(self) -> dict[str, Any]:
        if not self.order_id:
            raise Redirect(ORDERS_URL, "No order specified", "warning")
        return {"order": self.client.get_order(self.order_id)}

    def render(self, data: dict[str, Any]) -> str:
        return render_order_details(data["order"])

    def describe_error(self, error) -> str:
        if error.kind == "not_found":
            return "Order not found"
        return super().describe_error(error)
