"""Checkout and order confirmation pages."""

import logging
from typing import Any, Optional

from ..formatting import DELIVERY_OPTIONS, PAYMENT_METHODS, format_payment_method
from ..models import OrderConfirmation, ShippingAddress
from ..views import render_checkout, render_order_success
from .base import CART_URL, ORDER_SUCCESS_URL, ORDERS_URL, ActionResult, Page, PageResult, Redirect, Toast

logger = logging.getLogger(__name__)


class CheckoutPage(Page):
    """Shipping address, delivery option and payment method, then purchase."""

    name = "checkout"

    def __init__(self, client) -> None:
        super().__init__(client)
        self.shipping_address: Optional[ShippingAddress] = None
        self.delivery_option = "standard"
        self.payment_method: Optional[str] = None

    def fetch(self) -> dict[str, Any]:
        summary = self.client.calculate_total(self.delivery_option)
        if summary.item_count == 0 and not summary.subtotal:
            raise Redirect(CART_URL, "Your cart is empty", "warning")
        return {
            "summary": summary,
            "shipping_address": self.shipping_address,
            "delivery_option": self.delivery_option,
            "payment_method": self.payment_method,
            "can_purchase": self.shipping_address is not None and self.payment_method is not None,
        }

    def render(self, data: dict[str, Any]) -> str:
        return render_checkout(
            data["summary"], self.shipping_address, self.delivery_option, self.payment_method
        )

    def _refresh_choices(self) -> PageResult:
        if self.last_data is not None:
            self.last_data.update(
                shipping_address=self.shipping_address,
                payment_method=self.payment_method,
                can_purchase=self.shipping_address is not None and self.payment_method is not None,
            )
        return self.rerender()

    def set_shipping_address(self, **fields: Any) -> ActionResult:
        """Validate and keep the shipping address; nothing is sent until purchase."""

        def do_set() -> str:
            self.shipping_address = ShippingAddress(**fields)
            return "Shipping address saved"

        result = self.run_action("shipping_address", do_set, reload=False)
        if result.ok:
            result.page = self._refresh_choices()
        return result

    def select_delivery(self, option: str) -> ActionResult:
        """Change the delivery option; totals are fetched again for it.

        The previous option is restored when the totals cannot be reloaded.
        """
        previous = self.delivery_option

        def do_select() -> str:
            if option not in DELIVERY_OPTIONS:
                raise ValueError(f"Unknown delivery option: {option}")
            self.delivery_option = option
            return f"{DELIVERY_OPTIONS[option]['label']} selected"

        result = self.run_action("delivery", do_select)
        if result.page is not None and not result.page.ok:
            self.delivery_option = previous
            result.ok = False
            result.toasts = [Toast(level="error", message=result.page.error or "Could not update delivery option")]
        return result

    def select_payment(self, method: str) -> ActionResult:
        def do_select() -> str:
            if method not in PAYMENT_METHODS:
                raise ValueError(f"Unknown payment method: {method}")
            self.payment_method = method
            return f"{format_payment_method(method)} selected"

        result = self.run_action("payment", do_select, reload=False)
        if result.ok:
            result.page = self._refresh_choices()
        return result

    def purchase(self, customer_notes: Optional[str] = None) -> ActionResult:
        """
        Place the order.

        The confirmation is kept in the session for the success page, and the
        result redirects there.
        """

        def do_purchase() -> None:
            if self.shipping_address is None:
                raise ValueError("Please enter shipping address")
            if not self.payment_method:
                raise ValueError("Please select payment method")

            confirmation = self.client.create_order(
                self.payment_method, self.shipping_address, self.delivery_option, customer_notes
            )
            self.client.auth_manager.set_last_order(confirmation.model_dump(mode="json"))
            logger.info(f"Order {confirmation.order_number} placed")
            raise Redirect(
                f"{ORDER_SUCCESS_URL}?order={confirmation.order_number}", "Order placed successfully!", "success"
            )

        return self.run_action("purchase", do_purchase)


class OrderSuccessPage(Page):
    """Shows the confirmation handed over by checkout, once."""

    name = "order_success"

    def fetch(self) -> dict[str, Any]:
        stored = self.client.auth_manager.pop_last_order()
        confirmation = OrderConfirmation(**stored) if stored else None
        return {"confirmation": confirmation}

    def render(self, data: dict[str, Any]) -> str:
        return render_order_success(data["confirmation"])

    def load(self) -> PageResult:
        result = super().load()
        if result.ok and result.data.get("confirmation") is None:
            result.redirect_to = ORDERS_URL
        return result
