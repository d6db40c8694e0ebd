"""Shopping cart page."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ..formatting import CART_TAX_RATE
from ..models import ZERO, CartItem
from ..views import render_cart
from .base import CHECKOUT_URL, ActionResult, Page, Redirect


class CartPage(Page):
    name = "cart"

    def fetch(self) -> dict[str, Any]:
        cart = self.client.get_cart()
        subtotal = sum((item.subtotal for item in cart.items), ZERO)
        tax = (subtotal * CART_TAX_RATE).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return {
            "cart": cart,
            "subtotal": subtotal,
            "tax": tax,
            "total": subtotal + tax,
            "can_checkout": bool(cart.items),
        }

    def render(self, data: dict[str, Any]) -> str:
        return render_cart(data["cart"], data["subtotal"], data["tax"], data["total"])

    def _item(self, item_id: int) -> CartItem:
        if self.last_data:
            for item in self.last_data["cart"].items:
                if item.id == item_id:
                    return item
        raise ValueError("Item is no longer in your cart")

    def increase(self, item_id: int) -> ActionResult:
        def do_increase() -> str:
            item = self._item(item_id)
            return self.client.update_cart_item(item_id, item.quantity + 1)

        return self.run_action(f"quantity:{item_id}", do_increase, success="Cart updated")

    def decrease(self, item_id: int) -> ActionResult:
        """Lower the quantity by one; at quantity 1 the line is removed."""

        def do_decrease() -> str:
            item = self._item(item_id)
            if item.quantity <= 1:
                self.client.remove_cart_item(item_id)
                return "Item removed from cart"
            self.client.update_cart_item(item_id, item.quantity - 1)
            return "Cart updated"

        return self.run_action(f"quantity:{item_id}", do_decrease, success=lambda msg: msg)

    def remove(self, item_id: int) -> ActionResult:
        return self.run_action(
            f"remove:{item_id}", lambda: self.client.remove_cart_item(item_id), success="Item removed from cart"
        )

    def clear(self) -> ActionResult:
        return self.run_action("clear", self.client.clear_cart, success="Cart cleared")

    def checkout(self) -> ActionResult:
        def go_to_checkout() -> None:
            if not self.last_data or not self.last_data["can_checkout"]:
                raise ValueError("Your cart is empty")
            raise Redirect(CHECKOUT_URL)

        return self.run_action("checkout", go_to_checkout)
