"""Display helpers shared by the views."""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from .models import parse_datetime, to_decimal

CURRENCY = "₱"

# Flat client-side estimate shown on the cart page; checkout uses backend totals
CART_TAX_RATE = Decimal("0.12")

MARKETPLACE_FEE_RATE = Decimal("0.10")
SELLER_SHARE = Decimal("1") - MARKETPLACE_FEE_RATE

# Seller orders that count towards the payout balance
EARNING_STATUSES = ("processing", "shipped", "delivered")

DELIVERY_OPTIONS: dict[str, dict[str, Any]] = {
    "standard": {"label": "Standard Delivery", "fee": Decimal("50"), "eta": "3-5 business days"},
    "express": {"label": "Express Delivery", "fee": Decimal("150"), "eta": "1-2 business days"},
    "same_day": {"label": "Same Day Delivery", "fee": Decimal("300"), "eta": "Today"},
    "pickup": {"label": "Store Pickup", "fee": Decimal("0"), "eta": "Ready in 1 day"},
}

PAYMENT_METHODS: dict[str, str] = {
    "gcash": "GCash",
    "paymaya": "PayMaya",
    "cash_on_delivery": "Cash on Delivery",
    "credit_card": "Credit Card",
    "debit_card": "Debit Card",
    "bank_transfer": "Bank Transfer",
}

_CENTS = Decimal("0.01")


def format_peso(value: Any, grouping: bool = False) -> str:
    """
    Format an amount as pesos with two decimals.

    Args:
        value: Anything `to_decimal` accepts
        grouping: Insert thousands separators (₱1,200.00)
    """
    amount = to_decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)
    if grouping:
        return f"{CURRENCY}{amount:,.2f}"
    return f"{CURRENCY}{amount:.2f}"


def format_date(value: Any, with_time: bool = False) -> str:
    """`Jan 5, 2025`, or `N/A` when the value cannot be parsed."""
    if isinstance(value, date) and not isinstance(value, datetime):
        parsed: Optional[datetime] = datetime(value.year, value.month, value.day)
    else:
        parsed = parse_datetime(value)
    if parsed is None:
        return "N/A"
    text = f"{parsed:%b} {parsed.day}, {parsed.year}"
    if with_time:
        text += f" {parsed:%H:%M}"
    return text


def format_status(status: Optional[str]) -> str:
    """`same_day` -> `Same Day`."""
    if not status:
        return "Unknown"
    return " ".join(word.capitalize() for word in status.replace("-", "_").split("_") if word)


def format_payment_method(code: Optional[str]) -> str:
    if not code:
        return "N/A"
    return PAYMENT_METHODS.get(code, format_status(code))


def format_delivery_option(code: Optional[str]) -> str:
    if not code:
        return "Standard Delivery"
    option = DELIVERY_OPTIONS.get(code)
    return option["label"] if option else format_status(code)


def delivery_fee(code: str) -> Decimal:
    option = DELIVERY_OPTIONS.get(code)
    return option["fee"] if option else Decimal("0")


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def slugify(text: str) -> str:
    """Lower-case, hyphen-separated slug used for new product forms."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


def next_payout_date(today: Optional[date] = None) -> date:
    """Payouts run on the 15th of the following month."""
    today = today or date.today()
    if today.month == 12:
        return date(today.year + 1, 1, 15)
    return date(today.year, today.month + 1, 15)
