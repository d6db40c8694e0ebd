"""Derive a per-customer summary from the seller orders currently fetched."""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import BaseModel

from .models import CustomerAggregate, parse_datetime, to_decimal

logger = logging.getLogger(__name__)

UNKNOWN_CUSTOMER = "Unknown Customer"
UNKNOWN_INITIALS = "UC"

_EMAIL_SEPARATORS = re.compile(r"[._-]")


def _as_mapping(record: Any) -> Mapping[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump()
    if isinstance(record, Mapping):
        return record
    return {}


def _first_present(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def derive_display_name(email: Optional[str]) -> Optional[str]:
    """
    Turn an email local part into a display name.

    `john.doe@x.com` becomes `John Doe`. Pieces are split on `.`, `_` and `-`,
    empty pieces are dropped and only the first character of each piece is
    upper-cased. Returns None when nothing usable remains.
    """
    if not email or not isinstance(email, str):
        return None
    local = email.split("@", 1)[0]
    pieces = [piece for piece in _EMAIL_SEPARATORS.split(local) if piece]
    if not pieces:
        return None
    return " ".join(piece[0].upper() + piece[1:] for piece in pieces)


def derive_initials(name: Optional[str]) -> str:
    """
    Avatar initials for a display name.

    Two or more words give the first letters of the first and last words;
    a single word gives its first two characters.
    """
    if not name or name == UNKNOWN_CUSTOMER:
        return UNKNOWN_INITIALS
    words = name.split()
    if not words:
        return UNKNOWN_INITIALS
    if len(words) >= 2:
        return (words[0][0] + words[-1][0]).upper()
    return words[0][:2].upper()


def aggregate_customers(orders: Iterable[Any]) -> list[CustomerAggregate]:
    """
    Group order records by customer.

    Records without a customer identifier are skipped. Amounts that are
    missing or not numeric count as zero. The most recent order timestamp
    only moves forward on a strictly later, parsable value.

    Args:
        orders: Order records, as mappings or pydantic models

    Returns:
        Customers sorted by total spent, highest first; ties keep the order
        in which customers were first seen
    """
    customers: dict[Any, CustomerAggregate] = {}
    skipped = 0

    for raw in orders:
        record = _as_mapping(raw)
        customer_id = _first_present(record, "user_id", "customer_id")
        if customer_id is None:
            skipped += 1
            continue

        amount = to_decimal(_first_present(record, "total_amount", "total", "amount"))
        created_at = parse_datetime(record.get("created_at"))

        customer = customers.get(customer_id)
        if customer is None:
            email = record.get("customer_email") or None
            name = record.get("customer_name") or derive_display_name(email) or UNKNOWN_CUSTOMER
            customer = CustomerAggregate(
                id=customer_id,
                name=name,
                email=email,
                initials=derive_initials(name),
            )
            customers[customer_id] = customer

        customer.total_spent += amount
        customer.order_count += 1
        if created_at is not None and (customer.last_order is None or created_at > customer.last_order):
            customer.last_order = created_at

    if skipped:
        logger.debug(f"Skipped {skipped} orders without a customer id")

    # sorted() is stable, so equal totals keep first-seen order
    return sorted(customers.values(), key=lambda c: c.total_spent, reverse=True)


def filter_customers(customers: list[CustomerAggregate], term: Optional[str]) -> list[CustomerAggregate]:
    """Case-insensitive match on name, email or id."""
    if not term or not term.strip():
        return list(customers)
    needle = term.strip().lower()
    return [
        c
        for c in customers
        if needle in c.name.lower()
        or (c.email and needle in c.email.lower())
        or needle in str(c.id).lower()
    ]
