"""Data models for Minimal Mall entities."""

import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce a backend amount to Decimal. Anything non-numeric is zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, float) and not math.isfinite(value):
        return ZERO
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a backend timestamp.

    Accepts datetime objects, ISO 8601 strings (with or without `Z`) and
    `YYYY-MM-DD HH:MM:SS`. Naive values are taken as UTC so that every
    parsed value is comparable. Returns None when the value cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.strptime(text.split("+")[0].strip(), "%Y-%m-%d %H:%M:%S")
            except ValueError:
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class LenientModel(BaseModel):
    """Base model that coerces amounts and timestamps instead of rejecting them."""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, value: Any, info) -> Any:
        field = cls.model_fields.get(info.field_name)
        if field is None:
            return value
        annotation = field.annotation
        if annotation is Decimal:
            return to_decimal(value)
        if annotation == Optional[Decimal]:
            return None if value in (None, "") else to_decimal(value)
        if annotation == Optional[datetime]:
            return parse_datetime(value)
        return value


class AuthCredentials(BaseModel):
    """Authentication credentials."""

    email: str
    password: str


class SessionData(BaseModel):
    """Client-side persisted state. The token lives under `access_token` only."""

    access_token: Optional[str] = Field(None, description="Bearer token")
    user: Optional[dict[str, Any]] = Field(None, description="Cached user profile")
    pending_signup: Optional[dict[str, Any]] = Field(
        None, description="Signup payload held between OTP send and OTP verify"
    )
    last_order: Optional[dict[str, Any]] = Field(
        None, description="Order confirmation handed from checkout to the success page"
    )


class UserProfile(BaseModel):
    """Signed-in user."""

    id: Optional[Any] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str = "customer"
    is_seller: bool = False


class Category(BaseModel):
    """Catalog category."""

    id: int
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None


class Product(LenientModel):
    """Catalog entry."""

    id: int = Field(description="Product ID")
    name: str = Field(description="Product name")
    slug: Optional[str] = None
    price: Decimal = Field(default=ZERO, description="Price in PHP")
    compare_at_price: Optional[Decimal] = Field(None, description="Original price if discounted")
    quantity_in_stock: int = 0
    is_active: bool = True
    is_featured: bool = False
    category_id: Optional[int] = None
    sku: Optional[str] = None
    short_description: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[Decimal] = None
    image_url: Optional[str] = None

    @property
    def status(self) -> str:
        if not self.is_active:
            return "draft"
        if self.quantity_in_stock == 0:
            return "out_of_stock"
        return "active"


class ProductList(BaseModel):
    products: list[Product] = Field(default_factory=list)
    total: int = 0


class ProductForm(BaseModel):
    """Seller product create/update payload."""

    name: str = Field(min_length=1)
    category_id: int
    price: Decimal = Field(ge=0)
    quantity_in_stock: int = Field(ge=0)
    sku: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    compare_at_price: Optional[Decimal] = Field(None, ge=0)
    weight: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None
    is_featured: bool = False
    is_active: bool = True


class CartItem(LenientModel):
    """Line in the shopping cart. `price_at_time` is the backend's price snapshot."""

    id: int = Field(description="Cart item ID")
    product_id: Optional[int] = None
    product_name: str = "Product"
    quantity: int = Field(default=1, ge=0)
    price_at_time: Decimal = ZERO
    variant_name: Optional[str] = None
    variant_value: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return self.price_at_time * self.quantity


class Cart(LenientModel):
    """Shopping cart as last returned by the backend."""

    items: list[CartItem] = Field(default_factory=list)
    total: Decimal = ZERO
    item_count: int = 0


class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: Optional[str] = None


class OrderItem(LenientModel):
    product_name: str = "Product"
    quantity: int = 1
    price: Decimal = ZERO
    subtotal: Decimal = ZERO
    variant_name: Optional[str] = None
    variant_value: Optional[str] = None


class Order(LenientModel):
    """Customer order."""

    id: str = Field(description="Order ID")
    order_number: str = Field(description="Human-readable order number")
    status: str = Field(default="pending", description="Order status")
    created_at: Optional[datetime] = None
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    shipping_fee: Decimal = ZERO
    total: Decimal = ZERO
    items: list[OrderItem] = Field(default_factory=list)
    shipping_address: Optional[ShippingAddress] = None
    user_email: Optional[str] = None
    delivery_option: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    tracking_number: Optional[str] = None


class SellerOrder(LenientModel):
    """Order row as seen by a seller."""

    id: int
    order_number: Optional[str] = None
    status: str = "pending"
    user_id: Optional[Any] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    shipping_full_name: Optional[str] = None
    item_count: int = 0
    total_amount: Decimal = ZERO
    seller_subtotal: Optional[Decimal] = None
    seller_payout: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    items: list[OrderItem] = Field(default_factory=list)

    @property
    def display_customer(self) -> str:
        return self.customer_name or self.shipping_full_name or self.customer_email or "N/A"

    @property
    def display_amount(self) -> Decimal:
        return self.seller_subtotal or self.total_amount or self.seller_payout or ZERO

    @property
    def payout_amount(self) -> Decimal:
        return self.seller_payout or self.seller_subtotal or ZERO


class Pagination(BaseModel):
    current_page: int = 1
    per_page: int = 10
    total_items: int = 0
    total_pages: int = 1


class SellerStats(LenientModel):
    total_orders: int = 0
    pending_orders: int = 0
    total_revenue: Decimal = ZERO
    avg_order_value: Decimal = ZERO


class SellerOrderList(BaseModel):
    orders: list[SellerOrder] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    stats: Optional[SellerStats] = None


class CheckoutSummary(LenientModel):
    """Totals computed by the backend for the current cart and delivery option."""

    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    shipping_fee: Decimal = ZERO
    marketplace_fee: Decimal = ZERO
    total: Optional[Decimal] = None
    item_count: int = 0

    @property
    def components_total(self) -> Decimal:
        return self.subtotal + self.tax + self.shipping_fee + self.marketplace_fee

    @model_validator(mode="after")
    def _default_total(self) -> "CheckoutSummary":
        if self.total is None:
            self.total = self.components_total
        return self


class OrderConfirmation(LenientModel):
    order_id: Optional[Any] = None
    order_number: str
    total: Decimal = ZERO
    payment_method: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None


class Transaction(LenientModel):
    order_id: Optional[Any] = None
    order_number: Optional[str] = None
    amount: Decimal = ZERO
    status: str = "pending"
    created_at: Optional[datetime] = None


class ProfileDashboard(BaseModel):
    profile: UserProfile
    statistics: dict[str, Any] = Field(default_factory=dict)
    recent_transactions: list[Transaction] = Field(default_factory=list)


class SellerApplication(LenientModel):
    status: str = Field(description="pending, approved or rejected")
    store_name: Optional[str] = None
    business_type: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None


class SellerProfile(BaseModel):
    id: Optional[Any] = None
    store_name: Optional[str] = None
    business_type: Optional[str] = None
    is_verified: bool = False


class RevenuePoint(LenientModel):
    date: Optional[str] = None
    revenue: Decimal = ZERO
    orders: int = 0


class CustomerAggregate(BaseModel):
    """Per-customer summary derived from the currently fetched seller orders."""

    id: Any
    name: str
    email: Optional[str] = None
    total_spent: Decimal = ZERO
    order_count: int = 0
    last_order: Optional[datetime] = None
    initials: str = "UC"
