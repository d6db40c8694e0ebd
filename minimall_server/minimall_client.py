"""Minimal Mall API client."""

import logging
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from .api_client import ApiClient, ensure_success
from .auth import AuthManager
from .config import Settings
from .errors import NotFoundError, RequestFailedError, UnauthenticatedError
from .models import (
    AuthCredentials,
    Cart,
    CartItem,
    Category,
    CheckoutSummary,
    Order,
    OrderConfirmation,
    OrderItem,
    Pagination,
    Product,
    ProductForm,
    ProductList,
    ProfileDashboard,
    RevenuePoint,
    SellerApplication,
    SellerOrder,
    SellerOrderList,
    SellerProfile,
    SellerStats,
    ShippingAddress,
    Transaction,
    UserProfile,
    ZERO,
)

logger = logging.getLogger(__name__)


class MinimallClient:
    """Client for the Minimal Mall storefront backend."""

    def __init__(self, api: ApiClient) -> None:
        """
        Initialize the client.

        Args:
            api: Configured API access layer
        """
        self.api = api
        self.auth_manager = api.auth_manager

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        on_unauthenticated: Optional[Callable[[str], None]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "MinimallClient":
        auth_manager = AuthManager(settings.session_file)
        api = ApiClient(
            auth_manager,
            base_url=settings.api_url,
            login_url=settings.login_url,
            timeout=settings.timeout,
            on_unauthenticated=on_unauthenticated,
            transport=transport,
        )
        return cls(api)

    @property
    def login_url(self) -> str:
        return self.api.login_url

    # Auth

    def signin(self, credentials: AuthCredentials) -> Optional[UserProfile]:
        """
        Sign in with email and password and store the issued token.

        Returns:
            The signed-in user's profile, if the backend sent one

        Raises:
            RequestFailedError: If the backend answered without a token
        """
        logger.info(f"Signing in as {credentials.email}")
        data = self.api.post(
            "/api/auth/signin",
            json={"email": credentials.email, "password": credentials.password},
            authenticated=False,
        )
        ensure_success(data, "Sign in failed")
        token = data.get("token") or data.get("access_token")
        if not token:
            raise RequestFailedError(data.get("message") or "Sign in failed")

        self.auth_manager.save_token(token, data.get("user"))
        return self._parse_user(data.get("user"))

    def signup(
        self, email: str, password: str, full_name: str, phone: Optional[str] = None
    ) -> dict[str, Any]:
        """
        Create a customer account. The returned token, if any, is stored.

        Returns:
            Dict with `message` and `user_id`
        """
        logger.info(f"Signing up {email}")
        data = self.api.post(
            "/api/auth/signup",
            json={
                "email": email,
                "password": password,
                "full_name": full_name,
                "phone": phone,
                "role": "customer",
            },
            authenticated=False,
        )
        ensure_success(data, "Sign up failed")
        token = data.get("token") or data.get("access_token")
        if token:
            self.auth_manager.save_token(token, data.get("user"))
        return {"message": data.get("message") or "Account created", "user_id": data.get("user_id")}

    def send_otp(self, email: str) -> str:
        data = self.api.post("/api/auth/send-otp", json={"email": email}, authenticated=False)
        ensure_success(data, "Could not send verification code")
        return data.get("message") or f"Verification code sent to {email}"

    def verify_otp(self, email: str, otp: str) -> bool:
        """
        Verify a one-time passcode.

        A token returned by the backend is stored straight away.

        Returns:
            True if the backend issued a token with the verification
        """
        data = self.api.post(
            "/api/auth/verify-otp", json={"email": email, "otp": otp}, authenticated=False
        )
        ensure_success(data, "Invalid verification code")
        token = data.get("token") or data.get("access_token")
        if token:
            self.auth_manager.save_token(token, data.get("user"))
            return True
        return False

    def get_current_user(self) -> UserProfile:
        data = self.api.get("/api/auth/me")
        ensure_success(data, "Failed to get user profile")
        user = data.get("user", data)
        self.auth_manager.save_user(user)
        return UserProfile(**user)

    def verify_token(self) -> bool:
        """Ask the backend whether the stored token is still accepted."""
        try:
            self.api.get("/api/auth/verify-token")
        except UnauthenticatedError:
            return False
        return True

    def signout(self) -> None:
        """Forget the session. The backend keeps no server-side session to end."""
        self.auth_manager.clear_session()

    # Catalog

    def list_products(
        self,
        limit: int = 20,
        offset: int = 0,
        category_id: Optional[int] = None,
        is_featured: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> ProductList:
        params = {
            "limit": limit,
            "offset": offset or None,
            "category_id": category_id,
            "is_featured": None if is_featured is None else str(is_featured).lower(),
            "search": search,
        }
        data = self.api.get("/api/products", params=params, authenticated=False)
        ensure_success(data, "Failed to fetch products")
        products = self._parse_products(data.get("products", []))
        return ProductList(products=products, total=data.get("total", len(products)))

    def featured_products(self, limit: int = 8) -> list[Product]:
        data = self.api.get("/api/products/featured", params={"limit": limit}, authenticated=False)
        ensure_success(data, "Failed to fetch featured products")
        return self._parse_products(data.get("products", []))

    def get_product(self, product_id: int) -> Product:
        data = self.api.get(f"/api/products/id/{product_id}", authenticated=False)
        ensure_success(data, "Product not found")
        return Product(**data.get("product", data))

    def get_product_by_slug(self, slug: str) -> Product:
        data = self.api.get(f"/api/products/{slug}", authenticated=False)
        ensure_success(data, "Product not found")
        return Product(**data.get("product", data))

    def search_products(self, query: str, limit: int = 20) -> list[Product]:
        """
        Search the catalog.

        Raises:
            ValueError: If the query is empty
        """
        if not query or not query.strip():
            raise ValueError("Search query must not be empty")
        data = self.api.get(
            "/api/products/search", params={"q": query.strip(), "limit": limit}, authenticated=False
        )
        ensure_success(data, "Search failed")
        return self._parse_products(data.get("products", []))

    def products_by_tag(self, tag: str, limit: int = 20) -> list[Product]:
        data = self.api.get(f"/api/products/tag/{tag}", params={"limit": limit}, authenticated=False)
        ensure_success(data, "Failed to fetch products by tag")
        return self._parse_products(data.get("products", []))

    def list_categories(self) -> list[Category]:
        data = self.api.get("/api/categories", authenticated=False)
        ensure_success(data, "Failed to fetch categories")
        categories = []
        for item in data.get("categories", []):
            try:
                categories.append(Category(**item))
            except (ValidationError, TypeError) as e:
                logger.warning(f"Failed to parse category: {e}")
        return categories

    def get_category(self, slug: str) -> Category:
        data = self.api.get(f"/api/categories/{slug}", authenticated=False)
        ensure_success(data, "Category not found")
        return Category(**data.get("category", data))

    # Cart

    def add_to_cart(self, product_id: int, quantity: int = 1) -> str:
        """
        Add a product to the cart.

        Args:
            product_id: Product ID
            quantity: Quantity to add

        Returns:
            Backend confirmation message
        """
        logger.info(f"Adding product {product_id} x{quantity} to cart")
        data = self.api.post("/api/cart/add", json={"product_id": product_id, "quantity": quantity})
        ensure_success(data, "Failed to add item to cart")
        return data.get("message") or "Added to cart"

    def get_cart(self) -> Cart:
        data = self.api.get("/api/cart/")
        ensure_success(data, "Failed to get cart")
        return self._parse_cart(data.get("cart") or {})

    def cart_count(self) -> int:
        data = self.api.get("/api/cart/count")
        ensure_success(data, "Failed to get cart count")
        try:
            return int(data.get("count") or 0)
        except (TypeError, ValueError):
            return 0

    def update_cart_item(self, item_id: int, quantity: int) -> str:
        """
        Set the quantity of a cart line.

        Raises:
            ValueError: If quantity is below 1; use remove_cart_item instead
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        data = self.api.put(f"/api/cart/items/{item_id}", json={"quantity": quantity})
        ensure_success(data, "Failed to update cart item")
        return data.get("message") or "Cart updated"

    def remove_cart_item(self, item_id: int) -> str:
        data = self.api.delete(f"/api/cart/items/{item_id}")
        ensure_success(data, "Failed to remove item")
        return data.get("message") or "Item removed"

    def clear_cart(self) -> str:
        data = self.api.delete("/api/cart/clear")
        ensure_success(data, "Failed to clear cart")
        return data.get("message") or "Cart cleared"

    # Orders

    def list_orders(self) -> list[Order]:
        data = self.api.get("/api/orders")
        if isinstance(data, dict):
            ensure_success(data, "Failed to load orders")
            data = data.get("orders", [])
        return self._parse_orders(data)

    def get_order(self, order_id: str) -> Order:
        """
        Get one order.

        Raises:
            NotFoundError: If the order does not exist or the record is unusable
        """
        data = self.api.get(f"/api/orders/{order_id}")
        ensure_success(data, "Failed to load order details")
        orders = self._parse_orders([data.get("order", data)])
        if not orders:
            raise NotFoundError(f"Order {order_id} not found", 404)
        return orders[0]

    # Checkout

    def calculate_total(self, delivery_option: str = "standard") -> CheckoutSummary:
        data = self.api.get("/api/checkout/calculate-total", params={"delivery_option": delivery_option})
        ensure_success(data, "Failed to calculate total")
        return CheckoutSummary(**data.get("totals", data))

    def create_order(
        self,
        payment_method: str,
        shipping_info: ShippingAddress,
        delivery_option: str = "standard",
        customer_notes: Optional[str] = None,
    ) -> OrderConfirmation:
        """
        Place an order for the current cart.

        Args:
            payment_method: One of the supported payment method codes
            shipping_info: Validated shipping address
            delivery_option: standard, express, same_day or pickup
            customer_notes: Free-text notes for the seller

        Returns:
            Order confirmation
        """
        logger.info(f"Creating order: payment={payment_method}, delivery={delivery_option}")
        data = self.api.post(
            "/api/checkout/create",
            json={
                "payment_method": payment_method,
                "shipping_info": shipping_info.model_dump(),
                "delivery_option": delivery_option,
                "customer_notes": customer_notes,
            },
        )
        ensure_success(data, "Failed to create order")
        confirmation = data.get("order") or data
        return OrderConfirmation(
            order_id=confirmation.get("order_id", confirmation.get("id")),
            order_number=str(confirmation.get("order_number", "")),
            total=confirmation.get("total"),
            payment_method=confirmation.get("payment_method", payment_method),
            estimated_delivery_date=confirmation.get("estimated_delivery_date"),
        )

    # Profile

    def profile_dashboard(self) -> ProfileDashboard:
        data = self.api.get("/api/profile/dashboard")
        ensure_success(data, "Failed to load profile")
        profile = data.get("profile") or {}
        return ProfileDashboard(
            profile=UserProfile(**profile),
            statistics=data.get("statistics") or {},
            recent_transactions=self._parse_transactions(data.get("recent_transactions") or []),
        )

    def profile_statistics(self) -> dict[str, Any]:
        data = self.api.get("/api/profile/statistics")
        ensure_success(data, "Failed to load statistics")
        return data.get("statistics", data)

    def profile_transactions(self, limit: int = 5) -> list[Transaction]:
        data = self.api.get("/api/profile/transactions", params={"limit": limit})
        ensure_success(data, "Failed to load transactions")
        return self._parse_transactions(data.get("transactions") or [])

    # Seller account

    def apply_as_seller(self, store_name: str, business_type: str, description: Optional[str] = None) -> str:
        data = self.api.post(
            "/api/seller/apply",
            json={"store_name": store_name, "business_type": business_type, "description": description},
        )
        ensure_success(data, "Failed to submit application")
        return data.get("message") or "Your seller application has been submitted"

    def application_status(self) -> Optional[SellerApplication]:
        """Current seller application, or None when the user never applied."""
        try:
            data = self.api.get("/api/seller/application/status")
        except NotFoundError:
            return None
        application = data.get("application", data)
        if not application or not application.get("status"):
            return None
        return SellerApplication(**application)

    def seller_profile(self) -> Optional[SellerProfile]:
        """Seller profile, or None when the account has none yet."""
        try:
            data = self.api.get("/api/seller/profile")
        except NotFoundError:
            return None
        ensure_success(data, "Failed to load seller profile")
        profile = data.get("seller") or data.get("profile") or data
        if not profile.get("id") and not profile.get("store_name"):
            return None
        return SellerProfile(**profile)

    def create_seller_profile(self) -> SellerProfile:
        data = self.api.post("/api/seller/profile/create")
        ensure_success(data, "Failed to create seller profile")
        return SellerProfile(**(data.get("seller") or data.get("profile") or {}))

    # Seller orders

    def seller_orders(
        self,
        page: int = 1,
        limit: int = 10,
        status: str = "all",
        date_range: str = "all",
        search: Optional[str] = None,
    ) -> SellerOrderList:
        params = {
            "page": page,
            "limit": limit,
            "status": status,
            "date_range": date_range if date_range != "all" else None,
            "search": search,
        }
        data = self.api.get("/api/seller/orders", params=params)
        ensure_success(data, "Failed to load orders")

        stats = None
        if data.get("stats"):
            stats = SellerStats(**data["stats"])
        pagination = data.get("pagination") or {}
        return SellerOrderList(
            orders=self._parse_seller_orders(data.get("orders") or []),
            pagination=Pagination(**pagination) if pagination else Pagination(per_page=limit),
            stats=stats,
        )

    def seller_order(self, order_id: int) -> SellerOrder:
        data = self.api.get(f"/api/seller/orders/{order_id}")
        ensure_success(data, "Failed to load order")
        orders = self._parse_seller_orders([data.get("order", data)])
        if not orders:
            raise NotFoundError(f"Order {order_id} not found", 404)
        return orders[0]

    def update_order_status(
        self,
        order_id: int,
        status: str,
        tracking_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        """
        Move a seller order to a new status.

        Args:
            order_id: Seller order ID
            status: New status
            tracking_number: Sent only with `shipped`
            notes: Sent only with `cancelled`
        """
        body: dict[str, Any] = {"status": status}
        if status == "shipped" and tracking_number:
            body["tracking_number"] = tracking_number
        if status == "cancelled" and notes:
            body["notes"] = notes
        logger.info(f"Updating order {order_id} to {status}")
        data = self.api.patch(f"/api/seller/orders/{order_id}/status", json=body)
        ensure_success(data, "Failed to update order status")
        return data.get("message") or f'Order status updated to "{status}"'

    def seller_order_stats(self) -> SellerStats:
        data = self.api.get("/api/seller/orders/stats/summary")
        ensure_success(data, "Failed to load order stats")
        return SellerStats(**(data.get("stats") or {}))

    def seller_revenue(self, days: int = 30) -> list[RevenuePoint]:
        data = self.api.get("/api/seller/revenue", params={"days": days})
        ensure_success(data, "Failed to load revenue")
        points = []
        for item in data.get("revenue") or []:
            try:
                points.append(RevenuePoint(**item))
            except (ValidationError, TypeError) as e:
                logger.warning(f"Failed to parse revenue point: {e}")
        return points

    # Seller products

    def seller_products(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> ProductList:
        params = {"page": page, "limit": limit, "search": search}
        data = self.api.get("/api/seller/products", params=params)
        ensure_success(data, "Failed to load products")
        products = self._parse_products(data.get("products") or [])
        return ProductList(products=products, total=data.get("total", len(products)))

    def create_product(self, form: ProductForm) -> Optional[Product]:
        data = self.api.post("/api/seller/products", json=form.model_dump(mode="json"))
        ensure_success(data, "Failed to create product")
        return self._parse_saved_product(data)

    def update_product(self, product_id: int, form: ProductForm) -> Optional[Product]:
        data = self.api.put(f"/api/seller/products/{product_id}", json=form.model_dump(mode="json"))
        ensure_success(data, "Failed to update product")
        return self._parse_saved_product(data)

    def delete_product(self, product_id: int) -> str:
        data = self.api.delete(f"/api/seller/products/{product_id}")
        ensure_success(data, "Failed to delete product")
        return data.get("message") or "Product deleted"

    # Helper methods for parsing responses

    def _parse_user(self, data: Optional[dict[str, Any]]) -> Optional[UserProfile]:
        if not data:
            return None
        try:
            return UserProfile(**data)
        except (ValidationError, TypeError) as e:
            logger.warning(f"Failed to parse user profile: {e}")
            return None

    def _parse_saved_product(self, data: dict[str, Any]) -> Optional[Product]:
        """The product echoed back after a write; None when the backend sent only a message."""
        product_data = data.get("product")
        if not isinstance(product_data, dict):
            return None
        try:
            return Product(**product_data)
        except (ValidationError, TypeError) as e:
            logger.warning(f"Failed to parse saved product: {e}")
            return None

    def _parse_products(self, products_data: list[dict]) -> list[Product]:
        products = []
        for item in products_data:
            try:
                products.append(Product(**item))
            except (ValidationError, TypeError) as e:
                logger.warning(f"Failed to parse product: {e}")
                continue
        return products

    def _parse_cart(self, cart_data: dict[str, Any]) -> Cart:
        """Parse the cart, skipping lines that cannot be read."""
        items = []
        for item_data in cart_data.get("items", []):
            try:
                product = item_data.get("product") or {}
                items.append(
                    CartItem(
                        id=item_data.get("id"),
                        product_id=item_data.get("product_id", product.get("id")),
                        product_name=item_data.get("product_name") or product.get("name") or "Product",
                        quantity=item_data.get("quantity", 1),
                        price_at_time=item_data.get("price_at_time", item_data.get("price")),
                        variant_name=item_data.get("variant_name"),
                        variant_value=item_data.get("variant_value"),
                        image_url=item_data.get("image_url") or product.get("image_url"),
                    )
                )
            except (ValidationError, TypeError) as e:
                logger.warning(f"Failed to parse cart item: {e}")
                continue

        total = cart_data.get("total")
        if total is None:
            total = sum((item.subtotal for item in items), ZERO)
        return Cart(
            items=items,
            total=total,
            item_count=cart_data.get("item_count", sum(item.quantity for item in items)),
        )

    def _parse_orders(self, orders_data: list[dict]) -> list[Order]:
        orders = []
        for order_data in orders_data:
            try:
                items = [
                    OrderItem(
                        product_name=item.get("product_name") or item.get("name") or "Product",
                        quantity=item.get("quantity", 1),
                        price=item.get("price"),
                        subtotal=item.get("subtotal"),
                        variant_name=item.get("variant_name"),
                        variant_value=item.get("variant_value"),
                    )
                    for item in order_data.get("items") or []
                ]
                order_id = order_data.get("order_id", order_data.get("id", ""))
                orders.append(
                    Order(
                        id=str(order_id),
                        order_number=str(order_data.get("order_number") or order_id),
                        status=order_data.get("status") or "pending",
                        created_at=order_data.get("created_at"),
                        subtotal=order_data.get("subtotal"),
                        tax=order_data.get("tax"),
                        shipping_fee=order_data.get("shipping_fee"),
                        total=order_data.get("total", order_data.get("total_amount")),
                        items=items,
                        shipping_address=self._parse_address(order_data.get("shipping_address")),
                        user_email=order_data.get("user_email"),
                        delivery_option=order_data.get("delivery_option"),
                        estimated_delivery_date=order_data.get("estimated_delivery_date"),
                        payment_method=order_data.get("payment_method"),
                        tracking_number=order_data.get("tracking_number"),
                    )
                )
            except (ValidationError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to parse order: {e}")
                continue
        return orders

    def _parse_address(self, data: Any) -> Optional[ShippingAddress]:
        if not isinstance(data, dict):
            return None
        try:
            return ShippingAddress(**data)
        except ValidationError as e:
            logger.warning(f"Incomplete shipping address: {e}")
            return None

    def _parse_seller_orders(self, orders_data: list[dict]) -> list[SellerOrder]:
        orders = []
        for order_data in orders_data:
            try:
                orders.append(SellerOrder(**order_data))
            except (ValidationError, TypeError) as e:
                logger.warning(f"Failed to parse seller order: {e}")
                continue
        return orders

    def _parse_transactions(self, data: list[dict]) -> list[Transaction]:
        transactions = []
        for item in data:
            try:
                transactions.append(
                    Transaction(
                        order_id=item.get("order_id", item.get("id")),
                        order_number=item.get("order_number"),
                        amount=item.get("amount", item.get("total")),
                        status=item.get("status") or "pending",
                        created_at=item.get("created_at"),
                    )
                )
            except (ValidationError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to parse transaction: {e}")
                continue
        return transactions

    def close(self) -> None:
        """Close the HTTP client."""
        self.api.close()
