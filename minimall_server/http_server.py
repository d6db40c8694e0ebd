"""HTTP server exposing the Minimal Mall pages as a REST API."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .config import Settings
from .minimall_client import MinimallClient
from .pages import (
    ActionResult,
    AuthPage,
    CartPage,
    CatalogPage,
    CheckoutPage,
    CustomersPage,
    OrderDetailsPage,
    OrderHistoryPage,
    OrderSuccessPage,
    PageResult,
    PageSession,
    PayoutPage,
    ProductDetailPage,
    ProfilePage,
    SellerDashboardPage,
    SellerOrdersPage,
    SellerProductsPage,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("minimall-http-server")

# Global state
minimall_client: Optional[MinimallClient] = None
session: Optional[PageSession] = None

# HTTP status for each failure kind of a page or action
STATUS_BY_KIND = {
    "unauthenticated": 401,
    "forbidden": 403,
    "not_found": 404,
    "validation": 422,
    "failed": 502,
    "network": 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    global minimall_client, session

    # Startup
    settings = Settings.from_env()
    logging.getLogger().setLevel(settings.log_level)
    logger.info(f"Starting Minimall HTTP Server against {settings.api_url}...")
    minimall_client = MinimallClient.from_settings(settings)
    session = PageSession(minimall_client)

    yield

    # Shutdown
    logger.info("Shutting down Minimall HTTP Server...")
    minimall_client.close()


app = FastAPI(
    title="Minimall MCP Server",
    description="HTTP API for the Minimal Mall storefront and seller center",
    version=__version__,
    lifespan=lifespan,
)


# Request Models
class SigninRequest(BaseModel):
    email: str
    password: str


class SignupRequest(BaseModel):
    email: str = ""
    password: str = ""
    full_name: str = ""
    phone: Optional[str] = None
    otp: Optional[str] = None


class AddToCartRequest(BaseModel):
    product_id: int
    quantity: int = 1


class SellerApplicationRequest(BaseModel):
    store_name: str
    business_type: str
    description: Optional[str] = None


class PaymentMethodRequest(BaseModel):
    method: str


class PlaceOrderRequest(BaseModel):
    notes: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: str
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


def respond(result: Union[PageResult, ActionResult]) -> JSONResponse:
    """Serialize a page or action outcome; failures get the matching HTTP status."""
    status_code = 200
    if not result.ok:
        status_code = STATUS_BY_KIND.get(result.error_kind or "", 400)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


def _session() -> PageSession:
    if session is None:
        raise HTTPException(status_code=503, detail="Server is starting up")
    return session


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Minimall MCP Server",
        "version": __version__,
        "description": "HTTP API for the Minimal Mall storefront and seller center",
        "mcp_compatible": True,
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "auth": {
                "signin": "POST /auth/signin",
                "signup": "POST /auth/signup",
                "resend_otp": "POST /auth/resend-otp",
                "cancel_signup": "POST /auth/cancel-signup",
                "register": "POST /auth/register",
                "me": "GET /auth/me",
                "signout": "POST /auth/signout",
                "status": "GET /auth/status",
            },
            "products": {
                "list": "GET /products",
                "get": "GET /products/{product_id}",
                "select": "POST /products/{product_id}/select",
            },
            "cart": {
                "get": "GET /cart",
                "add": "POST /cart/add",
                "add_selected": "POST /cart/add-selected",
                "update": "POST /cart/items/{item_id}/{increase|decrease|remove}",
                "clear": "DELETE /cart",
                "checkout": "POST /cart/checkout",
            },
            "profile": {
                "get": "GET /profile",
                "apply": "POST /profile/seller-application",
                "seller_dashboard": "POST /profile/seller-dashboard",
            },
            "orders": {"list": "GET /orders", "get": "GET /orders/{order_id}"},
            "checkout": {
                "summary": "GET /checkout",
                "shipping_address": "PUT /checkout/shipping-address",
                "payment_method": "PUT /checkout/payment-method",
                "place_order": "POST /checkout/place-order",
                "success": "GET /checkout/success",
            },
            "seller": {
                "dashboard": "GET /seller",
                "orders": "GET /seller/orders",
                "order": "GET /seller/orders/{order_id}",
                "order_status": "PATCH /seller/orders/{order_id}/status",
                "products": "GET|POST /seller/products",
                "product": "PUT|DELETE /seller/products/{product_id}",
                "edit_product": "GET /seller/products/{product_id}/edit",
                "customers": "GET /seller/customers",
                "contact": "GET /seller/customers/{customer_id}/contact",
                "payouts": "GET /seller/payouts",
            },
        },
        "authenticated": minimall_client.auth_manager.is_authenticated() if minimall_client else False,
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "authenticated": minimall_client.auth_manager.is_authenticated() if minimall_client else False,
    }


# Authentication endpoints
@app.post("/auth/signin")
async def signin(request: SigninRequest):
    return respond(_session().enter(AuthPage).signin(request.email, request.password))


@app.post("/auth/signup")
async def signup(request: SignupRequest):
    """Start a signup (sends the code) or finish it when `otp` is given."""
    page = _session().current(AuthPage)
    return respond(page.submit_signup(request.email, request.password, request.full_name, request.phone, request.otp))


@app.post("/auth/resend-otp")
async def resend_otp():
    return respond(_session().current(AuthPage).resend_otp())


@app.post("/auth/cancel-signup")
async def cancel_signup():
    return respond(_session().current(AuthPage).cancel_signup())


@app.post("/auth/register")
async def register(request: SignupRequest):
    """Create an account without email verification."""
    page = _session().current(AuthPage)
    return respond(page.signup(request.email, request.password, request.full_name, request.phone))


@app.get("/auth/me")
async def current_user():
    return respond(_session().current(AuthPage).account())


@app.post("/auth/signout")
async def signout():
    result = _session().enter(AuthPage).signout()
    _session().reset()
    return respond(result)


@app.get("/auth/status")
async def auth_status():
    """Get authentication status."""
    auth_manager = _session().client.auth_manager
    user = auth_manager.get_user()
    return {
        "authenticated": auth_manager.is_authenticated(),
        "email": user.email if user else None,
        "pending_signup": auth_manager.get_pending_signup() is not None,
    }


# Product endpoints
@app.get("/products")
async def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    featured: bool = False,
    page: int = 1,
):
    """List products; `category` is a category id or slug."""
    catalog = _session().enter(CatalogPage)
    return respond(catalog.set_filters(search=search, category=category, tag=tag, featured=featured, page=page))


@app.get("/products/{product_id}")
async def get_product(product_id: int):
    return respond(_session().enter(ProductDetailPage, product_id=product_id).load())


@app.post("/products/{product_id}/select")
async def toggle_product_selection(product_id: int):
    return respond(_session().current(CatalogPage).toggle_selection(product_id))


# Cart endpoints
@app.get("/cart")
async def get_cart():
    return respond(_session().enter(CartPage).load())


@app.post("/cart/add")
async def add_to_cart(request: AddToCartRequest):
    return respond(_session().current(CatalogPage).add_to_cart(request.product_id, request.quantity))


@app.post("/cart/add-selected")
async def add_selected_to_cart():
    return respond(_session().current(CatalogPage).add_selected_to_cart())


@app.post("/cart/items/{item_id}/{action}")
async def update_cart_item(item_id: int, action: str):
    cart = _session().current(CartPage)
    if action == "increase":
        return respond(cart.increase(item_id))
    elif action == "decrease":
        return respond(cart.decrease(item_id))
    elif action == "remove":
        return respond(cart.remove(item_id))
    raise HTTPException(status_code=404, detail=f"Unknown cart action: {action}")


@app.delete("/cart")
async def clear_cart():
    return respond(_session().current(CartPage).clear())


@app.post("/cart/checkout")
async def cart_checkout():
    result = _session().current(CartPage).checkout()
    if result.ok and result.redirect_to:
        result.page = _session().enter(CheckoutPage).load()
    return respond(result)


# Profile endpoints
@app.get("/profile")
async def get_profile():
    return respond(_session().enter(ProfilePage).load())


@app.post("/profile/seller-application")
async def apply_as_seller(request: SellerApplicationRequest):
    profile = _session().current(ProfilePage)
    return respond(profile.apply_as_seller(request.store_name, request.business_type, request.description))


@app.post("/profile/seller-dashboard")
async def open_seller_dashboard():
    result = _session().current(ProfilePage).open_seller_dashboard()
    if result.ok and result.redirect_to:
        result.page = _session().enter(SellerDashboardPage).load()
    return respond(result)


# Order endpoints
@app.get("/orders")
async def get_orders(search: Optional[str] = None):
    history = _session().enter(OrderHistoryPage)
    history.search = search.strip() if search and search.strip() else None
    return respond(history.load())


@app.get("/orders/{order_id}")
async def get_order(order_id: str):
    return respond(_session().enter(OrderDetailsPage, order_id=order_id).load())


# Checkout endpoints
@app.get("/checkout")
async def get_checkout(delivery_option: Optional[str] = None):
    checkout = _session().current(CheckoutPage)
    if delivery_option:
        return respond(checkout.select_delivery(delivery_option))
    return respond(checkout.load())


@app.put("/checkout/shipping-address")
async def set_shipping_address(fields: dict[str, Any]):
    return respond(_session().current(CheckoutPage).set_shipping_address(**fields))


@app.put("/checkout/payment-method")
async def set_payment_method(request: PaymentMethodRequest):
    return respond(_session().current(CheckoutPage).select_payment(request.method))


@app.post("/checkout/place-order")
async def place_order(request: PlaceOrderRequest):
    result = _session().current(CheckoutPage).purchase(request.notes)
    if result.ok and result.redirect_to:
        _session().pages.pop(CheckoutPage, None)
    return respond(result)


@app.get("/checkout/success")
async def order_success():
    return respond(_session().enter(OrderSuccessPage).load())


# Seller endpoints
@app.get("/seller")
async def seller_dashboard():
    return respond(_session().enter(SellerDashboardPage).load())


@app.get("/seller/orders")
async def seller_orders(status: str = "all", date_range: str = "all", search: Optional[str] = None, page: int = 1):
    orders = _session().enter(SellerOrdersPage)
    return respond(orders.set_filters(status=status, date_range=date_range, search=search, page=page))


@app.get("/seller/orders/{order_id}")
async def seller_order(order_id: int):
    return respond(_session().current(SellerOrdersPage).view_order(order_id))


@app.patch("/seller/orders/{order_id}/status")
async def update_order_status(order_id: int, request: StatusUpdateRequest):
    orders = _session().current(SellerOrdersPage)
    return respond(
        orders.change_status(order_id, request.status, tracking_number=request.tracking_number, notes=request.notes)
    )


@app.get("/seller/products")
async def seller_products(search: Optional[str] = None, tab: str = "all", page: int = 1):
    products = _session().enter(SellerProductsPage)
    return respond(products.set_filters(search=search, tab=tab, page=page))


@app.get("/seller/products/{product_id}/edit")
async def edit_product(product_id: int):
    return respond(_session().current(SellerProductsPage).edit_product(product_id))


@app.post("/seller/products")
async def create_product(values: dict[str, Any]):
    return respond(_session().current(SellerProductsPage).save_product(values))


@app.put("/seller/products/{product_id}")
async def update_product(product_id: int, values: dict[str, Any]):
    return respond(_session().current(SellerProductsPage).save_product(values, product_id))


@app.delete("/seller/products/{product_id}")
async def delete_product(product_id: int):
    return respond(_session().current(SellerProductsPage).delete_product(product_id))


@app.get("/seller/customers")
async def seller_customers(search: Optional[str] = None):
    customers = _session().enter(CustomersPage)
    result = customers.load()
    if result.ok and search:
        result = customers.search_customers(search)
    return respond(result)


@app.get("/seller/customers/{customer_id}/contact")
async def contact_customer(customer_id: str):
    return respond(_session().current(CustomersPage).contact_customer(customer_id))


@app.get("/seller/payouts")
async def seller_payouts():
    return respond(_session().enter(PayoutPage).load())


def run_http_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """
    Run the HTTP server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 8000)
        reload: Enable hot reloading (default: False)
    """
    import uvicorn

    logger.info(f"Starting server on {host}:{port} (reload={'enabled' if reload else 'disabled'})")

    if reload:
        # Hot reloading - watches for file changes
        uvicorn.run(
            "minimall_server.http_server:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["minimall_server"],
            log_level="info",
        )
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server(reload=True)
