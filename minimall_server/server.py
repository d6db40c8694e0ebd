"""MCP Server for the Minimal Mall storefront."""

import asyncio
import json
import logging
from typing import Any, Optional, Union

from mcp.server import Server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl

from .config import Settings
from .errors import MinimallError
from .minimall_client import MinimallClient
from .models import AuthCredentials
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
logger = logging.getLogger("minimall-mcp-server")

# Initialize server
app = Server("minimall-mcp-server")

# Global state
minimall_client: MinimallClient
session: PageSession
credentials: Optional[AuthCredentials] = None

NOT_AUTHENTICATED = "Error: Not authenticated. Use minimall_signin first."

ADDRESS_PROPERTIES = {
    "full_name": {"type": "string", "description": "Recipient name"},
    "phone": {"type": "string", "description": "Contact phone number"},
    "address_line1": {"type": "string", "description": "Street address"},
    "address_line2": {"type": "string", "description": "Apartment, unit, etc. (optional)"},
    "city": {"type": "string", "description": "City"},
    "state": {"type": "string", "description": "Province or state"},
    "postal_code": {"type": "string", "description": "Postal code"},
    "country": {"type": "string", "description": "Country (optional)"},
}

PRODUCT_PROPERTIES = {
    "product_id": {"type": "integer", "description": "Product to update; omit to create a new product"},
    "name": {"type": "string", "description": "Product name"},
    "category_id": {"type": "integer", "description": "Category ID"},
    "price": {"type": "number", "description": "Price in PHP"},
    "quantity_in_stock": {"type": "integer", "description": "Units in stock"},
    "sku": {"type": "string", "description": "Stock keeping unit (optional)"},
    "short_description": {"type": "string", "description": "Up to 200 characters (optional)"},
    "description": {"type": "string", "description": "Full description (optional)"},
    "compare_at_price": {"type": "number", "description": "Original price when discounted (optional)"},
    "is_featured": {"type": "boolean", "description": "Feature on the storefront"},
    "is_active": {"type": "boolean", "description": "Visible to customers (false saves a draft)"},
}


def ensure_authenticated() -> bool:
    """Ensure the client is authenticated, auto-login if credentials are available."""
    if minimall_client.auth_manager.is_authenticated():
        return True

    if credentials:
        try:
            logger.info("Auto-logging in with configured credentials...")
            minimall_client.signin(credentials)
            logger.info("Auto-login successful")
            return True
        except MinimallError as e:
            logger.error(f"Auto-login error: {e.message}")

    return False


def format_result(result: Union[PageResult, ActionResult]) -> str:
    """Render a page or action outcome as text for the MCP client."""
    lines = []
    for toast in result.toasts:
        lines.append(f"[{toast.level}] {toast.message}")

    if isinstance(result, ActionResult):
        for field, messages in result.field_errors.items():
            lines.append(f"  {field}: {', '.join(messages)}")
        if "view" in result.data:
            lines.append(result.data["view"])
        elif "mailto" in result.data:
            lines.append(result.data["mailto"])
        elif "form" in result.data:
            lines.append(json.dumps(result.data["form"], indent=2, default=str))
        if result.redirect_to:
            lines.append(f"-> {result.redirect_to}")
        if result.page is not None:
            lines.append("")
            lines.append(format_result(result.page))
        return "\n".join(lines)

    if not result.ok:
        lines.append(f"Error: {result.error}")
        for field, messages in result.field_errors.items():
            lines.append(f"  {field}: {', '.join(messages)}")
        if result.retry:
            lines.append("(Retry by calling the tool again)")
    elif result.view:
        lines.append(result.view)
    if result.redirect_to:
        lines.append(f"-> {result.redirect_to}")
    return "\n".join(lines)


def _text(result: Union[PageResult, ActionResult, str]) -> list[TextContent]:
    text = result if isinstance(result, str) else format_result(result)
    return [TextContent(type="text", text=text)]


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    resources = []

    # If authenticated, provide cart and orders as resources
    if minimall_client.auth_manager.is_authenticated():
        resources.extend(
            [
                Resource(
                    uri=AnyUrl("minimall://cart"),
                    name="Shopping Cart",
                    mimeType="application/json",
                    description="Current shopping cart contents",
                ),
                Resource(
                    uri=AnyUrl("minimall://orders"),
                    name="Orders",
                    mimeType="application/json",
                    description="User's orders",
                ),
            ]
        )

    return resources


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    uri_str = str(uri)

    if uri_str == "minimall://cart":
        if not ensure_authenticated():
            return NOT_AUTHENTICATED
        return minimall_client.get_cart().model_dump_json(indent=2)

    elif uri_str == "minimall://orders":
        if not ensure_authenticated():
            return NOT_AUTHENTICATED
        orders = minimall_client.list_orders()
        return json.dumps([order.model_dump(mode="json") for order in orders], indent=2)

    raise ValueError(f"Unknown resource: {uri}")


def _tool(name: str, description: str, properties: Optional[dict] = None, required: Optional[list] = None) -> Tool:
    schema: dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return Tool(name=name, description=description, inputSchema=schema)


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        _tool(
            "minimall_signin",
            "Sign in to Minimal Mall. Uses MINIMALL_EMAIL/MINIMALL_PASSWORD if not provided.",
            {
                "email": {"type": "string", "description": "Account email (optional if configured)"},
                "password": {"type": "string", "description": "Account password (optional if configured)"},
            },
        ),
        _tool(
            "minimall_signup",
            "Create an account. The first call emails a verification code; call again with `otp` to finish.",
            {
                "email": {"type": "string", "description": "Account email"},
                "password": {"type": "string", "description": "At least 6 characters"},
                "full_name": {"type": "string", "description": "Full name"},
                "phone": {"type": "string", "description": "Phone number (optional)"},
                "otp": {"type": "string", "description": "Verification code from the email (second call)"},
            },
        ),
        _tool("minimall_resend_otp", "Send the signup verification code again"),
        _tool("minimall_cancel_signup", "Drop a signup that is waiting for its verification code"),
        _tool(
            "minimall_create_account",
            "Create an account without email verification and sign in",
            {
                "email": {"type": "string", "description": "Account email"},
                "password": {"type": "string", "description": "At least 6 characters"},
                "full_name": {"type": "string", "description": "Full name"},
                "phone": {"type": "string", "description": "Phone number (optional)"},
            },
            ["email", "password", "full_name"],
        ),
        _tool("minimall_account", "Check the session with the backend and show the signed-in user"),
        _tool("minimall_signout", "Sign out and clear the stored session"),
        _tool(
            "minimall_browse_products",
            "List products, optionally searching or filtering by category, tag or featured",
            {
                "search": {"type": "string", "description": "Search term (optional)"},
                "category_id": {"type": "integer", "description": "Category filter (optional)"},
                "category": {"type": "string", "description": "Category slug filter (optional)"},
                "tag": {"type": "string", "description": "Tag filter (optional)"},
                "featured": {"type": "boolean", "description": "Only featured products", "default": False},
                "page": {"type": "integer", "description": "Page number (default: 1)", "default": 1},
            },
        ),
        _tool(
            "minimall_toggle_product_selection",
            "Select or deselect a product on the product list for bulk add-to-cart",
            {"product_id": {"type": "integer", "description": "Product ID"}},
            ["product_id"],
        ),
        _tool("minimall_add_selected_to_cart", "Add every selected product to the cart"),
        _tool(
            "minimall_get_product",
            "Get one product by ID or slug",
            {
                "product_id": {"type": "integer", "description": "Product ID"},
                "slug": {"type": "string", "description": "Product slug"},
            },
        ),
        _tool(
            "minimall_add_to_cart",
            "Add a product to the shopping cart",
            {
                "product_id": {"type": "integer", "description": "Product ID to add to cart"},
                "quantity": {"type": "integer", "description": "Quantity to add (default: 1)", "default": 1},
            },
            ["product_id"],
        ),
        _tool("minimall_get_cart", "Get current shopping cart contents with an estimated total"),
        _tool(
            "minimall_update_cart_item",
            "Increase, decrease or remove a cart line",
            {
                "item_id": {"type": "integer", "description": "Cart item ID"},
                "action": {"type": "string", "enum": ["increase", "decrease", "remove"]},
            },
            ["item_id", "action"],
        ),
        _tool("minimall_clear_cart", "Remove everything from the cart"),
        _tool("minimall_cart_checkout", "Proceed from the cart to checkout"),
        _tool("minimall_get_profile", "Get the profile dashboard and seller application status"),
        _tool(
            "minimall_apply_as_seller",
            "Apply for a seller account",
            {
                "store_name": {"type": "string", "description": "Store name (at least 3 characters)"},
                "business_type": {"type": "string", "enum": ["individual", "business"]},
                "description": {"type": "string", "description": "About the store (optional)"},
            },
            ["store_name", "business_type"],
        ),
        _tool("minimall_open_seller_dashboard", "Go from the profile to the seller dashboard when the account may sell"),
        _tool(
            "minimall_get_orders",
            "Get order history split into pending and completed orders",
            {"search": {"type": "string", "description": "Filter by order number or status (optional)"}},
        ),
        _tool(
            "minimall_get_order_details",
            "Get detailed information for a specific order",
            {"order_id": {"type": "string", "description": "Order ID"}},
            ["order_id"],
        ),
        _tool(
            "minimall_checkout",
            "Show checkout totals and the current shipping, delivery and payment choices",
            {
                "delivery_option": {
                    "type": "string",
                    "enum": ["standard", "express", "same_day", "pickup"],
                    "description": "Delivery option (optional)",
                }
            },
        ),
        _tool(
            "minimall_set_shipping_address",
            "Set the shipping address for checkout",
            ADDRESS_PROPERTIES,
            ["full_name", "phone", "address_line1", "city", "state", "postal_code"],
        ),
        _tool(
            "minimall_select_payment_method",
            "Choose the payment method for checkout",
            {
                "method": {
                    "type": "string",
                    "enum": ["gcash", "paymaya", "cash_on_delivery", "credit_card", "debit_card", "bank_transfer"],
                }
            },
            ["method"],
        ),
        _tool(
            "minimall_place_order",
            "Place the order with the current checkout choices",
            {"notes": {"type": "string", "description": "Notes for the seller (optional)"}},
        ),
        _tool("minimall_order_confirmation", "Show the confirmation of the order just placed"),
        _tool("minimall_seller_dashboard", "Seller dashboard: store, statistics and recent transactions"),
        _tool(
            "minimall_seller_orders",
            "List orders for the seller's products",
            {
                "status": {"type": "string", "enum": ["all", "pending", "processing", "shipped", "delivered", "cancelled"]},
                "date_range": {"type": "string", "enum": ["all", "today", "this_week", "this_month", "last_week"]},
                "search": {"type": "string", "description": "Order number or customer (optional)"},
                "page": {"type": "integer", "description": "Page number (default: 1)", "default": 1},
            },
        ),
        _tool(
            "minimall_seller_order_details",
            "Get one seller order",
            {"order_id": {"type": "integer", "description": "Order ID"}},
            ["order_id"],
        ),
        _tool(
            "minimall_seller_update_order_status",
            "Change the status of a seller order",
            {
                "order_id": {"type": "integer", "description": "Order ID"},
                "status": {"type": "string", "enum": ["pending", "processing", "shipped", "delivered", "cancelled"]},
                "tracking_number": {"type": "string", "description": "Tracking number when shipping (optional)"},
                "notes": {"type": "string", "description": "Reason when cancelling (optional)"},
            },
            ["order_id", "status"],
        ),
        _tool(
            "minimall_seller_products",
            "List the seller's products",
            {
                "search": {"type": "string", "description": "Search term (optional)"},
                "tab": {"type": "string", "enum": ["all", "active", "draft", "out_of_stock"]},
                "page": {"type": "integer", "description": "Page number (default: 1)", "default": 1},
            },
        ),
        _tool(
            "minimall_seller_edit_product",
            "Load a product's current values for editing",
            {"product_id": {"type": "integer", "description": "Product ID"}},
            ["product_id"],
        ),
        _tool(
            "minimall_seller_save_product",
            "Create a product, or update one when product_id is given",
            PRODUCT_PROPERTIES,
            ["name", "category_id", "price", "quantity_in_stock"],
        ),
        _tool(
            "minimall_seller_delete_product",
            "Delete one of the seller's products",
            {"product_id": {"type": "integer", "description": "Product ID"}},
            ["product_id"],
        ),
        _tool(
            "minimall_seller_customers",
            "Customers who ordered from the seller, ranked by total spent",
            {"search": {"type": "string", "description": "Name, email or ID filter (optional)"}},
        ),
        _tool(
            "minimall_seller_contact_customer",
            "Get a mailto link for a customer",
            {"customer_id": {"type": "string", "description": "Customer ID"}},
            ["customer_id"],
        ),
        _tool("minimall_seller_payouts", "Available balance, revenue and payout transaction history"),
    ]


PUBLIC_TOOLS = {
    "minimall_signin",
    "minimall_signup",
    "minimall_resend_otp",
    "minimall_cancel_signup",
    "minimall_create_account",
    "minimall_signout",
    "minimall_browse_products",
    "minimall_toggle_product_selection",
    "minimall_get_product",
}


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name not in PUBLIC_TOOLS and not ensure_authenticated():
            return _text(NOT_AUTHENTICATED)

        if name == "minimall_signin":
            email = arguments.get("email") or (credentials.email if credentials else None)
            password = arguments.get("password") or (credentials.password if credentials else None)
            if not email or not password:
                return _text("Error: No credentials provided and MINIMALL_EMAIL/MINIMALL_PASSWORD not configured.")
            return _text(session.enter(AuthPage).signin(email, password))

        elif name == "minimall_signup":
            page = session.current(AuthPage)
            return _text(
                page.submit_signup(
                    email=arguments.get("email", ""),
                    password=arguments.get("password", ""),
                    full_name=arguments.get("full_name", ""),
                    phone=arguments.get("phone"),
                    otp=arguments.get("otp"),
                )
            )

        elif name == "minimall_resend_otp":
            return _text(session.current(AuthPage).resend_otp())

        elif name == "minimall_cancel_signup":
            return _text(session.current(AuthPage).cancel_signup())

        elif name == "minimall_create_account":
            page = session.current(AuthPage)
            return _text(
                page.signup(
                    arguments.get("email", ""),
                    arguments.get("password", ""),
                    arguments.get("full_name", ""),
                    arguments.get("phone"),
                )
            )

        elif name == "minimall_account":
            return _text(session.current(AuthPage).account())

        elif name == "minimall_signout":
            result = session.enter(AuthPage).signout()
            session.reset()
            return _text(result)

        elif name == "minimall_browse_products":
            page = session.enter(CatalogPage)
            return _text(
                page.set_filters(
                    search=arguments.get("search"),
                    category=arguments.get("category_id") or arguments.get("category"),
                    tag=arguments.get("tag"),
                    featured=bool(arguments.get("featured")),
                    page=int(arguments.get("page", 1)),
                )
            )

        elif name == "minimall_toggle_product_selection":
            return _text(session.current(CatalogPage).toggle_selection(int(arguments["product_id"])))

        elif name == "minimall_add_selected_to_cart":
            return _text(session.current(CatalogPage).add_selected_to_cart())

        elif name == "minimall_get_product":
            page = session.enter(ProductDetailPage, product_id=arguments.get("product_id"), slug=arguments.get("slug"))
            return _text(page.load())

        elif name == "minimall_add_to_cart":
            page = session.current(CatalogPage)
            return _text(page.add_to_cart(int(arguments["product_id"]), int(arguments.get("quantity", 1))))

        elif name == "minimall_get_cart":
            return _text(session.enter(CartPage).load())

        elif name == "minimall_update_cart_item":
            page = session.current(CartPage)
            item_id = int(arguments["item_id"])
            action = arguments.get("action")
            if action == "increase":
                return _text(page.increase(item_id))
            elif action == "decrease":
                return _text(page.decrease(item_id))
            elif action == "remove":
                return _text(page.remove(item_id))
            return _text(f"Error: Unknown cart action: {action}")

        elif name == "minimall_clear_cart":
            return _text(session.current(CartPage).clear())

        elif name == "minimall_cart_checkout":
            result = session.current(CartPage).checkout()
            if result.ok and result.redirect_to:
                result.page = session.enter(CheckoutPage).load()
            return _text(result)

        elif name == "minimall_get_profile":
            return _text(session.enter(ProfilePage).load())

        elif name == "minimall_apply_as_seller":
            page = session.current(ProfilePage)
            return _text(
                page.apply_as_seller(
                    arguments.get("store_name", ""), arguments.get("business_type", ""), arguments.get("description")
                )
            )

        elif name == "minimall_open_seller_dashboard":
            result = session.current(ProfilePage).open_seller_dashboard()
            if result.ok and result.redirect_to:
                result.page = session.enter(SellerDashboardPage).load()
            return _text(result)

        elif name == "minimall_get_orders":
            page = session.enter(OrderHistoryPage)
            page.search = arguments.get("search") or None
            return _text(page.load())

        elif name == "minimall_get_order_details":
            return _text(session.enter(OrderDetailsPage, order_id=str(arguments["order_id"])).load())

        elif name == "minimall_checkout":
            option = arguments.get("delivery_option")
            if option:
                return _text(session.current(CheckoutPage).select_delivery(option))
            return _text(session.current(CheckoutPage).load())

        elif name == "minimall_set_shipping_address":
            fields = {key: arguments[key] for key in ADDRESS_PROPERTIES if arguments.get(key)}
            return _text(session.current(CheckoutPage).set_shipping_address(**fields))

        elif name == "minimall_select_payment_method":
            return _text(session.current(CheckoutPage).select_payment(arguments.get("method", "")))

        elif name == "minimall_place_order":
            result = session.current(CheckoutPage).purchase(arguments.get("notes"))
            if result.ok and result.redirect_to:
                # Checkout is done; the next one starts fresh
                session.pages.pop(CheckoutPage, None)
            return _text(result)

        elif name == "minimall_order_confirmation":
            return _text(session.enter(OrderSuccessPage).load())

        elif name == "minimall_seller_dashboard":
            return _text(session.enter(SellerDashboardPage).load())

        elif name == "minimall_seller_orders":
            page = session.enter(SellerOrdersPage)
            return _text(
                page.set_filters(
                    status=arguments.get("status"),
                    date_range=arguments.get("date_range"),
                    search=arguments.get("search"),
                    page=int(arguments.get("page", 1)),
                )
            )

        elif name == "minimall_seller_order_details":
            return _text(session.current(SellerOrdersPage).view_order(int(arguments["order_id"])))

        elif name == "minimall_seller_update_order_status":
            page = session.current(SellerOrdersPage)
            return _text(
                page.change_status(
                    int(arguments["order_id"]),
                    arguments.get("status", ""),
                    tracking_number=arguments.get("tracking_number"),
                    notes=arguments.get("notes"),
                )
            )

        elif name == "minimall_seller_products":
            page = session.enter(SellerProductsPage)
            return _text(
                page.set_filters(
                    search=arguments.get("search"), tab=arguments.get("tab"), page=int(arguments.get("page", 1))
                )
            )

        elif name == "minimall_seller_edit_product":
            return _text(session.current(SellerProductsPage).edit_product(int(arguments["product_id"])))

        elif name == "minimall_seller_save_product":
            values = {key: value for key, value in arguments.items() if key != "product_id"}
            product_id = arguments.get("product_id")
            page = session.current(SellerProductsPage)
            return _text(page.save_product(values, int(product_id) if product_id is not None else None))

        elif name == "minimall_seller_delete_product":
            return _text(session.current(SellerProductsPage).delete_product(int(arguments["product_id"])))

        elif name == "minimall_seller_customers":
            page = session.enter(CustomersPage)
            page.search = arguments.get("search") or None
            return _text(page.load())

        elif name == "minimall_seller_contact_customer":
            return _text(session.current(CustomersPage).contact_customer(arguments["customer_id"]))

        elif name == "minimall_seller_payouts":
            return _text(session.enter(PayoutPage).load())

        else:
            return _text(f"Unknown tool: {name}")

    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return _text(f"Error: {str(e)}")


def init_state(settings: Settings, client: Optional[MinimallClient] = None) -> None:
    """Build the client and page session for this process."""
    global minimall_client, session, credentials

    minimall_client = client or MinimallClient.from_settings(settings)
    session = PageSession(minimall_client)

    if settings.has_credentials:
        credentials = AuthCredentials(email=settings.email, password=settings.password)
        logger.info(f"Credentials loaded from environment for: {settings.email}")
    else:
        credentials = None
        logger.warning("No credentials found in environment variables (MINIMALL_EMAIL, MINIMALL_PASSWORD)")
        logger.warning("Cart and order operations will require manual login via minimall_signin tool")


async def main() -> None:
    """Main entry point for the MCP server."""
    settings = Settings.from_env()
    logging.getLogger().setLevel(settings.log_level)
    init_state(settings)

    logger.info(f"Starting Minimall MCP Server against {settings.api_url}...")

    # Import and run the server
    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await app.run(
            read_stream,
            write_stream,
            app.create_initialization_options(),
        )


if __name__ == "__main__":
    asyncio.run(main())
