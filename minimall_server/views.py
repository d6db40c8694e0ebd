"""Plain-text renderers for every page."""

from decimal import Decimal
from typing import Any, Optional

from .formatting import (
    DELIVERY_OPTIONS,
    EARNING_STATUSES,
    PAYMENT_METHODS,
    format_date,
    format_delivery_option,
    format_payment_method,
    format_peso,
    format_status,
    pluralize,
)
from .models import (
    Cart,
    Category,
    CheckoutSummary,
    CustomerAggregate,
    Order,
    OrderConfirmation,
    Product,
    ProductList,
    ProfileDashboard,
    SellerApplication,
    SellerOrder,
    SellerOrderList,
    SellerProfile,
    SellerStats,
    ShippingAddress,
    Transaction,
    UserProfile,
)

RULE = "=" * 50


def render_auth(user: Optional[UserProfile], otp_sent: bool = False, pending_email: Optional[str] = None) -> str:
    if user:
        return f"Signed in as {user.full_name or user.email}"
    if otp_sent and pending_email:
        return f"A verification code was sent to {pending_email}. Enter it to finish signing up."
    return "Not signed in. Sign in or create an account."


def _product_lines(index: int, product: Product, selected: bool = False) -> list[str]:
    marker = "[x] " if selected else ""
    lines = [f"\n{index}. {marker}{product.name}"]
    lines.append(f"   ID: {product.id}")
    lines.append(f"   Price: {format_peso(product.price)}")
    if product.compare_at_price and product.compare_at_price > product.price:
        lines.append(f"   Was: {format_peso(product.compare_at_price)}")
    if product.quantity_in_stock > 0:
        lines.append(f"   In stock: {product.quantity_in_stock}")
    else:
        lines.append("   Out of stock")
    return lines


def render_catalog(
    products: ProductList,
    categories: list[Category],
    cart_count: Optional[int],
    selected: set[int],
    page: int,
    total_pages: int,
    heading: Optional[str] = None,
) -> str:
    result_lines = []
    if cart_count is not None:
        result_lines.append(f"Cart: {pluralize(cart_count, 'item')}")
    if heading:
        result_lines.append(heading)
    if categories:
        result_lines.append("Categories: " + ", ".join(f"{c.name} ({c.id})" for c in categories))

    if not products.products:
        result_lines.append("\nNo products found.")
        return "\n".join(result_lines)

    result_lines.append(f"\nFound {products.total} product(s), page {page} of {total_pages}:")
    for i, product in enumerate(products.products, 1):
        result_lines.extend(_product_lines(i, product, product.id in selected))
    if selected:
        result_lines.append(f"\n{pluralize(len(selected), 'product')} selected")
    return "\n".join(result_lines)


def render_product(product: Product) -> str:
    result_lines = [product.name, RULE]
    result_lines.append(f"Price: {format_peso(product.price)}")
    if product.compare_at_price and product.compare_at_price > product.price:
        result_lines.append(f"Original price: {format_peso(product.compare_at_price)}")
    result_lines.append(f"Availability: {format_status(product.status)}")
    if product.sku:
        result_lines.append(f"SKU: {product.sku}")
    if product.short_description:
        result_lines.append(f"\n{product.short_description}")
    if product.description:
        result_lines.append(f"\n{product.description}")
    return "\n".join(result_lines)


def render_cart(cart: Cart, subtotal: Decimal, tax: Decimal, total: Decimal) -> str:
    if not cart.items:
        return "Your cart is empty.\nBrowse products to add items. Checkout is unavailable."

    result_lines = [f"Shopping Cart ({pluralize(cart.item_count, 'item')}):\n"]
    for i, item in enumerate(cart.items, 1):
        result_lines.append(f"\n{i}. {item.product_name}")
        if item.variant_name:
            result_lines.append(f"   {item.variant_name}: {item.variant_value}")
        result_lines.append(f"   Item ID: {item.id}")
        result_lines.append(f"   Price: {format_peso(item.price_at_time)}")
        result_lines.append(f"   Quantity: {item.quantity}")
        result_lines.append(f"   Subtotal: {format_peso(item.subtotal)}")

    result_lines.append(f"\n{RULE}")
    result_lines.append(f"Subtotal: {format_peso(subtotal)}")
    result_lines.append(f"Estimated tax (12%): {format_peso(tax)}")
    result_lines.append("Shipping: Free")
    result_lines.append(f"Total: {format_peso(total)}")
    return "\n".join(result_lines)


def _transaction_lines(transactions: list[Transaction]) -> list[str]:
    if not transactions:
        return ["No transactions yet"]
    return [
        f"#{t.order_number or t.order_id}  {format_date(t.created_at)}  {format_peso(t.amount)}  {format_status(t.status)}"
        for t in transactions
    ]


def render_profile(dashboard: ProfileDashboard, application: Optional[SellerApplication]) -> str:
    profile = dashboard.profile
    result_lines = [profile.full_name or "Customer", RULE]
    result_lines.append(f"Email: {profile.email or 'N/A'}")
    if profile.phone:
        result_lines.append(f"Phone: {profile.phone}")

    if profile.is_seller or (application and application.status == "approved"):
        result_lines.append("Seller account: active (open the seller dashboard)")
    elif application and application.status == "pending":
        result_lines.append("Seller application: under review")
    elif application and application.status == "rejected":
        result_lines.append("Seller application: rejected, you may apply again")
        if application.admin_notes:
            result_lines.append(f"   Notes: {application.admin_notes}")
    else:
        result_lines.append("Start selling: apply for a seller account")

    if dashboard.statistics:
        result_lines.append("\nStatistics:")
        for key, value in dashboard.statistics.items():
            result_lines.append(f"   {format_status(key)}: {value}")

    result_lines.append("\nRecent transactions:")
    result_lines.extend(f"   {line}" for line in _transaction_lines(dashboard.recent_transactions))
    return "\n".join(result_lines)


def _order_summary_line(order: Order) -> str:
    return (
        f"Order #{order.order_number}  {format_date(order.created_at)}  "
        f"{pluralize(len(order.items), 'item')}  {format_peso(order.total)}  {format_status(order.status)}"
    )


def render_order_history(pending: list[Order], completed: list[Order], search: Optional[str] = None) -> str:
    result_lines = []
    if search:
        result_lines.append(f'Filtered by "{search}"\n')

    result_lines.append(f"Pending orders ({len(pending)}):")
    if pending:
        result_lines.extend(f"   {_order_summary_line(o)}" for o in pending)
    else:
        result_lines.append("   No pending orders")

    result_lines.append(f"\nCompleted orders ({len(completed)}):")
    if completed:
        result_lines.extend(f"   {_order_summary_line(o)}" for o in completed)
    else:
        result_lines.append("   No completed orders")
    return "\n".join(result_lines)


def _address_lines(address: ShippingAddress) -> list[str]:
    lines = [address.full_name, address.address_line1]
    if address.address_line2:
        lines.append(address.address_line2)
    lines.append(f"{address.city}, {address.state} {address.postal_code}")
    if address.country:
        lines.append(address.country)
    lines.append(f"Phone: {address.phone}")
    return lines


def render_order_details(order: Order) -> str:
    result_lines = [f"Order #{order.order_number}"]
    result_lines.append(f"Placed: {format_date(order.created_at, with_time=True)}")
    result_lines.append(f"Status: {format_status(order.status)}")
    result_lines.append(f"Delivery: {format_delivery_option(order.delivery_option)}")
    if order.estimated_delivery_date:
        result_lines.append(f"Estimated delivery: {format_date(order.estimated_delivery_date)}")
    if order.tracking_number:
        result_lines.append(f"Tracking: {order.tracking_number}")
    if order.payment_method:
        result_lines.append(f"Payment: {format_payment_method(order.payment_method)}")

    if order.shipping_address:
        result_lines.append("\nShip to:")
        result_lines.extend(f"   {line}" for line in _address_lines(order.shipping_address))
    result_lines.append(f"Email: {order.user_email or 'N/A'}")

    if order.items:
        result_lines.append(f"\nItems ({len(order.items)}):")
        for item in order.items:
            variant = f" ({item.variant_name}: {item.variant_value})" if item.variant_name else ""
            result_lines.append(
                f"   - {item.product_name}{variant} x{item.quantity} @ {format_peso(item.price)} = {format_peso(item.subtotal)}"
            )

    result_lines.append(f"\n{RULE}")
    result_lines.append(f"Subtotal: {format_peso(order.subtotal)}")
    result_lines.append(f"Tax: {format_peso(order.tax)}")
    result_lines.append(f"Shipping: {format_peso(order.shipping_fee)}")
    result_lines.append(f"Total: {format_peso(order.total)}")
    return "\n".join(result_lines)


def render_checkout_summary(summary: CheckoutSummary) -> list[str]:
    """Breakdown lines. The total is the backend's, which defaults to the sum of the other rows."""
    return [
        f"Subtotal: {format_peso(summary.subtotal)}",
        f"Tax: {format_peso(summary.tax)}",
        f"Marketplace fee: {format_peso(summary.marketplace_fee)}",
        f"Shipping: {format_peso(summary.shipping_fee)}",
        f"Total: {format_peso(summary.total)}",
    ]


def render_checkout(
    summary: CheckoutSummary,
    address: Optional[ShippingAddress],
    delivery_option: str,
    payment_method: Optional[str],
) -> str:
    result_lines = [f"You have {pluralize(summary.item_count, 'item')} in your cart\n"]

    result_lines.append("Shipping address:")
    if address:
        result_lines.extend(f"   {line}" for line in _address_lines(address))
    else:
        result_lines.append("   Not set")

    result_lines.append("\nDelivery options:")
    for code, option in DELIVERY_OPTIONS.items():
        marker = "(*)" if code == delivery_option else "( )"
        result_lines.append(f"   {marker} {option['label']} - {format_peso(option['fee'])} ({option['eta']})")

    result_lines.append("\nPayment method:")
    for code, label in PAYMENT_METHODS.items():
        marker = "(*)" if code == payment_method else "( )"
        result_lines.append(f"   {marker} {label}")

    result_lines.append(f"\n{RULE}")
    result_lines.extend(render_checkout_summary(summary))
    if not address or not payment_method:
        result_lines.append("\nSet a shipping address and payment method to place the order.")
    return "\n".join(result_lines)


def render_order_success(confirmation: Optional[OrderConfirmation]) -> str:
    if confirmation is None:
        return f"Order placed.\nTotal: {format_peso(0)}\nSee your order history for details."
    result_lines = ["Thank you for your order!", RULE]
    result_lines.append(f"Order number: {confirmation.order_number}")
    result_lines.append(f"Total: {format_peso(confirmation.total)}")
    result_lines.append(f"Payment: {format_payment_method(confirmation.payment_method)}")
    if confirmation.estimated_delivery_date:
        result_lines.append(f"Estimated delivery: {format_date(confirmation.estimated_delivery_date)}")
    return "\n".join(result_lines)


def render_seller_dashboard(
    profile: SellerProfile,
    statistics: Optional[dict[str, Any]],
    statistics_error: Optional[str],
    transactions: Optional[list[Transaction]],
    transactions_error: Optional[str],
) -> str:
    verified = " (verified)" if profile.is_verified else ""
    result_lines = [f"{profile.store_name or 'My Store'}{verified}", RULE]

    result_lines.append("Statistics:")
    if statistics_error:
        result_lines.append(f"   Could not load statistics: {statistics_error}")
    elif statistics:
        for key, value in statistics.items():
            result_lines.append(f"   {format_status(key)}: {value}")
    else:
        result_lines.append("   No statistics yet")

    result_lines.append("\nRecent transactions:")
    if transactions_error:
        result_lines.append(f"   Could not load transactions: {transactions_error}")
    else:
        result_lines.extend(f"   {line}" for line in _transaction_lines(transactions or []))
    return "\n".join(result_lines)


def _stats_line(stats: SellerStats) -> str:
    return (
        f"Orders: {stats.total_orders}  Pending: {stats.pending_orders}  "
        f"Revenue: {format_peso(stats.total_revenue, grouping=True)}  "
        f"Avg order: {format_peso(stats.avg_order_value)}"
    )


def render_seller_orders(order_list: SellerOrderList, status: str, date_range: str, search: Optional[str]) -> str:
    result_lines = []
    if order_list.stats:
        result_lines.append(_stats_line(order_list.stats))
    filters = f"Status: {format_status(status)}  Date: {format_status(date_range)}"
    if search:
        filters += f'  Search: "{search}"'
    result_lines.append(filters)

    if not order_list.orders:
        result_lines.append("\nNo orders found.")
        return "\n".join(result_lines)

    pagination = order_list.pagination
    result_lines.append(
        f"\nShowing {len(order_list.orders)} of {pagination.total_items} order(s), "
        f"page {pagination.current_page} of {pagination.total_pages}:"
    )
    for order in order_list.orders:
        result_lines.append(
            f"\n#{order.order_number or order.id}  {order.display_customer}  "
            f"{pluralize(order.item_count, 'item')}  {format_peso(order.display_amount)}"
        )
        result_lines.append(f"   ID: {order.id}  Status: {format_status(order.status)}  Date: {format_date(order.created_at)}")
    return "\n".join(result_lines)


def render_seller_order(order: SellerOrder) -> str:
    result_lines = [f"Order #{order.order_number or order.id}", RULE]
    result_lines.append(f"Customer: {order.display_customer}")
    if order.customer_email:
        result_lines.append(f"Email: {order.customer_email}")
    result_lines.append(f"Status: {format_status(order.status)}")
    result_lines.append(f"Date: {format_date(order.created_at, with_time=True)}")
    if order.tracking_number:
        result_lines.append(f"Tracking: {order.tracking_number}")
    for item in order.items:
        result_lines.append(f"   - {item.product_name} x{item.quantity} = {format_peso(item.subtotal)}")
    result_lines.append(f"Amount: {format_peso(order.display_amount)}")
    result_lines.append(f"Your payout: {format_peso(order.payout_amount)}")
    return "\n".join(result_lines)


def render_seller_products(
    products: list[Product], tab: str, counts: dict[str, int], page: int, total_pages: int
) -> str:
    tabs = "  ".join(
        f"{'[' + format_status(name) + ']' if name == tab else format_status(name)} ({count})"
        for name, count in counts.items()
    )
    result_lines = [tabs]
    if not products:
        result_lines.append("\nNo products in this view.")
        return "\n".join(result_lines)

    result_lines.append(f"\nPage {page} of {total_pages}:")
    for product in products:
        result_lines.append(
            f"   {product.id}. {product.name}  {format_peso(product.price)}  "
            f"stock {product.quantity_in_stock}  {format_status(product.status)}"
        )
    return "\n".join(result_lines)


def render_customers(customers: list[CustomerAggregate], total: int, search: Optional[str] = None) -> str:
    result_lines = [f"Customers: {total}"]
    if search:
        result_lines.append(f'Matching "{search}": {len(customers)}')
    if not customers:
        result_lines.append("\nNo customers found.")
        return "\n".join(result_lines)

    for customer in customers:
        result_lines.append(f"\n[{customer.initials}] {customer.name}")
        result_lines.append(f"   Email: {customer.email or 'N/A'}")
        result_lines.append(
            f"   Orders: {customer.order_count}  Spent: {format_peso(customer.total_spent, grouping=True)}  "
            f"Last order: {format_date(customer.last_order)}"
        )
    return "\n".join(result_lines)


def render_payout(info: dict[str, Any], transactions: list[SellerOrder], transactions_error: Optional[str]) -> str:
    result_lines = ["Payouts", RULE]
    result_lines.append(f"Available balance: {format_peso(info['available_balance'], grouping=True)}")
    result_lines.append(f"Total revenue: {format_peso(info['total_revenue'], grouping=True)}")
    result_lines.append(f"Marketplace fee: {info['commission_rate']}%")
    result_lines.append(f"Total orders: {info['total_orders']}  Avg order: {format_peso(info['average_order_value'])}")
    result_lines.append(f"Next payout: {format_date(info['next_payout_date'])}")

    result_lines.append("\nTransactions:")
    if transactions_error:
        result_lines.append(f"   Failed to load transactions: {transactions_error}")
    elif not transactions:
        result_lines.append("   No transactions yet")
    else:
        for order in transactions:
            sign = "+" if order.status in EARNING_STATUSES else "-"
            result_lines.append(
                f"   {order.order_number or order.id}  {format_date(order.created_at)}  "
                f"{transaction_type(order.status)}  {sign}{format_peso(order.payout_amount)}  {format_status(order.status)}"
            )
    return "\n".join(result_lines)


def transaction_type(status: str) -> str:
    if status == "cancelled":
        return "Cancelled Order"
    if status == "delivered":
        return "Sale Revenue"
    return "Pending Sale"
