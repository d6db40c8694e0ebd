"""Page controllers, one per storefront page."""

from .auth import AuthPage
from .base import ActionResult, Page, PageResult, Redirect, Toast
from .cart import CartPage
from .catalog import CatalogPage, ProductDetailPage
from .checkout import CheckoutPage, OrderSuccessPage
from .orders import OrderDetailsPage, OrderHistoryPage
from .profile import ProfilePage
from .seller import CustomersPage, PayoutPage, SellerDashboardPage, SellerOrdersPage, SellerProductsPage
from .session import PageSession

__all__ = [
    "ActionResult",
    "AuthPage",
    "CartPage",
    "CatalogPage",
    "CheckoutPage",
    "CustomersPage",
    "OrderDetailsPage",
    "OrderHistoryPage",
    "OrderSuccessPage",
    "Page",
    "PageResult",
    "PageSession",
    "PayoutPage",
    "ProductDetailPage",
    "ProfilePage",
    "Redirect",
    "SellerDashboardPage",
    "SellerOrdersPage",
    "SellerProductsPage",
    "Toast",
]
