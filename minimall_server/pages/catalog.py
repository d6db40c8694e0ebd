"""Product listing and product detail pages."""

import logging
import math
from typing import Any, Optional, Union

from ..errors import MinimallError, UnauthenticatedError
from ..formatting import pluralize
from ..models import ProductList
from ..views import render_catalog, render_product
from .base import CATALOG_URL, ActionResult, Page, PageResult, Redirect, Toast

logger = logging.getLogger(__name__)


class CatalogPage(Page):
    """Product grid with search, category, tag and featured filters, pagination and multi-select."""

    name = "catalog"

    def __init__(self, client, per_page: int = 12) -> None:
        super().__init__(client)
        self.per_page = per_page
        self.page = 1
        self.search: Optional[str] = None
        self.category_id: Optional[int] = None
        self.category_slug: Optional[str] = None
        self.tag: Optional[str] = None
        self.featured = False
        self.selected: list[int] = []

    def fetch(self) -> dict[str, Any]:
        heading = None
        if self.search:
            found = self.client.search_products(self.search, limit=self.per_page)
            products = ProductList(products=found, total=len(found))
            heading = f'Results for "{self.search}"'
        elif self.featured:
            found = self.client.featured_products(limit=self.per_page)
            products = ProductList(products=found, total=len(found))
            heading = "Featured products"
        elif self.tag:
            found = self.client.products_by_tag(self.tag, limit=self.per_page)
            products = ProductList(products=found, total=len(found))
            heading = f'Tagged "{self.tag}"'
        else:
            category_id = self.category_id
            if self.category_slug:
                category = self.client.get_category(self.category_slug)
                category_id = category.id
                heading = f"Category: {category.name}"
            products = self.client.list_products(
                limit=self.per_page,
                offset=(self.page - 1) * self.per_page,
                category_id=category_id,
            )
        return {
            "products": products,
            "categories": self.client.list_categories(),
            "cart_count": self._cart_count(),
            "heading": heading,
            "page": self.page,
            "total_pages": max(1, math.ceil(products.total / self.per_page)),
        }

    def _cart_count(self) -> Optional[int]:
        """Badge count; the catalog still renders without it."""
        if not self.client.auth_manager.is_authenticated():
            return None
        try:
            return self.client.cart_count()
        except UnauthenticatedError:
            raise
        except MinimallError as e:
            logger.warning(f"Could not load cart count: {e.message}")
            return None

    def render(self, data: dict[str, Any]) -> str:
        return render_catalog(
            data["products"],
            data["categories"],
            data["cart_count"],
            set(self.selected),
            data["page"],
            data["total_pages"],
            data["heading"],
        )

    def set_filters(
        self,
        search: Optional[str] = None,
        category: Union[int, str, None] = None,
        tag: Optional[str] = None,
        featured: bool = False,
        page: int = 1,
    ) -> PageResult:
        """
        Replace the listing filters and load the page.

        Search wins over the featured list, which wins over a tag. A category
        is given by id or by slug.
        """
        self.search = search.strip() if search and search.strip() else None
        self.tag = tag.strip() if tag and tag.strip() else None
        self.featured = bool(featured)
        self.category_id = None
        self.category_slug = None
        if isinstance(category, int) or (isinstance(category, str) and category.strip().isdigit()):
            self.category_id = int(category)
        elif isinstance(category, str) and category.strip():
            self.category_slug = category.strip()
        self.page = max(1, page)
        return self.load()

    def toggle_selection(self, product_id: int) -> PageResult:
        if product_id in self.selected:
            self.selected.remove(product_id)
        else:
            self.selected.append(product_id)
        return self.rerender()

    def add_to_cart(self, product_id: int, quantity: int = 1) -> ActionResult:
        return self.run_action(
            f"add:{product_id}", lambda: self.client.add_to_cart(product_id, quantity), success="Added to cart"
        )

    def add_selected_to_cart(self) -> ActionResult:
        """
        Add every selected product to the cart, one request at a time.

        Successes and failures are reported as separate toasts. Products that
        were added are deselected; failed ones stay selected.
        """
        key = "add_selected"
        if not self.selected:
            return ActionResult(action=key, ok=False, toasts=[Toast(level="warning", message="Select products first")])
        if key in self.busy:
            return ActionResult(action=key, ok=False, toasts=[Toast(level="warning", message="Please wait...")])

        self.busy.add(key)
        added = 0
        failed = 0
        try:
            for product_id in list(self.selected):
                try:
                    self.client.add_to_cart(product_id, 1)
                except UnauthenticatedError:
                    return ActionResult(
                        action=key,
                        ok=False,
                        error_kind="unauthenticated",
                        redirect_to=self.client.login_url,
                        toasts=[Toast(level="error", message="Please sign in to add items to your cart")],
                    )
                except MinimallError as e:
                    logger.warning(f"Failed to add product {product_id}: {e.message}")
                    failed += 1
                    continue
                except Exception as e:
                    logger.error(f"Failed to add product {product_id}: {e}", exc_info=True)
                    failed += 1
                    continue
                added += 1
                self.selected.remove(product_id)
        finally:
            self.busy.discard(key)

        toasts = []
        if added:
            toasts.append(Toast(level="success", message=f"Added {pluralize(added, 'product')} to cart"))
        if failed:
            toasts.append(Toast(level="error", message=f"Failed to add {pluralize(failed, 'product')}"))
        return ActionResult(action=key, ok=failed == 0, toasts=toasts, page=self.load(), data={"added": added, "failed": failed})


class ProductDetailPage(Page):
    """One product, looked up by id or slug."""

    name = "product"
    not_found_redirect = CATALOG_URL

    def __init__(self, client, product_id: Optional[int] = None, slug: Optional[str] = None) -> None:
        super().__init__(client)
        self.product_id = product_id
        self.slug = slug

    def fetch(self) -> dict[str, Any]:
        if self.product_id is not None:
            product = self.client.get_product(self.product_id)
        elif self.slug:
            product = self.client.get_product_by_slug(self.slug)
        else:
            raise Redirect(CATALOG_URL, "Product not found", "warning")
        return {"product": product}

    def render(self, data: dict[str, Any]) -> str:
        return render_product(data["product"])

    def add_to_cart(self, quantity: int = 1) -> ActionResult:
        def do_add() -> str:
            if quantity < 1:
                raise ValueError("Quantity must be at least 1")
            product = self.last_data["product"] if self.last_data else None
            if product is not None:
                if product.quantity_in_stock <= 0:
                    raise ValueError("This product is out of stock")
                if quantity > product.quantity_in_stock:
                    raise ValueError(f"Only {product.quantity_in_stock} left in stock")
                return self.client.add_to_cart(product.id, quantity)
            if self.product_id is None:
                raise ValueError("Product not loaded yet")
            return self.client.add_to_cart(self.product_id, quantity)

        return self.run_action("add_to_cart", do_add, success=f"Added {quantity} to cart", reload=False)
