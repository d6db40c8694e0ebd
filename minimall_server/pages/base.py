"""Page controller base: load boundary, action runner and result types."""

import logging
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ..errors import MinimallError, UnauthenticatedError, ValidationFailedError
from ..minimall_client import MinimallClient

logger = logging.getLogger(__name__)

# Page locations used for redirects
CATALOG_URL = "/products"
CART_URL = "/cart"
PROFILE_URL = "/profile"
ORDERS_URL = "/orders"
CHECKOUT_URL = "/checkout"
ORDER_SUCCESS_URL = "/checkout/success"
SELLER_DASHBOARD_URL = "/seller"

# Error kinds a user can fix by trying again
RETRYABLE_KINDS = {"network", "failed"}


class Toast(BaseModel):
    """Transient notification shown after an action."""

    level: str = Field(description="success, error, warning or info")
    message: str


class PageResult(BaseModel):
    """Outcome of loading a page."""

    page: str
    ok: bool = True
    view: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    retry: bool = False
    redirect_to: Optional[str] = None
    toasts: list[Toast] = Field(default_factory=list)


class ActionResult(BaseModel):
    """Outcome of a user action. `page` is the reloaded page on success."""

    action: str
    ok: bool
    toasts: list[Toast] = Field(default_factory=list)
    page: Optional[PageResult] = None
    redirect_to: Optional[str] = None
    error_kind: Optional[str] = None
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)


def field_errors_from(error: ValidationError) -> dict[str, list[str]]:
    """Map a pydantic validation error to `{field: [messages]}`."""
    errors: dict[str, list[str]] = {}
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "__all__"
        errors.setdefault(field, []).append(item["msg"])
    return errors


class Redirect(Exception):
    """Raised from fetches and actions to send the user to another page."""

    def __init__(self, target: str, message: Optional[str] = None, level: str = "info") -> None:
        self.target = target
        self.message = message
        self.level = level
        super().__init__(message or target)


class Page:
    """
    A page controller.

    Created on page entry and discarded on navigation. Subclasses implement
    `fetch` (call the backend, return the data to show) and `render` (turn
    that data into a text view). `load` and `run_action` are the error
    boundaries: nothing raised below them reaches the caller.
    """

    name = "page"
    # Where a missing resource sends the user; None shows an empty state
    not_found_redirect: Optional[str] = None

    def __init__(self, client: MinimallClient) -> None:
        self.client = client
        self.busy: set[str] = set()
        self.last_data: Optional[dict[str, Any]] = None

    def fetch(self) -> dict[str, Any]:
        raise NotImplementedError

    def render(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    def load(self) -> PageResult:
        """Fetch and render the page, turning every failure into an error state."""
        try:
            data = self.fetch()
            view = self.render(data)
        except Redirect as r:
            toasts = [Toast(level=r.level, message=r.message)] if r.message else []
            return PageResult(page=self.name, redirect_to=r.target, toasts=toasts)
        except MinimallError as e:
            return self._error_result(e)
        except Exception as e:
            logger.error(f"Error loading {self.name}: {e}", exc_info=True)
            return PageResult(
                page=self.name, ok=False, error="Something went wrong. Please try again.", error_kind="failed", retry=True
            )
        self.last_data = data
        return PageResult(page=self.name, view=view, data=data)

    def rerender(self) -> PageResult:
        """Render the last fetched data again after a local change (filter, selection)."""
        if self.last_data is None:
            return self.load()
        return PageResult(page=self.name, view=self.render(self.last_data), data=self.last_data)

    def _error_result(self, error: MinimallError) -> PageResult:
        logger.warning(f"{self.name}: {error.kind}: {error.message}")
        result = PageResult(
            page=self.name,
            ok=False,
            error=self.describe_error(error),
            error_kind=error.kind,
            retry=error.kind in RETRYABLE_KINDS,
        )
        if isinstance(error, UnauthenticatedError):
            result.redirect_to = self.client.login_url
        elif isinstance(error, ValidationFailedError):
            result.field_errors = error.field_errors
        elif error.kind == "not_found" and self.not_found_redirect:
            result.redirect_to = self.not_found_redirect
        return result

    def describe_error(self, error: MinimallError) -> str:
        """Message shown in place of the page content."""
        return error.message

    def run_action(
        self,
        key: str,
        func: Callable[[], Any],
        success: Union[str, Callable[[Any], str], None] = None,
        reload: bool = True,
    ) -> ActionResult:
        """
        Run a user action.

        The action key is marked busy for the duration of the call. On failure
        the result carries an error toast and nothing is reloaded. On success
        the page is reloaded from the backend.

        Args:
            key: Action key, e.g. "remove:12"
            func: The backend call
            success: Success toast text, or a callable building it from the call's return value
            reload: Reload the page after a successful call
        """
        if key in self.busy:
            return ActionResult(action=key, ok=False, toasts=[Toast(level="warning", message="Please wait...")])

        self.busy.add(key)
        try:
            outcome = func()
        except Redirect as r:
            toasts = [Toast(level=r.level, message=r.message)] if r.message else []
            return ActionResult(action=key, ok=True, redirect_to=r.target, toasts=toasts)
        except MinimallError as e:
            logger.warning(f"Action {key} failed: {e.kind}: {e.message}")
            result = ActionResult(
                action=key,
                ok=False,
                error_kind=e.kind,
                toasts=[Toast(level="error", message=self.describe_error(e))],
            )
            if isinstance(e, UnauthenticatedError):
                result.redirect_to = self.client.login_url
            elif isinstance(e, ValidationFailedError):
                result.field_errors = e.field_errors
            return result
        except ValidationError as e:
            return ActionResult(
                action=key,
                ok=False,
                error_kind="validation",
                field_errors=field_errors_from(e),
                toasts=[Toast(level="warning", message="Please correct the highlighted fields")],
            )
        except ValueError as e:
            # Input rejected before reaching the backend
            return ActionResult(action=key, ok=False, error_kind="validation", toasts=[Toast(level="warning", message=str(e))])
        except Exception as e:
            logger.error(f"Action {key} failed: {e}", exc_info=True)
            return ActionResult(
                action=key,
                ok=False,
                error_kind="failed",
                toasts=[Toast(level="error", message="Something went wrong. Please try again.")],
            )
        finally:
            self.busy.discard(key)

        if callable(success):
            message = success(outcome)
        elif success:
            message = success
        else:
            message = outcome if isinstance(outcome, str) else "Done"

        return ActionResult(
            action=key,
            ok=True,
            toasts=[Toast(level="success", message=message)],
            page=self.load() if reload else None,
            data=outcome if isinstance(outcome, dict) else {},
        )
