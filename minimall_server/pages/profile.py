"""Customer profile page and seller application."""

import logging
from typing import Any, Optional

from ..errors import MinimallError, RequestFailedError, UnauthenticatedError
from ..models import SellerApplication
from ..views import render_profile
from .base import SELLER_DASHBOARD_URL, ActionResult, Page, Redirect

logger = logging.getLogger(__name__)

BUSINESS_TYPES = ("individual", "business")
MIN_STORE_NAME_LENGTH = 3


class ProfilePage(Page):
    name = "profile"

    def fetch(self) -> dict[str, Any]:
        dashboard = self.client.profile_dashboard()
        application = None
        if not dashboard.profile.is_seller:
            application = self._application_status()
        return {"dashboard": dashboard, "application": application}

    def _application_status(self) -> Optional[SellerApplication]:
        """The profile still renders when the status lookup fails."""
        try:
            return self.client.application_status()
        except UnauthenticatedError:
            raise
        except MinimallError as e:
            logger.warning(f"Could not fetch seller application status: {e.message}")
            return None

    def render(self, data: dict[str, Any]) -> str:
        return render_profile(data["dashboard"], data["application"])

    def apply_as_seller(self, store_name: str, business_type: str, description: Optional[str] = None) -> ActionResult:
        """
        Submit a seller application.

        Rejected before any request when the profile is not loaded, the user
        is already a seller, an application is approved, pending or otherwise
        active, the store name is shorter than three characters or the
        business type is unknown. A rejected application may be resubmitted.
        """

        def do_apply() -> str:
            if self.last_data is None:
                raise ValueError("Profile is still loading. Please try again.")
            if self.last_data["dashboard"].profile.is_seller:
                raise ValueError("You are already a seller")

            application: Optional[SellerApplication] = self.last_data["application"]
            status = application.status if application else None
            if status == "approved":
                raise Redirect(
                    SELLER_DASHBOARD_URL,
                    "Your application has been approved! Redirecting to seller dashboard...",
                    "success",
                )
            if status == "pending":
                raise ValueError("You already have a pending application. Please wait for approval.")
            if status and status != "rejected":
                raise ValueError("You already have an active application.")

            name = (store_name or "").strip()
            if len(name) < MIN_STORE_NAME_LENGTH:
                raise ValueError(f"Store name must be at least {MIN_STORE_NAME_LENGTH} characters")
            if business_type not in BUSINESS_TYPES:
                raise ValueError("Please select a business type")

            try:
                return self.client.apply_as_seller(name, business_type, description)
            except RequestFailedError as e:
                if e.status_code == 400 and "already" in e.message.lower():
                    raise ValueError("You already have an active seller application.") from e
                raise

        return self.run_action("apply_as_seller", do_apply, success=lambda msg: msg)

    def open_seller_dashboard(self) -> ActionResult:
        def do_open() -> None:
            data = self.last_data or {}
            dashboard = data.get("dashboard")
            application = data.get("application")
            if dashboard and dashboard.profile.is_seller:
                raise Redirect(SELLER_DASHBOARD_URL)
            if application and application.status == "approved":
                raise Redirect(SELLER_DASHBOARD_URL)
            if application and application.status == "pending":
                raise ValueError("Your seller application is currently under review.")
            raise ValueError("Apply for a seller account first")

        return self.run_action("open_seller_dashboard", do_open)

    def signout(self) -> ActionResult:
        def do_signout() -> None:
            self.client.signout()
            raise Redirect(self.client.login_url, "Signed out")

        return self.run_action("signout", do_signout)
