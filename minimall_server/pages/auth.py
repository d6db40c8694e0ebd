"""Sign-in, sign-up with email verification, and sign-out."""

import logging
from typing import Any, Optional

from ..models import AuthCredentials
from ..views import render_auth
from .base import CATALOG_URL, ActionResult, Page, PageResult, Redirect

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _require_email(email: str) -> str:
    email = (email or "").strip()
    if "@" not in email:
        raise ValueError("Please enter a valid email address")
    return email


class AuthPage(Page):
    """
    Login and signup page.

    Signing up is a two-step submit: the first call sends a verification
    code and holds the signup payload in the session; the next call with the
    code verifies it and creates the account.
    """

    name = "auth"

    def __init__(self, client) -> None:
        super().__init__(client)
        self.otp_sent = client.auth_manager.get_pending_signup() is not None

    def fetch(self) -> dict[str, Any]:
        if self.client.auth_manager.is_authenticated():
            raise Redirect(CATALOG_URL, "You are already signed in")
        pending = self.client.auth_manager.get_pending_signup()
        return {"otp_sent": self.otp_sent, "pending_email": pending.get("email") if pending else None}

    def render(self, data: dict[str, Any]) -> str:
        return render_auth(None, data["otp_sent"], data["pending_email"])

    def signin(self, email: str, password: str) -> ActionResult:
        def do_signin() -> None:
            if not password:
                raise ValueError("Please enter your password")
            user = self.client.signin(AuthCredentials(email=_require_email(email), password=password))
            name = user.full_name if user and user.full_name else None
            raise Redirect(CATALOG_URL, f"Welcome back, {name}!" if name else "Signed in successfully", "success")

        return self.run_action("signin", do_signin)

    def submit_signup(
        self,
        email: str = "",
        password: str = "",
        full_name: str = "",
        phone: Optional[str] = None,
        otp: Optional[str] = None,
    ) -> ActionResult:
        """First call sends the code; the call after that verifies `otp` and signs up."""
        if self.otp_sent:
            return self.run_action("signup", lambda: self._complete_signup(otp))
        return self.run_action(
            "signup", lambda: self._start_signup(email, password, full_name, phone), success=lambda msg: msg
        )

    def _start_signup(self, email: str, password: str, full_name: str, phone: Optional[str]) -> str:
        email = _require_email(email)
        if not full_name or not full_name.strip():
            raise ValueError("Please enter your full name")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        message = self.client.send_otp(email)
        self.client.auth_manager.set_pending_signup(
            {"email": email, "password": password, "full_name": full_name.strip(), "phone": phone or None}
        )
        self.otp_sent = True
        return message

    def _complete_signup(self, otp: Optional[str]) -> None:
        pending = self.client.auth_manager.get_pending_signup()
        if pending is None:
            self.otp_sent = False
            raise ValueError("Your signup session expired. Please start again.")
        if not otp or not otp.strip():
            raise ValueError("Please enter the verification code")

        signed_in = self.client.verify_otp(pending["email"], otp.strip())
        if not signed_in:
            self.client.signup(**pending)
        if not self.client.auth_manager.is_authenticated():
            self.client.signin(AuthCredentials(email=pending["email"], password=pending["password"]))

        self.client.auth_manager.clear_pending_signup()
        self.otp_sent = False
        logger.info(f"Signup completed for {pending['email']}")
        raise Redirect(CATALOG_URL, "Account created! Welcome to Minimal Mall.", "success")

    def resend_otp(self) -> ActionResult:
        def do_resend() -> str:
            pending = self.client.auth_manager.get_pending_signup()
            if pending is None:
                raise ValueError("Start signing up first")
            return self.client.send_otp(pending["email"])

        return self.run_action("resend_otp", do_resend, success=lambda msg: msg, reload=False)

    def cancel_signup(self) -> PageResult:
        self.client.auth_manager.clear_pending_signup()
        self.otp_sent = False
        return self.load()

    def signup(self, email: str, password: str, full_name: str, phone: Optional[str] = None) -> ActionResult:
        """Create the account without email verification."""

        def do_signup() -> None:
            if len(password or "") < MIN_PASSWORD_LENGTH:
                raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
            result = self.client.signup(_require_email(email), password, full_name, phone)
            if not self.client.auth_manager.is_authenticated():
                self.client.signin(AuthCredentials(email=email.strip(), password=password))
            raise Redirect(CATALOG_URL, result["message"], "success")

        return self.run_action("signup", do_signup)

    def account(self) -> ActionResult:
        """Check the stored token with the backend and refresh the cached user."""

        def do_account() -> dict[str, Any]:
            if not self.client.verify_token():
                raise Redirect(self.client.login_url, "Your session has expired. Please sign in again.", "warning")
            user = self.client.get_current_user()
            return {"user": user, "view": render_auth(user)}

        return self.run_action("account", do_account, success="Session is active", reload=False)

    def signout(self) -> ActionResult:
        def do_signout() -> None:
            self.client.signout()
            raise Redirect(self.client.login_url, "Signed out")

        return self.run_action("signout", do_signout)
