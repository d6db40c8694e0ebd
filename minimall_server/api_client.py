"""HTTP access layer shared by every page: bearer auth and status-code policy."""

import logging
from typing import Any, Callable, Optional

import httpx

from .auth import AuthManager
from .errors import (
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RequestFailedError,
    UnauthenticatedError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


def _default_redirect(login_url: str) -> None:
    logger.warning(f"Redirecting to login: {login_url}")


class ApiClient:
    """Thin wrapper around httpx.Client that maps backend answers to errors."""

    def __init__(
        self,
        auth_manager: AuthManager,
        base_url: str,
        login_url: str = "/login",
        timeout: float = 30.0,
        on_unauthenticated: Optional[Callable[[str], None]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize the API client.

        Args:
            auth_manager: Session store holding the bearer token
            base_url: Backend origin, e.g. https://minimallbackend.onrender.com
            login_url: Where users are sent when their session is rejected
            timeout: Request timeout in seconds
            on_unauthenticated: Called with `login_url` once per rejected session
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.auth_manager = auth_manager
        self.login_url = login_url
        self.on_unauthenticated = on_unauthenticated or _default_redirect
        self.client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={
                "Accept": "application/json",
                "User-Agent": "minimall-mcp-server/0.1",
            },
        )

    def _redirect_to_login(self) -> None:
        self.auth_manager.clear_session()
        self.on_unauthenticated(self.login_url)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            UnauthenticatedError: No token stored, or the backend answered 401
            ForbiddenError: 403
            ValidationFailedError: 422
            NotFoundError: 404
            RequestFailedError: Any other non-2xx answer, or a body that is not JSON
            NetworkError: No response at all
        """
        headers = {}
        if authenticated:
            token = self.auth_manager.get_token()
            if not token:
                logger.warning(f"{method} {path}: no stored token")
                self._redirect_to_login()
                raise UnauthenticatedError("Please sign in to continue.", status_code=None)
            headers["Authorization"] = f"Bearer {token}"

        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}

        try:
            response = self.client.request(method, path, params=params, json=json, headers=headers)
        except httpx.TransportError as e:
            logger.error(f"{method} {path}: network error: {e}")
            raise NetworkError() from e

        logger.info(f"{method} {path} -> {response.status_code}")
        return self._handle_response(response)

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Any:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def _handle_response(self, response: httpx.Response) -> Any:
        status = response.status_code

        if response.is_success:
            if status == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise RequestFailedError(f"Invalid JSON response (HTTP {status})", status) from e

        body = self._error_body(response)
        message = self._error_message(body, status)

        if status == 401:
            logger.warning("Backend rejected the session, clearing stored credentials")
            self._redirect_to_login()
            raise UnauthenticatedError(status_code=status)

        if status == 403:
            raise ForbiddenError(message, status)

        if status == 422:
            field_errors = self._field_errors(body)
            if field_errors:
                details = "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in field_errors.items())
                message = f"Validation failed: {details}"
            elif message == f"HTTP {status}":
                message = "Validation failed"
            raise ValidationFailedError(message, field_errors, status)

        if status == 404:
            raise NotFoundError(message, status)

        raise RequestFailedError(message, status)

    @staticmethod
    def _error_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _error_message(body: Any, status: int) -> str:
        """Backend `detail` (or `message`), falling back to the HTTP status."""
        if isinstance(body, dict):
            detail = body.get("detail")
            if isinstance(detail, str) and detail:
                return detail
            if isinstance(detail, list):
                messages = [item.get("msg") for item in detail if isinstance(item, dict) and item.get("msg")]
                if messages:
                    return "; ".join(messages)
            message = body.get("message")
            if isinstance(message, str) and message:
                return message
        return f"HTTP {status}"

    @staticmethod
    def _field_errors(body: Any) -> dict[str, list[str]]:
        """
        Extract field-level messages from a validation error body.

        Handles FastAPI-style `{"detail": [{"loc": [...], "msg": ...}]}` and a
        flat `{"errors": {"field": "msg" | ["msg", ...]}}` mapping.
        """
        errors: dict[str, list[str]] = {}
        if not isinstance(body, dict):
            return errors

        detail = body.get("detail")
        if isinstance(detail, list):
            for item in detail:
                if not isinstance(item, dict) or not item.get("msg"):
                    continue
                loc = [str(part) for part in item.get("loc", []) if part not in ("body", "query", "path")]
                field = ".".join(loc) if loc else "__all__"
                errors.setdefault(field, []).append(item["msg"])

        extra = body.get("errors")
        if isinstance(extra, dict):
            for field, msgs in extra.items():
                if isinstance(msgs, str):
                    msgs = [msgs]
                errors.setdefault(str(field), []).extend(str(m) for m in msgs)

        return errors

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()


def ensure_success(data: Any, default_message: str) -> Any:
    """Raise when a 2xx envelope carries `success: false`."""
    if isinstance(data, dict) and data.get("success") is False:
        message = data.get("message") or data.get("detail") or default_message
        raise RequestFailedError(str(message))
    return data

