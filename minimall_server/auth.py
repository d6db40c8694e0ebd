"""Session persistence for the Minimal Mall client."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from .models import SessionData, UserProfile

logger = logging.getLogger(__name__)


class AuthManager:
    """Manages the bearer token and the small amount of state kept between pages."""

    def __init__(self, session_file: Optional[str] = None) -> None:
        """
        Initialize the authentication manager.

        Args:
            session_file: Path to store session data. Defaults to ~/.minimall_session.json
        """
        if session_file is None:
            session_file = str(Path.home() / ".minimall_session.json")
        self.session_file = session_file
        self.session: SessionData = self._load_session()

    def _load_session(self) -> SessionData:
        """Load session data from file if it exists."""
        if os.path.exists(self.session_file):
            try:
                with open(self.session_file, "r") as f:
                    data = json.load(f)
                    return SessionData(**data)
            except (json.JSONDecodeError, ValueError, TypeError) as e:
                # A corrupted file starts a fresh session
                logger.warning(f"Could not load session from {self.session_file}: {e}")
        return SessionData()

    def _save_session(self) -> None:
        """Save session data to file."""
        with open(self.session_file, "w") as f:
            json.dump(self.session.model_dump(), f, default=str, indent=2)
        os.chmod(self.session_file, 0o600)

    def save_token(self, token: str, user: Optional[dict[str, Any]] = None) -> None:
        """
        Store a freshly issued token.

        Args:
            token: Bearer token returned by sign-in, sign-up or OTP verification
            user: User profile returned alongside the token, if any
        """
        self.session.access_token = token
        if user is not None:
            self.session.user = user
        self._save_session()
        logger.info(f"Session saved to {self.session_file}")

    def get_token(self) -> Optional[str]:
        return self.session.access_token

    def is_authenticated(self) -> bool:
        """Presence check only; the backend decides whether the token is still valid."""
        return bool(self.session.access_token)

    def save_user(self, user: dict[str, Any]) -> None:
        self.session.user = user
        self._save_session()

    def get_user(self) -> Optional[UserProfile]:
        if not self.session.user:
            return None
        try:
            return UserProfile(**self.session.user)
        except ValueError as e:
            logger.warning(f"Cached user profile is invalid: {e}")
            return None

    def set_pending_signup(self, payload: dict[str, Any]) -> None:
        self.session.pending_signup = payload
        self._save_session()

    def get_pending_signup(self) -> Optional[dict[str, Any]]:
        return self.session.pending_signup

    def clear_pending_signup(self) -> None:
        if self.session.pending_signup is not None:
            self.session.pending_signup = None
            self._save_session()

    def set_last_order(self, order: dict[str, Any]) -> None:
        self.session.last_order = order
        self._save_session()

    def pop_last_order(self) -> Optional[dict[str, Any]]:
        """Return the last order confirmation and forget it."""
        order = self.session.last_order
        if order is not None:
            self.session.last_order = None
            self._save_session()
        return order

    def clear_session(self) -> None:
        """Forget the token and every cached value, and delete the file."""
        self.session = SessionData()
        if os.path.exists(self.session_file):
            try:
                os.remove(self.session_file)
                logger.info("Session cleared")
            except OSError as e:
                logger.warning(f"Could not delete session file: {e}")
