"""Runtime configuration loaded from environment variables."""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://minimallbackend.onrender.com"


class Settings(BaseModel):
    """Settings shared by the MCP server, the HTTP server and the client."""

    api_url: str = Field(default=DEFAULT_API_URL, description="Backend origin")
    session_file: str = Field(
        default_factory=lambda: str(Path.home() / ".minimall_session.json"),
        description="Where the session (token, profile) is persisted",
    )
    login_url: str = Field(default="/login", description="Login entry point for redirects")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    email: Optional[str] = Field(None, description="Auto sign-in email")
    password: Optional[str] = Field(None, description="Auto sign-in password")
    log_level: str = Field(default="INFO", description="Root log level")

    @property
    def has_credentials(self) -> bool:
        return bool(self.email and self.password)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from MINIMALL_* environment variables.

        Unset variables keep their defaults. An unparsable timeout is logged
        and ignored.
        """
        values: dict = {}

        api_url = os.environ.get("MINIMALL_API_URL")
        if api_url:
            values["api_url"] = api_url.rstrip("/")

        session_file = os.environ.get("MINIMALL_SESSION_FILE")
        if session_file:
            values["session_file"] = os.path.expanduser(session_file)

        login_url = os.environ.get("MINIMALL_LOGIN_URL")
        if login_url:
            values["login_url"] = login_url

        timeout = os.environ.get("MINIMALL_TIMEOUT")
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError:
                logger.warning(f"Ignoring invalid MINIMALL_TIMEOUT: {timeout}")

        values["email"] = os.environ.get("MINIMALL_EMAIL")
        values["password"] = os.environ.get("MINIMALL_PASSWORD")
        values["log_level"] = os.environ.get("MINIMALL_LOG_LEVEL", "INFO").upper()

        return cls(**values)
