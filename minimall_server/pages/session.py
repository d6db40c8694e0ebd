"""Keeps the page the user is currently on, one per page type."""

import logging
from typing import Any, TypeVar

from ..minimall_client import MinimallClient
from .base import Page

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Page)


class PageSession:
    """
    Page instances for a single user.

    `enter` builds a fresh controller (navigation discards the previous one
    of the same type). `current` returns the controller that later actions
    apply to, entering and loading it first if the user never visited it.
    """

    def __init__(self, client: MinimallClient) -> None:
        self.client = client
        self.pages: dict[type, Page] = {}

    def enter(self, page_cls: type[P], **kwargs: Any) -> P:
        page = page_cls(self.client, **kwargs)
        self.pages[page_cls] = page
        return page

    def current(self, page_cls: type[P]) -> P:
        page = self.pages.get(page_cls)
        if page is None:
            logger.info(f"Entering {page_cls.name} before running an action on it")
            page = self.enter(page_cls)
            page.load()
        return page  # type: ignore[return-value]

    def reset(self) -> None:
        """Forget every page, e.g. after signing out."""
        self.pages.clear()
