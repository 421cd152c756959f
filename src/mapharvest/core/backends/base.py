"""
Backend base classes.

Defines the browsing-engine contract the harvesting core is written
against. The core needs only navigation, selector queries, script
evaluation, scroll-into-view, click activation and condition-polling
waits with per-call timeouts; it never touches an engine's own API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


ElementRef = Any
"""Opaque engine handle for one DOM element; valid only in the DOM state it came from."""


class BrowserPage(ABC):
    """One isolated page owned by a single harvest session."""

    @abstractmethod
    async def goto(self, url: str, timeout_ms: int | None = None) -> None:
        """Navigate to a URL."""

    @abstractmethod
    async def fill(self, selector: str, value: str, timeout_ms: int | None = None) -> None:
        """Type a value into the input matching ``selector``."""

    @abstractmethod
    async def click_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        """Click the element matching ``selector``."""

    @abstractmethod
    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        """Wait until ``selector`` matches an element.

        Raises:
            WaitTimeout: If nothing matched before the timeout
        """

    @abstractmethod
    async def wait_for_function(
        self,
        script: str,
        arg: Any = None,
        timeout_ms: int | None = None,
    ) -> None:
        """Poll a JavaScript predicate until it returns a truthy value.

        Raises:
            WaitTimeout: If the predicate stayed falsy until the timeout
        """

    @abstractmethod
    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Evaluate a JavaScript function against the live document."""

    @abstractmethod
    async def query_all(self, selector: str) -> list[ElementRef]:
        """Return handles for every element matching ``selector``."""

    @abstractmethod
    async def evaluate_on(self, element: ElementRef, script: str) -> Any:
        """Evaluate a JavaScript function with ``element`` as its argument."""

    @abstractmethod
    async def scroll_into_view(self, element: ElementRef) -> None:
        """Scroll ``element`` into the viewport."""

    @abstractmethod
    async def click(self, element: ElementRef, timeout_ms: int | None = None) -> None:
        """Activate ``element`` with a click."""

    async def close(self) -> None:
        """Release the page. Engines without page resources need not override."""


class Backend(ABC):
    """Abstract browsing engine that hands out isolated pages."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""

    @abstractmethod
    async def new_page(self) -> BrowserPage:
        """Open a page in a fresh, isolated browsing context."""

    async def close(self) -> None:
        """Clean up backend resources."""

    async def __aenter__(self) -> "Backend":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class BackendError(Exception):
    """Base exception for backend errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.cause = cause


class BrowserError(BackendError):
    """Base exception for browser errors."""


class NavigationTimeout(BrowserError):
    """Page didn't load in time."""


class WaitTimeout(BrowserError):
    """A selector or predicate wait ran out of time."""


class ElementNotFound(BrowserError):
    """Selector didn't match any element."""


class ActionFailed(BrowserError):
    """Click/fill/scroll failed."""
