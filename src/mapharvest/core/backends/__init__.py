"""Browsing engine contract and the Playwright implementation."""

from .base import (
    ActionFailed,
    Backend,
    BackendError,
    BrowserError,
    BrowserPage,
    ElementNotFound,
    ElementRef,
    NavigationTimeout,
    WaitTimeout,
)
from .playwright_backend import PlaywrightBackend, PlaywrightPage

__all__ = [
    # Contract
    "Backend",
    "BrowserPage",
    "ElementRef",
    # Errors
    "BackendError",
    "BrowserError",
    "NavigationTimeout",
    "WaitTimeout",
    "ElementNotFound",
    "ActionFailed",
    # Playwright backend
    "PlaywrightBackend",
    "PlaywrightPage",
]
