"""Fetch strategies for results pages."""

from typing import Optional

from .base import BROWSER_HEADERS, FetchError, FetchErrorKind, Fetcher
from .direct import DirectFetcher
from .external import ExternalProcessFetcher
from .headless import HeadlessFetcher
from ..utils.config import Config


def create_fetcher(name: Optional[str] = None, settings: Optional[Config] = None) -> Fetcher:
    """Build the fetch strategy selected by name (defaults to ``settings.FETCHER``)."""
    settings = settings or Config
    name = (name or settings.FETCHER).lower()
    fetch = settings.FETCH_SETTINGS
    if name == "direct":
        return DirectFetcher(timeout=fetch["request_timeout"])
    if name == "headless":
        browser = settings.BROWSER_SETTINGS
        return HeadlessFetcher(
            user_agents=browser["user_agents"],
            window_size=browser["window_size"],
            page_load_timeout=fetch["page_load_timeout"],
            ready_state_timeout=fetch["ready_state_timeout"],
            settle_delay=fetch["settle_delay"],
            headless=browser.get("headless", True),
        )
    if name == "external":
        return ExternalProcessFetcher(
            timeout=fetch["request_timeout"],
            max_output_bytes=fetch["max_output_bytes"],
            binary=fetch["curl_binary"],
        )
    raise ValueError(f"Unknown fetcher: {name!r} (expected direct, headless or external)")


__all__ = [
    "BROWSER_HEADERS",
    "DirectFetcher",
    "ExternalProcessFetcher",
    "FetchError",
    "FetchErrorKind",
    "Fetcher",
    "HeadlessFetcher",
    "create_fetcher",
]
