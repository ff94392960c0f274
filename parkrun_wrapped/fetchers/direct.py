"""
Direct HTTP fetch strategy.
Issues a single request with a desktop-browser header set.
"""

from typing import Dict, Optional

import requests

from .base import BROWSER_HEADERS, FetchError, FetchErrorKind, Fetcher
from ..utils.logging_utils import get_logger


class DirectFetcher(Fetcher):
    """Fetch pages with ``requests`` while looking like a regular browser visit."""

    name = "direct"

    def __init__(self, timeout: float = 20, headers: Optional[Dict[str, str]] = None):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(headers or BROWSER_HEADERS)
        self.logger = get_logger(__name__)

    def fetch(self, url: str) -> str:
        """
        Fetch a page.

        Args:
            url: Page to retrieve

        Returns:
            Decoded response body

        Raises:
            FetchError: on timeout, connection failure or a non-success status
        """
        self.logger.info("Fetching %s (direct)", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise FetchError(FetchErrorKind.TIMEOUT, f"Request to {url} timed out after {self.timeout}s") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FetchError(FetchErrorKind.HTTP_STATUS, f"HTTP {status} for {url}", status_code=status) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(FetchErrorKind.NETWORK, f"Network error for {url}: {e}") from e

        self.logger.info("Fetched %s: %d characters", url, len(response.text))
        return response.text

    def close(self) -> None:
        self.session.close()
