"""
Headless browser fetch strategy.
Renders the page in an isolated Chrome instance and returns the final DOM.
"""
from __future__ import annotations

import time
from typing import Optional, Sequence

from .base import FetchError, FetchErrorKind, Fetcher
from ..utils.logging_utils import get_logger

"""Note: selenium is imported lazily so the other strategies (and the tests)
do not need a browser stack installed."""

webdriver = None  # type: ignore
Service = None  # type: ignore
WebDriverWait = None  # type: ignore
ChromeDriverManager = None  # type: ignore
TimeoutException = None  # type: ignore
WebDriverException = None  # type: ignore


class HeadlessFetcher(Fetcher):
    """One fresh browser per fetch; the browser is always quit afterwards."""

    name = "headless"

    def __init__(
        self,
        user_agents: Sequence[str],
        window_size: str = "1366,768",
        page_load_timeout: float = 30,
        ready_state_timeout: float = 10,
        settle_delay: float = 2,
        headless: bool = True,
    ):
        self.user_agents = list(user_agents)
        self.window_size = window_size
        self.page_load_timeout = page_load_timeout
        self.ready_state_timeout = ready_state_timeout
        self.settle_delay = settle_delay
        self.headless = headless
        self.logger = get_logger(__name__)

    def fetch(self, url: str) -> str:
        self._lazy_imports()
        driver = self._setup_driver()
        try:
            self.logger.info("Rendering %s (headless)", url)
            driver.set_page_load_timeout(self.page_load_timeout)
            driver.get(url)
            # Wait for the document and its subresources to finish loading
            WebDriverWait(driver, self.ready_state_timeout).until(
                lambda d: d.execute_script("return document.readyState") == "complete"
            )
            # Give client-side rendering a moment to settle
            time.sleep(self.settle_delay)
            html = driver.page_source
            self.logger.info("Rendered %s: %d characters", url, len(html))
            return html
        except TimeoutException as e:
            raise FetchError(FetchErrorKind.TIMEOUT, f"Browser timed out loading {url}") from e
        except WebDriverException as e:
            raise FetchError(FetchErrorKind.BROWSER_FAILURE, f"Browser failed on {url}: {e.msg or e}") from e
        finally:
            self._quit(driver)

    def _setup_driver(self):
        """Launch Chrome with automation-evasion options."""
        from ..utils.browser_utils import (
            find_chromedriver,
            mask_webdriver,
            pick_user_agent,
            setup_chrome_options,
        )

        chrome_options = setup_chrome_options(
            pick_user_agent(self.user_agents),
            window_size=self.window_size,
            headless=self.headless,
        )
        driver = None
        try:
            driver_path = find_chromedriver()
            if driver_path:
                service = Service(driver_path)
            else:
                # Fallback to webdriver-manager auto install
                service = Service(ChromeDriverManager().install())
            driver = webdriver.Chrome(service=service, options=chrome_options)
            mask_webdriver(driver)
            return driver
        except Exception as e:
            self._quit(driver)
            raise FetchError(FetchErrorKind.BROWSER_FAILURE, f"Could not launch browser: {e}") from e

    def _quit(self, driver: Optional[object]) -> None:
        if driver is None:
            return
        try:
            driver.quit()
            self.logger.debug("Browser closed")
        except Exception as e:  # noqa: BLE001
            self.logger.warning("Error closing browser: %s", e)

    # --- Lazy import helpers -------------------------------------------------
    def _lazy_imports(self):  # pragma: no cover
        global webdriver, Service, WebDriverWait, ChromeDriverManager, TimeoutException, WebDriverException
        if webdriver is None:
            from selenium import webdriver as _wd
            webdriver = _wd
        if Service is None:
            from selenium.webdriver.chrome.service import Service as _Service
            Service = _Service
        if WebDriverWait is None:
            from selenium.webdriver.support.ui import WebDriverWait as _Wait
            WebDriverWait = _Wait
        if ChromeDriverManager is None:
            from webdriver_manager.chrome import ChromeDriverManager as _CDM
            ChromeDriverManager = _CDM
        if TimeoutException is None:
            from selenium.common.exceptions import TimeoutException as _Timeout
            TimeoutException = _Timeout
        if WebDriverException is None:
            from selenium.common.exceptions import WebDriverException as _WDE
            WebDriverException = _WDE
