"""
Browser utilities for the headless fetch strategy.
"""

import os
import random
from typing import Optional, Sequence

from selenium.webdriver.chrome.options import Options


def pick_user_agent(user_agents: Sequence[str]) -> str:
    """Return a random user agent from the configured pool."""
    return random.choice(list(user_agents))


def setup_chrome_options(user_agent: str, window_size: str = "1366,768", headless: bool = True) -> Options:
    """
    Setup Chrome options for rendering a results page.

    Args:
        user_agent: User agent string to present
        window_size: Fixed viewport as "width,height"
        headless: Run without a visible window

    Returns:
        Configured Chrome options
    """
    chrome_options = Options()
    if headless:
        chrome_options.add_argument("--headless=new")
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--disable-gpu")
    chrome_options.add_argument("--disable-extensions")
    chrome_options.add_argument("--incognito")
    chrome_options.add_argument(f"--window-size={window_size}")
    chrome_options.add_argument(f"--user-agent={user_agent}")
    chrome_options.add_argument("--disable-blink-features=AutomationControlled")
    chrome_options.add_experimental_option("excludeSwitches", ["enable-automation"])
    chrome_options.add_experimental_option('useAutomationExtension', False)

    # Images are not needed to read the results table
    prefs = {
        "profile.managed_default_content_settings": {
            "images": 2
        }
    }
    chrome_options.add_experimental_option("prefs", prefs)

    return chrome_options


def find_chromedriver() -> Optional[str]:
    """Prefer a system-installed chromedriver, with an optional CHROMEDRIVER override."""
    driver_path = os.environ.get("CHROMEDRIVER")
    if driver_path and os.path.exists(driver_path):
        return driver_path
    for p in [
        "/usr/bin/chromedriver",
        "/usr/local/bin/chromedriver",
    ]:
        if os.path.exists(p):
            return p
    return None


def mask_webdriver(driver) -> None:
    """Hide the navigator.webdriver flag from page scripts."""
    driver.execute_cdp_cmd(
        "Page.addScriptToEvaluateOnNewDocument",
        {"source": "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"},
    )
