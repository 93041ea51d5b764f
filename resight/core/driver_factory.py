"""
Driver Factory - Chrome WebDriver creation.

The locator only needs a live page it can run scripts in and send input to;
this module builds a Chrome driver configured for deterministic layouts
(fixed window size, no automation banners shifting the viewport).
"""

from typing import Optional, Tuple
import logging

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = (1280, 900)


def create_driver(
    headless: bool = True,
    window_size: Tuple[int, int] = DEFAULT_WINDOW_SIZE,
    profile_path: Optional[str] = None,
) -> webdriver.Chrome:
    """
    Create a Chrome WebDriver instance.

    Args:
        headless: Run browser in headless mode
        window_size: Browser window size in CSS pixels
        profile_path: Path to browser profile for session persistence

    Returns:
        Chrome WebDriver

    Example:
        >>> driver = create_driver(headless=True)
        >>> session = PageSession.from_driver(driver)
    """
    options = build_chrome_options(headless, window_size, profile_path)
    logger.info(f"[DriverFactory] Starting Chrome (headless={headless}, window={window_size})")
    return webdriver.Chrome(options=options)


def build_chrome_options(
    headless: bool = True,
    window_size: Tuple[int, int] = DEFAULT_WINDOW_SIZE,
    profile_path: Optional[str] = None,
) -> ChromeOptions:
    options = ChromeOptions()

    if headless:
        options.add_argument("--headless=new")

    if profile_path:
        options.add_argument(f"--user-data-dir={profile_path}")

    width, height = window_size
    options.add_argument(f"--window-size={width},{height}")

    # Common stability options
    options.add_argument("--disable-extensions")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--disable-gpu")
    options.add_argument("--disable-infobars")
    options.add_argument("--hide-scrollbars")
    options.add_experimental_option("excludeSwitches", ["enable-automation"])

    return options
