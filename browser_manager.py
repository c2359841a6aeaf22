"""Browser management for the Toornament Lobby Watcher"""

import logging
from typing import Callable, List, Optional

from selenium import webdriver
from selenium.common.exceptions import StaleElementReferenceException
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

logger = logging.getLogger(__name__)


class BrowserManager:
    """Manages Selenium WebDriver lifecycle and page operations

    Navigation and wait failures are not caught here: Selenium's
    ``WebDriverException``/``TimeoutException`` propagate to the caller.
    """

    def __init__(self, headless: bool = True, page_timeout: float = 30.0, reveal_timeout: float = 5.0):
        """Initialize browser manager

        Args:
            headless: Run browser in headless mode
            page_timeout: Seconds to wait for page loads and expected elements
            reveal_timeout: Seconds to wait for a timestamp after the reveal click
        """
        self.driver: Optional[webdriver.Chrome] = None
        self.headless = headless
        self.page_timeout = page_timeout
        self.reveal_timeout = reveal_timeout

    def setup_driver(self) -> webdriver.Chrome:
        """Start Chrome and return the driver"""
        logger.info("Initializing Chrome options...")
        options = webdriver.ChromeOptions()
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--disable-gpu")
        options.add_argument("--window-size=1920,1080")
        options.add_argument("--disable-extensions")

        if self.headless:
            options.add_argument("--headless=new")

        logger.info("Starting Chrome browser...")
        self.driver = webdriver.Chrome(options=options)
        self.driver.set_page_load_timeout(self.page_timeout)
        logger.info("[OK] Chrome WebDriver created successfully")
        return self.driver

    def _require_driver(self) -> webdriver.Chrome:
        if not self.driver:
            raise RuntimeError("Driver not initialized")
        return self.driver

    def navigate_to(self, url: str) -> None:
        """Navigate to URL and wait for the document body"""
        driver = self._require_driver()
        logger.debug(f"Navigating to {url}")
        driver.get(url)
        WebDriverWait(driver, self.page_timeout).until(
            EC.presence_of_element_located((By.CSS_SELECTOR, "body"))
        )

    def wait_until_absent(self, selector: str) -> None:
        """Wait until no element matches selector"""
        driver = self._require_driver()
        WebDriverWait(driver, self.page_timeout).until(
            lambda d: not d.find_elements(By.CSS_SELECTOR, selector)
        )

    def wait_for_url_change(self, url: str) -> None:
        """Wait until the current URL differs from url"""
        driver = self._require_driver()
        WebDriverWait(driver, self.page_timeout).until(EC.url_changes(url))

    def find_elements(self, selector: str, within: Optional[WebElement] = None) -> List[WebElement]:
        """Find elements by CSS selector, in the page or inside an element"""
        root = within if within is not None else self._require_driver()
        return root.find_elements(By.CSS_SELECTOR, selector)

    def element_text(self, element: WebElement) -> str:
        """Raw textContent of an element, including hidden text"""
        return element.get_attribute("textContent") or ""

    def click(self, selector: str) -> None:
        """Click the first element matching selector once it is clickable"""
        driver = self._require_driver()
        WebDriverWait(driver, self.page_timeout).until(
            EC.element_to_be_clickable((By.CSS_SELECTOR, selector))
        ).click()

    def click_xpath(self, xpath: str) -> None:
        """Like click(), for an XPath expression"""
        driver = self._require_driver()
        WebDriverWait(driver, self.page_timeout).until(
            EC.element_to_be_clickable((By.XPATH, xpath))
        ).click()

    def type_text(self, selector: str, text: str) -> None:
        """Send text as key strokes to the first element matching selector"""
        driver = self._require_driver()
        driver.find_element(By.CSS_SELECTOR, selector).send_keys(text)

    def reveal_timestamp(
        self,
        message: WebElement,
        time_selector: str,
        reveal_selector: str,
        relocate: Optional[Callable[[], WebElement]] = None,
    ) -> str:
        """Return the ``datetime`` attribute of a message's timestamp

        The timestamp element is only rendered after the message's anchor is
        clicked. If it is missing, the anchor is clicked once and the time
        element is waited for (up to reveal_timeout) before reading.

        Args:
            message: The message element
            time_selector: Selector of the timestamp inside the message
            reveal_selector: Selector of the anchor to click
            relocate: Finds the message again if the click replaced its node
        """
        driver = self._require_driver()
        found = message.find_elements(By.CSS_SELECTOR, time_selector)
        if found:
            return found[0].get_attribute("datetime") or ""

        anchor = message.find_element(By.CSS_SELECTOR, reveal_selector)
        driver.execute_script("arguments[0].click();", anchor)

        current = [message]

        def revealed(_driver):
            try:
                times = current[0].find_elements(By.CSS_SELECTOR, time_selector)
            except StaleElementReferenceException:
                if relocate is None:
                    raise
                logger.debug("Message re-rendered after reveal click, locating it again")
                current[0] = relocate()
                times = current[0].find_elements(By.CSS_SELECTOR, time_selector)
            return times[0].get_attribute("datetime") if times else False

        return WebDriverWait(
            driver,
            self.reveal_timeout,
            ignored_exceptions=(StaleElementReferenceException,),
        ).until(revealed) or ""

    def get_page_source(self) -> str:
        """HTML of the current page as rendered by the browser"""
        return self._require_driver().page_source

    def close(self) -> None:
        """Close every window, then end the WebDriver session

        Errors are logged and swallowed so teardown always completes.
        Calling close() again after it has run is a no-op.
        """
        driver = self.driver
        if not driver:
            return
        self.driver = None

        try:
            handles = list(driver.window_handles)
        except Exception as e:
            logger.debug(f"Could not list browser windows: {e}")
            handles = []

        for handle in handles:
            try:
                driver.switch_to.window(handle)
                driver.close()
            except Exception as e:
                logger.debug(f"Error closing window {handle}: {e}")

        try:
            driver.quit()
            logger.info("Browser closed")
        except Exception as e:
            logger.error(f"Error closing browser: {e}")

    def __enter__(self):
        self.setup_driver()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
