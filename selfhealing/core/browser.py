from __future__ import annotations

from selenium import webdriver
from selenium.webdriver import ChromeOptions, FirefoxOptions

from selfhealing.config.schema import HealingConfig
from selfhealing.core.finder import SelfHealingDriver
from selfhealing.core.registry import RegistrationRegistry
from selfhealing.service.client import HealingService


class BrowserSession:
    """Creates browser instances using Selenium Manager, wrapped for healing.

    Drivers started from one session share a registration registry, so a
    selector registered in one browser is not registered again in another.
    """

    def __init__(self, config: HealingConfig, service: HealingService | None = None) -> None:
        self.config = config
        self.service = service
        self.registry = RegistrationRegistry()

    def start(self, browser_name: str | None = None) -> SelfHealingDriver:
        driver = self.start_raw(browser_name)
        return SelfHealingDriver.from_config(
            driver,
            self.config,
            service=self.service,
            registry=self.registry,
        )

    def start_raw(self, browser_name: str | None = None):
        browser = self.config.browser
        normalized = (browser_name or browser.name).lower()
        if normalized == "chrome":
            options = ChromeOptions()
            if browser.headless:
                options.add_argument("--headless=new")
            options.add_argument("--window-size=1440,1200")
            driver = webdriver.Chrome(options=options)
        elif normalized == "firefox":
            options = FirefoxOptions()
            if browser.headless:
                options.add_argument("-headless")
            driver = webdriver.Firefox(options=options)
        else:
            raise ValueError(f"Unsupported browser: {browser_name}")
        driver.set_page_load_timeout(browser.page_load_timeout_seconds)
        driver.implicitly_wait(0)
        return driver
