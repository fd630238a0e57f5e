from __future__ import annotations

import logging

from selenium.common.exceptions import NoSuchElementException, WebDriverException
from selenium.webdriver.common.by import By

from selfhealing.config.schema import HealingConfig
from selfhealing.core.capture import FingerprintCapture
from selfhealing.core.exceptions import HealingDeclined, HealingError, SelectorParseError
from selfhealing.core.metadata import HealAttempt, HealOutcome
from selfhealing.core.registry import RegistrationDispatcher, RegistrationRegistry
from selfhealing.core.selectors import Selector
from selfhealing.logging.audit import HealingAuditLogger
from selfhealing.service.client import HealingService, create_healing_client
from selfhealing.service.schema import HealRequest, HealResponse

log = logging.getLogger(__name__)


class SelfHealingDriver:
    """Wraps a WebDriver so that ``find_element`` heals broken selectors.

    A successful lookup registers the element's fingerprint with the healing
    service in the background. A lookup that raises ``NoSuchElementException``
    asks the service for a replacement selector and retries once. When that
    does not produce an element, the original exception is raised unchanged.
    Everything other than ``find_element`` is delegated to the wrapped driver.
    """

    def __init__(
        self,
        driver,
        service: HealingService,
        *,
        registry: RegistrationRegistry | None = None,
        capture: FingerprintCapture | None = None,
        audit_logger: HealingAuditLogger | None = None,
        asynchronous_registration: bool = True,
        registration_workers: int = 2,
        healing_enabled: bool = True,
    ) -> None:
        self.wrapped_driver = driver
        self.service = service
        self.registry = registry if registry is not None else RegistrationRegistry()
        self.capture = capture or FingerprintCapture()
        self.audit_logger = audit_logger
        self.healing_enabled = healing_enabled
        self.dispatcher = RegistrationDispatcher(
            self.registry,
            service,
            asynchronous=asynchronous_registration,
            max_workers=registration_workers,
        )

    @classmethod
    def from_config(
        cls,
        driver,
        config: HealingConfig,
        *,
        service: HealingService | None = None,
        registry: RegistrationRegistry | None = None,
    ) -> SelfHealingDriver:
        audit_logger = HealingAuditLogger(config.audit_root) if config.audit_root else None
        return cls(
            driver,
            service or create_healing_client(config),
            registry=registry,
            audit_logger=audit_logger,
            asynchronous_registration=config.async_registration,
            registration_workers=config.registration_workers,
            healing_enabled=config.healing_enabled,
        )

    def __getattr__(self, name: str):
        return getattr(self.wrapped_driver, name)

    def find_element(self, by=By.ID, value: str | None = None):
        selector = Selector.from_by(by, value)
        if selector is None or not self.healing_enabled:
            log.debug("Locating %s=%r without healing", by, value)
            return self.wrapped_driver.find_element(by, value)

        try:
            element = self.wrapped_driver.find_element(by, value)
        except NoSuchElementException as exc:
            healed = self._heal(selector, exc)
            if healed is None:
                raise
            return healed

        if str(selector) not in self.registry:
            self._register(selector, element, self._current_url())
        return element

    def wait_for_registrations(self, timeout: float | None = None) -> None:
        self.dispatcher.wait(timeout)

    def quit(self) -> None:
        try:
            self.wrapped_driver.quit()
        finally:
            self.dispatcher.shutdown(wait_for_pending=False)

    def _heal(self, selector: Selector, failure: NoSuchElementException):
        page_url = self._current_url()
        attempt = HealAttempt(
            failed_selector=str(selector),
            page_url=page_url,
            outcome=HealOutcome.HEAL_UNAVAILABLE,
            failure_type=type(failure).__name__,
        )
        try:
            healed_selector = self._request_heal(attempt)
        except (HealingDeclined, SelectorParseError) as exc:
            attempt.outcome = HealOutcome.HEAL_NO_SUGGESTION
            log.warning("No healed selector for %s: %s", selector, exc)
            return self._finish(attempt, None)
        except HealingError as exc:
            log.warning("Healing service unavailable for %s: %s", selector, exc)
            return self._finish(attempt, None)
        except Exception as exc:  # noqa: BLE001 - the original not-found error must surface.
            log.warning("Healing request for %s failed unexpectedly: %r", selector, exc)
            return self._finish(attempt, None)

        try:
            element = self.wrapped_driver.find_element(healed_selector.by, healed_selector.value)
        except WebDriverException as exc:
            attempt.outcome = HealOutcome.RETRY_NOT_FOUND
            log.warning(
                "Healed selector %s did not find element for %s: %s",
                healed_selector,
                selector,
                type(exc).__name__,
            )
            return self._finish(attempt, None)

        attempt.outcome = HealOutcome.RETRY_SUCCESS
        log.info("Healed selector used: %s (was %s)", healed_selector, selector)
        self._register(healed_selector, element, page_url)
        return self._finish(attempt, element)

    def _request_heal(self, attempt: HealAttempt) -> Selector:
        heal_request = HealRequest(
            failed_selector=attempt.failed_selector,
            context={"page_url": attempt.page_url},
        )
        response: HealResponse = self.service.heal_selector(heal_request)
        attempt.confidence = response.confidence
        attempt.details = response.details or ""
        if not response.has_suggestion:
            raise HealingDeclined(response.details or "service returned no healed selector")
        attempt.healed_selector = response.healed_selector
        return Selector.from_string(response.healed_selector)

    def _register(self, selector: Selector, element, page_url: str) -> None:
        # page_url comes from the calling thread, not the capture worker.
        driver = self.wrapped_driver
        self.dispatcher.submit(
            str(selector),
            lambda: self.capture.capture(driver, element, selector, page_url=page_url),
        )

    def _finish(self, attempt: HealAttempt, element):
        if self.audit_logger is not None:
            try:
                self.audit_logger.write(attempt)
            except OSError as exc:
                log.warning("Could not write heal audit record: %s", exc)
        return element

    def _current_url(self) -> str:
        try:
            return self.wrapped_driver.current_url
        except WebDriverException as exc:
            log.debug("Could not read current URL: %s", exc)
            return ""
