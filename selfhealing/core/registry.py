from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable

from selfhealing.core.exceptions import HealingError
from selfhealing.core.metadata import RegistrationOutcome, RegistrationStatus
from selfhealing.service.client import HealingService
from selfhealing.service.schema import ElementFingerprint

log = logging.getLogger(__name__)

FingerprintBuilder = Callable[[], ElementFingerprint]


class RegistrationRegistry:
    """Selector keys already sent (or attempted) to the registration endpoint.

    A key is claimed before the remote call and never released, so a failed
    registration is not retried for the lifetime of the registry.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()
        self._lock = threading.Lock()

    def __contains__(self, selector_key: str) -> bool:
        with self._lock:
            return selector_key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

    def claim(self, selector_key: str) -> bool:
        """Atomically adds the key, returning False if it was already present."""

        with self._lock:
            if selector_key in self._keys:
                return False
            self._keys.add(selector_key)
            return True

    def try_register(
        self,
        selector_key: str,
        fingerprint_builder: FingerprintBuilder,
        service: HealingService,
    ) -> RegistrationOutcome:
        if not self.claim(selector_key):
            return RegistrationOutcome(selector_key, RegistrationStatus.DUPLICATE)
        try:
            service.register_fingerprint(fingerprint_builder())
        except HealingError as exc:
            return RegistrationOutcome(selector_key, RegistrationStatus.FAILED, error=exc)
        return RegistrationOutcome(selector_key, RegistrationStatus.REGISTERED)


class RegistrationDispatcher:
    """Runs registrations off the caller's thread and logs their outcome."""

    def __init__(
        self,
        registry: RegistrationRegistry,
        service: HealingService,
        *,
        asynchronous: bool = True,
        max_workers: int = 2,
    ) -> None:
        self.registry = registry
        self.service = service
        self.asynchronous = asynchronous
        self._executor = (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fingerprint-registration")
            if asynchronous
            else None
        )
        self._pending: set[Future] = set()
        self._pending_lock = threading.Lock()
        self._closed = False

    def submit(self, selector_key: str, fingerprint_builder: FingerprintBuilder) -> None:
        if self._closed:
            log.debug("Dispatcher is shut down, not registering %s", selector_key)
            return
        if selector_key in self.registry:
            log.debug("Selector already registered: %s", selector_key)
            return
        if self._executor is None:
            future: Future = Future()
            try:
                future.set_result(self.registry.try_register(selector_key, fingerprint_builder, self.service))
            except Exception as exc:  # noqa: BLE001 - surfaced by _log_outcome, never to the caller.
                future.set_exception(exc)
        else:
            try:
                future = self._executor.submit(
                    self.registry.try_register, selector_key, fingerprint_builder, self.service
                )
            except RuntimeError as exc:
                # Raised once the pool or the interpreter is shutting down.
                log.debug("Could not schedule registration for %s: %s", selector_key, exc)
                return
            with self._pending_lock:
                self._pending.add(future)
        future.add_done_callback(self._log_outcome)

    def wait(self, timeout: float | None = None) -> None:
        """Blocks until every registration submitted so far has finished."""

        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self, wait_for_pending: bool = True) -> None:
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait_for_pending)

    def _log_outcome(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        error = future.exception()
        if error is not None:
            log.warning("Fingerprint registration crashed: %r", error)
            return
        outcome: RegistrationOutcome = future.result()
        if outcome.status is RegistrationStatus.REGISTERED:
            log.debug("Registered fingerprint for %s", outcome.selector_key)
        elif outcome.status is RegistrationStatus.FAILED:
            log.warning("Fingerprint registration failed for %s: %s", outcome.selector_key, outcome.error)
        else:
            log.debug("Selector already registered: %s", outcome.selector_key)
