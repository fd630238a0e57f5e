from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Any, Iterator

from flask import Flask, jsonify, request
from selenium.common.exceptions import NoSuchElementException, StaleElementReferenceException
from werkzeug.serving import make_server

from selfhealing.core.exceptions import HealingTransportError
from selfhealing.service.client import HealingService
from selfhealing.service.schema import ElementFingerprint, HealRequest, HealResponse


class FakeElement:
    """Stands in for a WebElement with fixed DOM state."""

    def __init__(
        self,
        tag_name: str = "button",
        text: str | None = "Login",
        attributes: dict[str, str] | None = None,
        outer_html: str | None = None,
    ) -> None:
        self.tag_name_value = tag_name
        self.text_value = text
        self.attributes = dict(attributes or {})
        self.outer_html = outer_html if outer_html is not None else f"<{tag_name}>{text or ''}</{tag_name}>"
        self.stale = False

    def _check(self) -> None:
        if self.stale:
            raise StaleElementReferenceException("element is not attached to the page document")

    @property
    def tag_name(self) -> str:
        self._check()
        return self.tag_name_value

    @property
    def text(self) -> str | None:
        self._check()
        return self.text_value

    def get_attribute(self, name: str) -> str | None:
        self._check()
        if name == "outerHTML":
            return self.outer_html
        return self.attributes.get(name)


class FakeDriver:
    """Minimal WebDriver double keyed on (by, value) pairs."""

    def __init__(self, elements: dict[tuple[str, str], Any] | None = None, url: str = "http://app.test/login") -> None:
        self.elements = dict(elements or {})
        self.errors: dict[tuple[str, str], Exception] = {}
        self.current_url = url
        self.title = "Login"
        self.find_calls: list[tuple[str, str]] = []
        self.raised: list[Exception] = []
        self.quit_called = False

    def find_element(self, by, value):
        self.find_calls.append((by, value))
        if (by, value) in self.errors:
            error = self.errors[(by, value)]
            self.raised.append(error)
            raise error
        try:
            return self.elements[(by, value)]
        except KeyError:
            error = NoSuchElementException(f"Unable to locate element: {by}={value}")
            self.raised.append(error)
            raise error from None

    def execute_script(self, script: str, *args):
        element = args[0]
        element._check()
        return dict(element.attributes)

    def quit(self) -> None:
        self.quit_called = True


class RecordingService(HealingService):
    """In-memory healing service that records every call."""

    def __init__(
        self,
        heal_response: HealResponse | None = None,
        heal_error: Exception | None = None,
        register_error: Exception | None = None,
        register_delay: float = 0.0,
    ) -> None:
        self.heal_response = heal_response or HealResponse()
        self.heal_error = heal_error
        self.register_error = register_error
        self.register_delay = register_delay
        self.heal_requests: list[HealRequest] = []
        self.registrations: list[ElementFingerprint] = []
        self._lock = threading.Lock()

    def heal_selector(self, heal_request: HealRequest) -> HealResponse:
        self.heal_requests.append(heal_request)
        if self.heal_error is not None:
            raise self.heal_error
        return self.heal_response

    def register_fingerprint(self, fingerprint: ElementFingerprint) -> None:
        if self.register_delay:
            time.sleep(self.register_delay)
        with self._lock:
            self.registrations.append(fingerprint)
        if self.register_error is not None:
            raise self.register_error


def unreachable_error() -> HealingTransportError:
    return HealingTransportError("POST http://localhost:8080/heal-selector could not be completed: refused")


def create_fake_healing_app() -> Flask:
    """A Flask stand-in for the remote healing service."""

    app = Flask("fake-healing-service")
    state: dict[str, Any] = {
        "heal_map": {},
        "fingerprints": [],
        "heal_requests": [],
        "failure_status": None,
        "raw_heal_body": None,
    }
    app.config["HEALING_STATE"] = state

    @app.before_request
    def simulate_failure():
        if state["failure_status"] is not None:
            return jsonify({"error": "unavailable"}), state["failure_status"]
        return None

    @app.post("/heal-selector")
    def heal_selector():
        payload = request.get_json()
        state["heal_requests"].append(payload)
        if state["raw_heal_body"] is not None:
            return state["raw_heal_body"], 200, {"Content-Type": "application/json"}
        healed = state["heal_map"].get(payload["failed_selector"])
        if healed is None:
            return jsonify({"healed_selector": None, "confidence": 0.0, "details": "no match"})
        return jsonify({"healed_selector": healed, "confidence": 0.87, "details": "attribute similarity"})

    @app.post("/register-fingerprint")
    def register_fingerprint():
        payload = request.get_json()
        state["fingerprints"].append(payload["fingerprint"])
        return jsonify({"status": "ok"})

    @app.get("/all-fingerprints")
    def all_fingerprints():
        return jsonify(state["fingerprints"])

    return app


@contextmanager
def serve_app(app: Flask) -> Iterator[str]:
    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_port}"
    finally:
        server.shutdown()
        thread.join(timeout=5)
