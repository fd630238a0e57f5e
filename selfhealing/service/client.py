from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from http.client import HTTPException
from typing import Any
from urllib import error, request

from pydantic import TypeAdapter, ValidationError

from selfhealing.config.schema import HealingConfig
from selfhealing.core.exceptions import HealingTransportError
from selfhealing.service.schema import (
    ElementFingerprint,
    HealRequest,
    HealResponse,
    RegisterRequest,
)

log = logging.getLogger(__name__)

_FINGERPRINT_LIST = TypeAdapter(list[ElementFingerprint])


class HealingService(ABC):
    """Boundary to the remote selector healing service.

    Implementations raise ``HealingError`` subclasses for every failure.
    """

    @abstractmethod
    def heal_selector(self, heal_request: HealRequest) -> HealResponse:
        raise NotImplementedError

    @abstractmethod
    def register_fingerprint(self, fingerprint: ElementFingerprint) -> None:
        raise NotImplementedError


class HealingClient(HealingService):
    """JSON-over-HTTP client. Every call is attempted exactly once."""

    heal_path = "/heal-selector"
    register_path = "/register-fingerprint"
    list_path = "/all-fingerprints"

    def __init__(self, base_url: str, timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def heal_selector(self, heal_request: HealRequest) -> HealResponse:
        payload = _request_json(
            self._url(self.heal_path),
            method="POST",
            payload=heal_request.model_dump(mode="json"),
            timeout=self.timeout,
        )
        try:
            return HealResponse.model_validate(payload)
        except ValidationError as exc:
            raise HealingTransportError(f"Malformed heal response: {exc}") from exc

    def register_fingerprint(self, fingerprint: ElementFingerprint) -> None:
        body = RegisterRequest(fingerprint=fingerprint)
        _request_json(
            self._url(self.register_path),
            method="POST",
            payload=body.model_dump(mode="json"),
            timeout=self.timeout,
            expect_body=False,
        )

    def get_all_fingerprints(self) -> list[ElementFingerprint]:
        payload = _request_json(self._url(self.list_path), method="GET", timeout=self.timeout)
        try:
            return _FINGERPRINT_LIST.validate_python(payload)
        except ValidationError as exc:
            raise HealingTransportError(f"Malformed fingerprint list: {exc}") from exc

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"


def create_healing_client(config: HealingConfig) -> HealingClient:
    return HealingClient(config.service_url, timeout=config.request_timeout_seconds)


def _request_json(
    url: str,
    *,
    method: str,
    timeout: float,
    payload: dict[str, Any] | None = None,
    expect_body: bool = True,
) -> Any:
    headers = {"Accept": "application/json"}
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = request.Request(url, data=data, headers=headers, method=method)
    try:
        with request.urlopen(req, timeout=timeout) as response:
            status = response.status
            raw = response.read()
    except error.HTTPError as exc:
        raise HealingTransportError(
            f"{method} {url} failed with HTTP status {exc.code}",
            status=exc.code,
        ) from exc
    except error.URLError as exc:
        raise HealingTransportError(f"{method} {url} could not be completed: {exc.reason}") from exc
    except (OSError, HTTPException) as exc:
        raise HealingTransportError(f"{method} {url} could not be completed: {exc}") from exc

    if status != 200:
        raise HealingTransportError(f"{method} {url} failed with HTTP status {status}", status=status)
    log.debug("%s %s -> %s", method, url, status)
    if not expect_body:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise HealingTransportError(f"{method} {url} returned invalid JSON") from exc
