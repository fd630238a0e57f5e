from __future__ import annotations

from uuid import uuid4

from selenium.common.exceptions import WebDriverException

from selfhealing.core.exceptions import CaptureError
from selfhealing.core.selectors import Selector
from selfhealing.service.schema import ElementFingerprint

COLLECT_ATTRIBUTES_SCRIPT = r"""
const items = {};
for (const attr of arguments[0].attributes) {
  items[attr.name] = attr.value;
}
return items;
"""

TRACKED_ATTRIBUTES = ("id", "name", "class", "aria-label", "placeholder", "type")


class FingerprintCapture:
    """Builds an element fingerprint from a located element and its page."""

    def capture(self, driver, element, selector: Selector, page_url: str | None = None) -> ElementFingerprint:
        try:
            attributes = self._read_attributes(driver, element, page_url)
        except WebDriverException as exc:
            raise CaptureError(f"Could not capture fingerprint for {selector}: {exc}") from exc
        return ElementFingerprint(
            id=uuid4(),
            attributes=attributes,
            selectors=self.alternate_selectors(selector),
        )

    @staticmethod
    def alternate_selectors(selector: Selector) -> list[str]:
        selectors: list[str] = []
        for candidate in (str(selector), selector.tagged()):
            if candidate and candidate not in selectors:
                selectors.append(candidate)
        return selectors

    def _read_attributes(self, driver, element, page_url: str | None) -> dict[str, str]:
        attributes: dict[str, str] = {}
        raw = driver.execute_script(COLLECT_ATTRIBUTES_SCRIPT, element)
        if isinstance(raw, dict):
            attributes.update({str(key): _text(value) for key, value in raw.items()})
        for name in TRACKED_ATTRIBUTES:
            attributes[name] = _text(element.get_attribute(name))
        attributes["page_url"] = _text(driver.current_url if page_url is None else page_url)
        attributes["tag_name"] = _text(element.tag_name)
        attributes["text"] = _text(element.text)
        attributes["outer_html"] = _text(element.get_attribute("outerHTML"))
        return attributes


def _text(value) -> str:
    return "" if value is None else str(value)
