from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from selenium.webdriver.common.by import By

from selfhealing.core.exceptions import SelectorParseError

SELECTOR_PATTERN = re.compile(r"(?P<strategy>[a-z][a-z-]*): (?P<value>.+)", re.DOTALL)


class Strategy(str, Enum):
    ID = "id"
    CSS_SELECTOR = "css-selector"
    XPATH = "xpath"
    NAME = "name"
    CLASS_NAME = "class-name"
    TAG_NAME = "tag-name"


_BY_FOR_STRATEGY = {
    Strategy.ID: By.ID,
    Strategy.CSS_SELECTOR: By.CSS_SELECTOR,
    Strategy.XPATH: By.XPATH,
    Strategy.NAME: By.NAME,
    Strategy.CLASS_NAME: By.CLASS_NAME,
    Strategy.TAG_NAME: By.TAG_NAME,
}
_STRATEGY_FOR_BY = {by: strategy for strategy, by in _BY_FOR_STRATEGY.items()}

# Type-tagged forms written into fingerprints alongside the canonical one.
TAGGED_PREFIXES = {
    Strategy.CSS_SELECTOR: "css",
    Strategy.XPATH: "xpath",
}
_ALIASES = {"css": Strategy.CSS_SELECTOR}


@dataclass(frozen=True, slots=True)
class Selector:
    """A locator strategy plus the value it is applied to."""

    strategy: Strategy
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.strategy, Strategy):
            object.__setattr__(self, "strategy", Strategy(self.strategy))
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("Selector value must be a non-empty string")

    def __str__(self) -> str:
        return f"{self.strategy.value}: {self.value}"

    @property
    def by(self) -> str:
        return _BY_FOR_STRATEGY[self.strategy]

    def tagged(self) -> str | None:
        """Returns the explicit type-tagged form for CSS and XPath selectors."""

        prefix = TAGGED_PREFIXES.get(self.strategy)
        if prefix is None:
            return None
        return f"{prefix}: {self.value}"

    @classmethod
    def from_by(cls, by: str, value: str | None) -> Selector | None:
        strategy = _STRATEGY_FOR_BY.get(by)
        if strategy is None or not value:
            return None
        return cls(strategy, value)

    @classmethod
    def from_string(cls, text: str) -> Selector:
        if not isinstance(text, str):
            raise SelectorParseError(f"Selector must be a string, got {type(text).__name__}")
        match = SELECTOR_PATTERN.fullmatch(text)
        if match is None:
            raise SelectorParseError(f"Cannot parse selector string: {text!r}")
        keyword = match.group("strategy")
        strategy = _ALIASES.get(keyword)
        if strategy is None:
            try:
                strategy = Strategy(keyword)
            except ValueError as exc:
                raise SelectorParseError(f"Unsupported selector strategy: {keyword!r}") from exc
        return cls(strategy, match.group("value"))


def serialize_selector(selector: Selector) -> str:
    return str(selector)


def parse_selector(text: str) -> Selector | None:
    """Parses a serialized selector, returning None when it is not recognized."""

    try:
        return Selector.from_string(text)
    except SelectorParseError:
        return None
