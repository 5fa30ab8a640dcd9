from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from selenium.webdriver.common.by import By


class Strategy(str, Enum):
    """Lookup strategies, valued with Selenium's ``By`` constants."""

    ID = By.ID
    NAME = By.NAME
    CSS = By.CSS_SELECTOR
    CLASS = By.CLASS_NAME
    TAG = By.TAG_NAME
    LINK_TEXT = By.LINK_TEXT
    PARTIAL_LINK_TEXT = By.PARTIAL_LINK_TEXT
    XPATH = By.XPATH


@dataclass(frozen=True, slots=True)
class Locator:
    strategy: Strategy
    value: str

    @property
    def key(self) -> str:
        return f"{self.strategy.value}: {self.value}"

    def __iter__(self) -> Iterator[str]:
        # Allows driver.find_elements(*locator).
        yield self.strategy.value
        yield self.value

    def __str__(self) -> str:
        return self.key

    @classmethod
    def id(cls, value: str) -> Locator:
        return cls(Strategy.ID, value)

    @classmethod
    def name(cls, value: str) -> Locator:
        return cls(Strategy.NAME, value)

    @classmethod
    def css(cls, value: str) -> Locator:
        return cls(Strategy.CSS, value)

    @classmethod
    def class_name(cls, value: str) -> Locator:
        return cls(Strategy.CLASS, value)

    @classmethod
    def tag(cls, value: str) -> Locator:
        return cls(Strategy.TAG, value)

    @classmethod
    def link_text(cls, value: str) -> Locator:
        return cls(Strategy.LINK_TEXT, value)

    @classmethod
    def partial_link_text(cls, value: str) -> Locator:
        return cls(Strategy.PARTIAL_LINK_TEXT, value)

    @classmethod
    def xpath(cls, value: str) -> Locator:
        return cls(Strategy.XPATH, value)


NOTATION_PREFIXES = {
    "id": Strategy.ID,
    "name": Strategy.NAME,
    "css": Strategy.CSS,
    "class": Strategy.CLASS,
    "tag": Strategy.TAG,
    "link": Strategy.LINK_TEXT,
    "partial link": Strategy.PARTIAL_LINK_TEXT,
    "xpath": Strategy.XPATH,
}


def infer_strategy(selector: str) -> Strategy:
    stripped = selector.strip()
    if stripped.startswith("/") or stripped.startswith("("):
        return Strategy.XPATH
    return Strategy.CSS


def parse_locator(text: str) -> Locator:
    """Reads ``strategy=value`` notation, e.g. ``id=submit-btn`` or ``xpath=//button``."""

    stripped = text.strip()
    if not stripped:
        raise ValueError("Locator text must not be empty")
    prefix, separator, value = stripped.partition("=")
    strategy = NOTATION_PREFIXES.get(prefix.strip().lower()) if separator else None
    if strategy is not None and value:
        return Locator(strategy, value.strip())
    return Locator(infer_strategy(stripped), stripped)
