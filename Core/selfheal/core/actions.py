from __future__ import annotations

from typing import Callable, TypeVar

from selenium.common.exceptions import (
    ElementNotInteractableException,
    StaleElementReferenceException,
)

from selfheal.core.locator import Locator

T = TypeVar("T")

RETRYABLE = (ElementNotInteractableException, StaleElementReferenceException)


class SafeActions:
    """Element interactions that go through the healing resolver.

    A stale or not-yet-interactable element is looked up once more and the
    action retried; a second failure propagates.
    """

    def __init__(self, resolver) -> None:
        self.resolver = resolver

    def click(self, locator: Locator) -> None:
        self._with_fresh_element(locator, lambda element: element.click())

    def type(self, locator: Locator, value: str, clear_first: bool = True) -> None:
        def send(element) -> None:
            if clear_first:
                element.clear()
            element.send_keys(value)

        self._with_fresh_element(locator, send)

    def text(self, locator: Locator) -> str:
        return self._with_fresh_element(locator, lambda element: element.text)

    def _with_fresh_element(self, locator: Locator, action: Callable[[object], T]) -> T:
        try:
            return action(self.resolver.find(locator))
        except RETRYABLE:
            return action(self.resolver.find(locator))
