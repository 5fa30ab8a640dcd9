from __future__ import annotations

import json
from typing import Any

import pytest
import requests
from selenium import webdriver
from selenium.common.exceptions import InvalidSelectorException, NoSuchElementException, WebDriverException
from selenium.webdriver import ChromeOptions, FirefoxOptions

from selfheal.config.schema import BrowserConfig
from selfheal.core.locator import Locator
from selfheal.llm.client import LocatorRepairClient


class FakeElement:
    def __init__(self, tag: str = "div", text: str = "", displayed: bool = True) -> None:
        self.tag_name = tag
        self.text = text
        self.displayed = displayed
        self.clicks = 0
        self.cleared = 0
        self.keys: list[str] = []

    def click(self) -> None:
        self.clicks += 1

    def clear(self) -> None:
        self.cleared += 1

    def send_keys(self, value: str) -> None:
        self.keys.append(value)

    def is_displayed(self) -> bool:
        return self.displayed


class FakeDriver:
    """In-memory stand-in for a WebDriver: locators resolve to registered elements."""

    def __init__(self, page_source: str = "<html><body></body></html>") -> None:
        self._page_source = page_source
        self.page_source_error: Exception | None = None
        self.registry: dict[tuple[str, str], tuple[list[FakeElement], int, int]] = {}
        self.invalid: set[tuple[str, str]] = set()
        self.lookups: list[tuple[str, str]] = []
        self.scripts: list[str] = []
        self.scroll_offset = 0

    def add(self, locator: Locator, *elements: FakeElement, after_probes: int = 0, after_scrolls: int = 0) -> None:
        self.registry[tuple(locator)] = (list(elements) or [FakeElement()], after_probes, after_scrolls)

    def lookups_for(self, locator: Locator) -> int:
        return self.lookups.count(tuple(locator))

    @property
    def page_source(self) -> str:
        if self.page_source_error is not None:
            raise self.page_source_error
        return self._page_source

    def find_elements(self, by: str, value: str) -> list[FakeElement]:
        key = (by, value)
        self.lookups.append(key)
        if key in self.invalid:
            raise InvalidSelectorException(f"invalid selector: {value}")
        entry = self.registry.get(key)
        if entry is None:
            return []
        elements, after_probes, after_scrolls = entry
        if self.lookups.count(key) <= after_probes or self.scroll_offset < after_scrolls:
            return []
        return list(elements)

    def find_element(self, by: str, value: str) -> FakeElement:
        matches = self.find_elements(by, value)
        if not matches:
            raise NoSuchElementException(f"no such element: {value}")
        return matches[0]

    def execute_script(self, script: str, *args: Any) -> None:
        self.scripts.append(script)
        if "scrollBy" in script:
            self.scroll_offset += 1
        elif "scrollTo(0, 0)" in script:
            self.scroll_offset = 0


class ScriptedRepairClient(LocatorRepairClient):
    """Answers repair requests from a fixed table and records every call."""

    provider_name = "scripted"

    def __init__(
        self,
        answers: dict[str, Locator | None] | None = None,
        batch_answers: list[Locator | None] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.answers = answers or {}
        self.batch_answers = batch_answers
        self.error = error
        self.single_calls: list[tuple[Locator, str]] = []
        self.batch_calls: list[tuple[list[Locator], str]] = []

    def repair_one(self, locator: Locator, excerpt: str) -> Locator | None:
        self.single_calls.append((locator, excerpt))
        if self.error is not None:
            raise self.error
        return self.answers.get(locator.key)

    def repair_many(self, locators, excerpt: str) -> list[Locator | None]:
        self.batch_calls.append((list(locators), excerpt))
        if self.error is not None:
            raise self.error
        if self.batch_answers is not None:
            return list(self.batch_answers)
        return [self.answers.get(locator.key) for locator in locators]


def make_response(status: int, body: str | dict[str, Any] = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    text = json.dumps(body) if isinstance(body, dict) else body
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


def chat_payload(content: str) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def start_browser_or_skip(config: BrowserConfig):
    try:
        if config.name == "firefox":
            options = FirefoxOptions()
            if config.headless:
                options.add_argument("-headless")
            driver = webdriver.Firefox(options=options)
        else:
            options = ChromeOptions()
            if config.headless:
                options.add_argument("--headless=new")
            driver = webdriver.Chrome(options=options)
    except WebDriverException as exc:
        pytest.skip(f"WebDriver could not start for {config.name}: {exc}")
    driver.set_page_load_timeout(config.page_load_timeout_seconds)
    return driver
