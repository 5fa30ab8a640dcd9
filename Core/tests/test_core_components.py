from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from selfheal.config.loader import ConfigLoader
from selfheal.core.locator import Locator, Strategy, parse_locator
from selfheal.llm.parser import decode_locator
from tests import helpers


def test_config_loader_validates_json(tmp_path):
    config_path = tmp_path / "healing.json"
    config_path.write_text(
        json.dumps(
            {
                "oracle": {
                    "provider": "Structural",
                    "connect_timeout_seconds": 5,
                    "read_timeout_seconds": 15,
                },
                "resolver": {"wait_timeout_seconds": 3},
                "snapshot": {"trim_limit": 500},
            }
        ),
        encoding="utf-8",
    )
    config = ConfigLoader.load(config_path)
    assert config.oracle.provider == "structural"
    assert config.oracle.read_timeout_seconds == 15
    assert config.resolver.wait_timeout_seconds == 3
    assert config.snapshot.trim_limit == 500
    assert config.validation.max_scroll_attempts == 5
    assert config.snapshot.output_dir == "html_snapshots"


def test_config_rejects_unknown_provider(tmp_path):
    config_path = tmp_path / "healing.json"
    config_path.write_text(json.dumps({"oracle": {"provider": "telepathy"}}), encoding="utf-8")
    with pytest.raises(ValidationError):
        ConfigLoader.load(config_path)


def test_config_environment_overrides(monkeypatch, healing_config):
    monkeypatch.setenv("HEALING_ORACLE_URL", "http://oracle.internal/v1/chat/completions")
    monkeypatch.setenv("HEALING_ORACLE_API_KEY", "secret")
    monkeypatch.setenv("HEALING_WAIT_TIMEOUT", "4.5")
    config = ConfigLoader.from_env(healing_config)
    assert config.oracle.endpoint == "http://oracle.internal/v1/chat/completions"
    assert config.oracle.api_key == "secret"
    assert config.resolver.wait_timeout_seconds == 4.5
    assert config.artifacts_root == healing_config.artifacts_root


def test_locator_equality_and_key():
    original = Locator.xpath("//button[@id='old']")
    assert original == Locator(Strategy.XPATH, "//button[@id='old']")
    assert original != Locator.css("//button[@id='old']")
    assert original.key == "xpath: //button[@id='old']"
    assert tuple(Locator.css("#login")) == ("css selector", "#login")
    with pytest.raises(AttributeError):
        original.value = "//changed"


def test_parse_locator_notation():
    assert parse_locator("id=submit-btn") == Locator.id("submit-btn")
    assert parse_locator("xpath=//button[@id='old']") == Locator.xpath("//button[@id='old']")
    assert parse_locator("css=a[href='/home']") == Locator.css("a[href='/home']")
    assert parse_locator("//input[@name='q']") == Locator.xpath("//input[@name='q']")
    assert parse_locator("(//button)[1]").strategy is Strategy.XPATH
    assert parse_locator("#login-button") == Locator.css("#login-button")


def test_decode_locator_wrappers():
    assert decode_locator("by id(foo)") == Locator.id("foo")
    assert decode_locator('By.cssSelector("#login")') == Locator.css("#login")
    assert decode_locator("By.xpath: //a[@href='/home']") == Locator.xpath("//a[@href='/home']")
    assert decode_locator("by link text(Sign in)") == Locator.link_text("Sign in")
    assert decode_locator("//button[@id='new']") == Locator.xpath("//button[@id='new']")


def test_decode_locator_falls_back_to_xpath():
    assert decode_locator("by magic(foo)") == Locator.xpath("by magic(foo)")
    assert decode_locator("by id()") == Locator.xpath("by id()")


def test_browser_section_drives_browser_start(tmp_path, monkeypatch):
    config_path = tmp_path / "healing.json"
    config_path.write_text(
        json.dumps({"browser": {"name": "Firefox", "headless": False, "page_load_timeout_seconds": 12}}),
        encoding="utf-8",
    )
    started = {}

    class RecordingFirefox:
        def __init__(self, options) -> None:
            started["arguments"] = list(options.arguments)

        def set_page_load_timeout(self, seconds) -> None:
            started["page_load_timeout"] = seconds

    monkeypatch.setattr(helpers.webdriver, "Firefox", RecordingFirefox)
    driver = helpers.start_browser_or_skip(ConfigLoader.load(config_path).browser)

    assert isinstance(driver, RecordingFirefox)
    assert started == {"arguments": [], "page_load_timeout": 12}
