from __future__ import annotations

from selenium.webdriver.support.ui import WebDriverWait

from selfheal.core.locator import Locator


class _PresenceOf:
    """Wait condition returning the matches of ``locator`` once there is at least one."""

    def __init__(self, locator: Locator) -> None:
        self.locator = locator
        self.probes = 0

    def __call__(self, driver):
        self.probes += 1
        return driver.find_elements(*self.locator)


def wait_for_elements(driver, locator: Locator, timeout: float, interval: float = 0.2) -> tuple[list, int]:
    """Blocks until ``locator`` matches, returning the matches and how many probes it took.

    Raises ``TimeoutException`` once ``timeout`` seconds have passed.
    """

    condition = _PresenceOf(locator)
    elements = WebDriverWait(driver, timeout, poll_frequency=interval).until(
        condition,
        message=f"Timed out waiting for {locator.key}",
    )
    return elements, condition.probes
