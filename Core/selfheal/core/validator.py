from __future__ import annotations

import logging
import time
from typing import Sequence

from selenium.common.exceptions import WebDriverException

from selfheal.config.schema import ValidationConfig
from selfheal.core.cache import HealedLocatorCache
from selfheal.core.exceptions import HealingError
from selfheal.core.healer import Healer
from selfheal.core.locator import Locator

logger = logging.getLogger(__name__)


class ValidationOrchestrator:
    """Validates a batch of locators, heals the missing ones in one request, all or nothing.

    1. Each locator is looked for with scroll-assisted retries; a miss is
       recorded as damaged and the page is scrolled back to the top.
    2. All damaged locators go to the oracle together, once, and the
       answers replace them positionally.
    3. The whole batch is checked again. One miss and the result is ``[]``.
    """

    def __init__(
        self,
        driver,
        config: ValidationConfig,
        healer: Healer,
        cache: HealedLocatorCache | None = None,
    ) -> None:
        self.driver = driver
        self.config = config
        self.healer = healer
        self.cache = cache

    def validate_and_heal(self, locators: Sequence[Locator]) -> list[Locator]:
        logger.info("***** Element validation started for %d locator(s) *****", len(locators))
        try:
            updated = self._discover(locators)
            damaged = [index for index, locator in enumerate(updated) if locator is None]
            if damaged:
                self._heal_damaged(locators, updated, damaged)
            for locator in updated:
                if locator is None or not self._scroll_to_find(locator):
                    logger.error("Element still not found after healing: %s", locator.key if locator else None)
                    return []
        except (WebDriverException, HealingError) as exc:
            logger.error("Element validation aborted: %s", exc, exc_info=True)
            return []

        if self.cache is not None:
            for original, healed in zip(locators, updated):
                if healed != original:
                    self.cache.put(original.key, healed)
        logger.info("***** Element validation completed successfully *****")
        return list(updated)

    def _discover(self, locators: Sequence[Locator]) -> list[Locator | None]:
        found: list[Locator | None] = []
        for locator in locators:
            if self._scroll_to_find(locator):
                logger.info("[FOUND] %s", locator.key)
                found.append(locator)
            else:
                logger.info("[MISSING] %s (even after scrolling)", locator.key)
                found.append(None)
                self._scroll_to_top()
        return found

    def _heal_damaged(
        self,
        originals: Sequence[Locator],
        updated: list[Locator | None],
        damaged: list[int],
    ) -> None:
        try:
            candidates = self.healer.recover_many(self.driver, [originals[index] for index in damaged])
        except HealingError as exc:
            logger.warning("Batch healing failed, keeping the original locators: %s", exc)
            candidates = [None] * len(damaged)
        for index, candidate in zip(damaged, candidates):
            if candidate is not None and candidate.value.strip():
                logger.info("[HEALED] index %d: %s", index, candidate.key)
                updated[index] = candidate
            else:
                logger.info("[FALLBACK] using original locator for index %d", index)
                updated[index] = originals[index]

    def _is_present(self, locator: Locator) -> bool:
        try:
            elements = self.driver.find_elements(*locator)
            return bool(elements) and elements[0].is_displayed()
        except WebDriverException as exc:
            logger.warning("Failed to check element presence for %s: %s", locator.key, exc)
            return False

    def _scroll_to_find(self, locator: Locator) -> bool:
        for attempt in range(1, self.config.max_scroll_attempts + 1):
            if self._is_present(locator):
                return True
            try:
                self.driver.execute_script(f"window.scrollBy(0, {self.config.scroll_increment_px});")
            except WebDriverException as exc:
                logger.warning("Scroll attempt %d failed for %s: %s", attempt, locator.key, exc)
            time.sleep(self.config.scroll_pause_seconds)
        return False

    def _scroll_to_top(self) -> None:
        try:
            self.driver.execute_script("window.scrollTo(0, 0);")
        except WebDriverException as exc:
            logger.warning("Failed to scroll to top: %s", exc)
            return
        time.sleep(self.config.top_reset_pause_seconds)
