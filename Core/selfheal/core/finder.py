from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from selenium.common.exceptions import (
    InvalidSelectorException,
    NoSuchElementException,
    StaleElementReferenceException,
    TimeoutException,
)

from selfheal.config.schema import ResolverConfig
from selfheal.core.cache import HealedLocatorCache
from selfheal.core.context import HealingContext
from selfheal.core.exceptions import ElementNotFound, HealingError
from selfheal.core.healer import Healer
from selfheal.core.locator import Locator
from selfheal.utils.wait import wait_for_elements

logger = logging.getLogger(__name__)

LOOKUP_ERRORS = (
    NoSuchElementException,
    TimeoutException,
    InvalidSelectorException,
    StaleElementReferenceException,
)


class ResolutionState(str, Enum):
    INITIAL = "initial"
    RESOLVED = "resolved"
    RESOLVED_FROM_CACHE = "resolved_from_cache"
    WAITING = "waiting"
    RESOLVED_AFTER_WAIT = "resolved_after_wait"
    HEALING = "healing"
    RESOLVED_AFTER_HEAL = "resolved_after_heal"
    FAILED = "failed"


@dataclass(slots=True)
class Resolution:
    locator: Locator
    elements: list
    state: ResolutionState
    locator_used: Locator

    @property
    def element(self):
        return self.elements[0]


class LocatorResolver:
    """Centralized element lookup with automatic healing.

    A locator with a healed mapping goes straight to its replacement. With
    healing off it gets a single direct lookup. Otherwise it is waited for,
    healed through the oracle when the wait runs out, and the replacement is
    waited for in turn.
    """

    def __init__(
        self,
        driver,
        config: ResolverConfig,
        healer: Healer,
        cache: HealedLocatorCache | None = None,
        context: HealingContext | None = None,
    ) -> None:
        self.driver = driver
        self.config = config
        self.healer = healer
        self.cache = cache if cache is not None else HealedLocatorCache()
        self.context = context if context is not None else HealingContext(config.healing_enabled)

    def find(self, locator: Locator, heal: bool | None = None):
        return self.locate(locator, heal=heal).element

    def find_all(self, locator: Locator, heal: bool | None = None) -> list:
        return self.locate(locator, heal=heal).elements

    def locate(self, locator: Locator, heal: bool | None = None) -> Resolution:
        self._transition(locator, ResolutionState.INITIAL)
        replacement = self.cache.get(locator.key)
        if replacement is not None:
            return self._resolve_direct(locator, replacement, ResolutionState.RESOLVED_FROM_CACHE)

        healing_enabled = self.context.enabled if heal is None else heal
        if not healing_enabled:
            return self._resolve_direct(locator, locator, ResolutionState.RESOLVED)

        self._transition(locator, ResolutionState.WAITING)
        try:
            elements, probes = wait_for_elements(
                self.driver,
                locator,
                self.config.wait_timeout_seconds,
                self.config.poll_interval_seconds,
            )
        except LOOKUP_ERRORS as exc:
            return self._heal(locator, exc)
        state = ResolutionState.RESOLVED if probes == 1 else ResolutionState.RESOLVED_AFTER_WAIT
        self._transition(locator, state)
        return Resolution(locator, elements, state, locator)

    def _resolve_direct(self, locator: Locator, used: Locator, state: ResolutionState) -> Resolution:
        try:
            elements = self.driver.find_elements(*used)
        except (InvalidSelectorException, StaleElementReferenceException) as exc:
            self._transition(locator, ResolutionState.FAILED)
            raise ElementNotFound(locator, exc) from exc
        if not elements:
            self._transition(locator, ResolutionState.FAILED)
            raise ElementNotFound(locator, NoSuchElementException(f"No element matches {used.key}"))
        self._transition(locator, state)
        return Resolution(locator, elements, state, used)

    def _heal(self, locator: Locator, failure: Exception) -> Resolution:
        self._transition(locator, ResolutionState.HEALING)
        try:
            candidate = self.healer.recover(self.driver, locator, failure)
        except HealingError as exc:
            logger.warning("Healing process failed for %s: %s", locator.key, exc)
            self._transition(locator, ResolutionState.FAILED)
            raise ElementNotFound(locator, exc) from failure

        self.cache.put(locator.key, candidate)
        try:
            elements, _ = wait_for_elements(
                self.driver,
                candidate,
                self.config.wait_timeout_seconds,
                self.config.poll_interval_seconds,
            )
        except LOOKUP_ERRORS as exc:
            # The mapping stays; later lookups of this key go straight to the candidate.
            logger.warning("Healed locator %s did not resolve for %s", candidate.key, locator.key)
            self._transition(locator, ResolutionState.FAILED)
            raise ElementNotFound(locator, exc) from failure

        logger.info("Healing successful. Cached healed locator %s for %s", candidate.key, locator.key)
        self._transition(locator, ResolutionState.RESOLVED_AFTER_HEAL)
        return Resolution(locator, elements, ResolutionState.RESOLVED_AFTER_HEAL, candidate)

    @staticmethod
    def _transition(locator: Locator, state: ResolutionState) -> None:
        logger.debug("%s -> %s", locator.key, state.value)
