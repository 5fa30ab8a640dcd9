from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Sequence

from selfheal.config.schema import HealingConfig
from selfheal.core.actions import SafeActions
from selfheal.core.cache import HealedLocatorCache
from selfheal.core.context import HealingContext
from selfheal.core.finder import LocatorResolver, Resolution
from selfheal.core.healer import Healer
from selfheal.core.locator import Locator
from selfheal.core.snapshot import DocumentSnapshotter
from selfheal.core.validator import ValidationOrchestrator
from selfheal.llm.client import LocatorRepairClient, create_repair_client
from selfheal.logging.artifacts import ArtifactManager
from selfheal.logging.audit import HealingAuditLogger


class HealingSession:
    """Wires the healing components around one explicit driver.

    Threads sharing a session share its healed-locator cache; each thread has
    its own healing on/off flag.
    """

    def __init__(
        self,
        driver,
        config: HealingConfig | None = None,
        client: LocatorRepairClient | None = None,
        cache: HealedLocatorCache | None = None,
        context: HealingContext | None = None,
        artifacts: ArtifactManager | None = None,
        audit_logger: HealingAuditLogger | None = None,
    ) -> None:
        self.driver = driver
        self.config = config or HealingConfig()
        self.cache = cache if cache is not None else HealedLocatorCache()
        self.context = context if context is not None else HealingContext(self.config.resolver.healing_enabled)
        self.artifacts = artifacts or ArtifactManager(self.config.artifacts_root, self.config.snapshot.output_dir)
        self.audit_logger = audit_logger or HealingAuditLogger(self.config.artifacts_root)
        self.client = client or create_repair_client(self.config)
        self.snapshotter = DocumentSnapshotter(self.config.snapshot, self.artifacts)
        self.healer = Healer(self.client, self.snapshotter, self.audit_logger)
        self.resolver = LocatorResolver(driver, self.config.resolver, self.healer, self.cache, self.context)
        self.validator = ValidationOrchestrator(driver, self.config.validation, self.healer, self.cache)
        self.actions = SafeActions(self.resolver)

    def find(self, locator: Locator, heal: bool | None = None):
        return self.resolver.find(locator, heal=heal)

    def find_all(self, locator: Locator, heal: bool | None = None) -> list:
        return self.resolver.find_all(locator, heal=heal)

    def locate(self, locator: Locator, heal: bool | None = None) -> Resolution:
        return self.resolver.locate(locator, heal=heal)

    def validate_and_heal(self, locators: Sequence[Locator]) -> list[Locator]:
        return self.validator.validate_and_heal(locators)

    def without_healing(self) -> AbstractContextManager[None]:
        return self.context.without_healing()

    def click(self, locator: Locator) -> None:
        self.actions.click(locator)

    def type(self, locator: Locator, value: str, clear_first: bool = True) -> None:
        self.actions.type(locator, value, clear_first=clear_first)

    def text(self, locator: Locator) -> str:
        return self.actions.text(locator)
