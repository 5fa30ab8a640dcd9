from __future__ import annotations

import logging
from typing import Sequence

from selenium.common.exceptions import WebDriverException

from selfheal.core.exceptions import HealingError, HealingFailed, SnapshotCaptureFailed
from selfheal.core.locator import Locator
from selfheal.core.metadata import DocumentSnapshot, HealAttempt, HealingRequest
from selfheal.core.snapshot import DocumentSnapshotter
from selfheal.llm.client import LocatorRepairClient
from selfheal.logging.audit import HealingAuditLogger

logger = logging.getLogger(__name__)


class Healer:
    """Coordinates snapshot capture, trimming and oracle repair for damaged locators."""

    def __init__(
        self,
        llm_client: LocatorRepairClient,
        snapshotter: DocumentSnapshotter,
        audit_logger: HealingAuditLogger,
    ) -> None:
        self.llm_client = llm_client
        self.snapshotter = snapshotter
        self.audit_logger = audit_logger

    def recover(self, driver, locator: Locator, failure: Exception) -> Locator:
        """Returns a replacement for ``locator`` or raises a ``HealingError``."""

        logger.info("Element issue detected for locator %s, triggering healing", locator.key)
        snapshot: DocumentSnapshot | None = None
        healed: Locator | None = None
        error = ""
        try:
            snapshot = self.capture(driver)
            request = HealingRequest(locators=[locator], excerpt=self.snapshotter.trim(snapshot.content, [locator]))
            healed = self.llm_client.repair_one(request.locators[0], request.excerpt)
            if healed is None:
                raise HealingFailed(f"No replacement found for {locator.key}")
            return healed
        except Exception as exc:  # noqa: BLE001 - audit logging needs the concrete failure.
            error = f"{type(exc).__name__}: {exc}"
            if isinstance(exc, HealingError):
                raise
            raise HealingError(str(exc)) from exc
        finally:
            self._audit(locator, failure, healed, error, snapshot)

    def recover_many(self, driver, locators: Sequence[Locator]) -> list[Locator | None]:
        """One snapshot and one oracle call for the whole batch, aligned with ``locators``."""

        logger.info("Healing %d missing element(s) in one request", len(locators))
        snapshot: DocumentSnapshot | None = None
        healed: list[Locator | None] = [None] * len(locators)
        error = ""
        try:
            snapshot = self.capture(driver)
            request = HealingRequest(locators=list(locators), excerpt=self.snapshotter.trim(snapshot.content, locators))
            answers = self.llm_client.repair_many(request.locators, request.excerpt)
            healed = (list(answers) + [None] * len(locators))[: len(locators)]
            return healed
        except Exception as exc:  # noqa: BLE001 - audit logging needs the concrete failure.
            error = f"{type(exc).__name__}: {exc}"
            if isinstance(exc, HealingError):
                raise
            raise HealingError(str(exc)) from exc
        finally:
            for locator, replacement in zip(locators, healed):
                self._audit(locator, None, replacement, error, snapshot)

    def capture(self, driver) -> DocumentSnapshot:
        try:
            markup = driver.page_source
        except WebDriverException as exc:
            raise SnapshotCaptureFailed(f"Could not read page source: {exc}") from exc
        return self.snapshotter.capture(markup or "")

    def _audit(
        self,
        locator: Locator,
        failure: Exception | None,
        healed: Locator | None,
        error: str,
        snapshot: DocumentSnapshot | None,
    ) -> None:
        artifact_paths = {}
        if snapshot is not None and snapshot.path is not None:
            artifact_paths["dom_snapshot"] = str(snapshot.path)
        self.audit_logger.write(
            HealAttempt(
                locator_key=locator.key,
                old_locator=locator.value,
                failure_type=type(failure).__name__ if failure is not None else "BatchValidation",
                provider=getattr(self.llm_client, "provider_name", "unknown"),
                new_locator=healed.key if healed is not None else "",
                success=healed is not None,
                error=error,
                artifact_paths=artifact_paths,
            )
        )
