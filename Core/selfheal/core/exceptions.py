from __future__ import annotations

from selenium.common.exceptions import NoSuchElementException


class HealingError(RuntimeError):
    """Raised when selector healing fails."""


class OracleUnavailable(HealingError):
    """Raised when the repair oracle cannot be reached or answers with an error status."""


class HealingFailed(HealingError):
    """Raised when the oracle answered but produced no usable locator."""


class SnapshotCaptureFailed(HealingError):
    """Raised when the page markup cannot be captured, parsed or persisted."""


class ElementNotFound(NoSuchElementException):
    """Terminal lookup failure for a locator, healed or not."""

    def __init__(self, locator, cause: BaseException | None = None) -> None:
        message = f"Element not found for locator {locator.key}"
        if cause is not None:
            message += f" (cause: {type(cause).__name__}: {cause})"
        super().__init__(message)
        self.locator = locator
        self.cause = cause
