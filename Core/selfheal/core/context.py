from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

T = TypeVar("T")


class HealingContext:
    """Healing on/off switch whose state is kept per calling thread.

    Every thread starts from ``default``. Parallel runners sharing one
    context toggle it independently.
    """

    def __init__(self, default: bool = True) -> None:
        self.default = default
        self._local = threading.local()

    @property
    def enabled(self) -> bool:
        return getattr(self._local, "enabled", self.default)

    def enable(self) -> None:
        self._local.enabled = True

    def disable(self) -> None:
        self._local.enabled = False

    @contextmanager
    def without_healing(self) -> Iterator[None]:
        previous = self.enabled
        self._local.enabled = False
        try:
            yield
        finally:
            self._local.enabled = previous

    def run_without_healing(self, func: Callable[..., T], *args, **kwargs) -> T:
        with self.without_healing():
            return func(*args, **kwargs)
