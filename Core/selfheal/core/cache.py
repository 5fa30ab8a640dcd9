from __future__ import annotations

import threading

from selfheal.core.locator import Locator


class HealedLocatorCache:
    """Run-scoped mapping from an original locator key to its healed replacement.

    Entries never expire. If the page drifts again after a heal, the cached
    replacement keeps being used and fails like any other locator. Two
    threads healing the same key at once both reach the oracle and the last
    ``put`` wins.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Locator] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Locator | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, replacement: Locator) -> None:
        with self._lock:
            self._entries[key] = replacement

    def snapshot(self) -> dict[str, Locator]:
        with self._lock:
            return dict(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
