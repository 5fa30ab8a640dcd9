from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from selfheal.core.metadata import HealAttempt


class HealingAuditLogger:
    """Appends one JSON line per healing attempt."""

    def __init__(self, root: str | Path = "artifacts") -> None:
        self.root = Path(root)
        self.healed_elements_path = self.root / "healed_elements.jsonl"
        self._lock = threading.Lock()

    def write(self, attempt: HealAttempt) -> None:
        payload = {
            "locator_key": attempt.locator_key,
            "old_locator": attempt.old_locator,
            "failure_type": attempt.failure_type,
            "provider": attempt.provider,
            "new_locator": attempt.new_locator,
            "success": attempt.success,
            "error": attempt.error,
            "artifact_paths": attempt.artifact_paths,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        with self._lock:
            self.root.mkdir(parents=True, exist_ok=True)
            with self.healed_elements_path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(payload) + "\n")

    def read_attempts(self) -> list[dict[str, Any]]:
        if not self.healed_elements_path.exists():
            return []
        attempts: list[dict[str, Any]] = []
        with self.healed_elements_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    attempts.append(json.loads(line))
        return attempts
