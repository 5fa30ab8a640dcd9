from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from selfheal.core.locator import Locator


@dataclass(slots=True)
class DocumentSnapshot:
    markup: str
    indexed_paths: list[str]
    captured_at: datetime
    content: str
    path: Path | None = None


@dataclass(slots=True)
class HealingRequest:
    locators: list[Locator]
    excerpt: str


@dataclass(slots=True)
class CandidateElement:
    tag: str
    text: str
    attributes: dict[str, str]
    parent_tag: str
    structural_path: str
    heuristic_score: float = 0.0
    node: Any = field(default=None, repr=False)


@dataclass(slots=True)
class HealAttempt:
    locator_key: str
    old_locator: str
    failure_type: str
    provider: str
    new_locator: str
    success: bool
    error: str = ""
    artifact_paths: dict[str, str] = field(default_factory=dict)
