from __future__ import annotations

import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Iterable

from selfheal.core.locator import Locator, Strategy
from selfheal.core.metadata import CandidateElement

ATTRIBUTE_WEIGHTS = (
    ("id", 40.0),
    ("name", 30.0),
    ("class", 25.0),
)
TEXT_WEIGHT = 25.0
OTHER_ATTRIBUTE_WEIGHT = 15.0
TAG_WEIGHT = 20.0

_QUOTED = re.compile(r"'([^']*)'|\"([^\"]*)\"")
_XPATH_STEP_TAG = re.compile(r"/+([A-Za-z][\w-]*)")
_CSS_LEADING_TAG = re.compile(r"^([A-Za-z][\w-]*)")
_CSS_ID_OR_CLASS = re.compile(r"[#.]([\w-]+)")


@dataclass(slots=True)
class LocatorHints:
    tag: str | None = None
    values: list[str] = field(default_factory=list)


def locator_hints(locator: Locator) -> LocatorHints:
    """Pulls the tag and literal fragments a damaged locator was aiming at."""

    value = locator.value.strip()
    if locator.strategy is Strategy.XPATH:
        steps = _XPATH_STEP_TAG.findall(value)
        literals = [single or double for single, double in _QUOTED.findall(value)]
        return LocatorHints(tag=steps[-1].lower() if steps else None, values=[item for item in literals if item])
    if locator.strategy is Strategy.CSS:
        leading = _CSS_LEADING_TAG.match(value)
        literals = [single or double for single, double in _QUOTED.findall(value)]
        fragments = _CSS_ID_OR_CLASS.findall(value) + [item for item in literals if item]
        return LocatorHints(tag=leading.group(1).lower() if leading else None, values=fragments)
    if locator.strategy is Strategy.TAG:
        return LocatorHints(tag=value.lower())
    if locator.strategy in (Strategy.LINK_TEXT, Strategy.PARTIAL_LINK_TEXT):
        return LocatorHints(tag="a", values=[value])
    return LocatorHints(values=[value])


def score_candidates(hints: LocatorHints, candidates: Iterable[CandidateElement]) -> list[CandidateElement]:
    scored: list[CandidateElement] = []
    for candidate in candidates:
        score = 0.0
        if hints.tag and candidate.tag == hints.tag:
            score += TAG_WEIGHT
        if hints.values:
            score += max(_value_score(value, candidate) for value in hints.values)
        candidate.heuristic_score = round(score, 4)
        scored.append(candidate)
    scored.sort(key=lambda item: item.heuristic_score, reverse=True)
    return scored


def _value_score(value: str, candidate: CandidateElement) -> float:
    best = 0.0
    for attribute, weight in ATTRIBUTE_WEIGHTS:
        actual = candidate.attributes.get(attribute, "")
        if attribute == "class":
            similarity = max((_similarity(value, token) for token in actual.split()), default=0.0)
            similarity = max(similarity, _class_overlap(value, actual))
        else:
            similarity = _similarity(value, actual)
        best = max(best, weight * similarity)
    best = max(best, TEXT_WEIGHT * _similarity(value, candidate.text))
    for attribute, actual in candidate.attributes.items():
        if attribute in {"id", "name", "class"}:
            continue
        best = max(best, OTHER_ATTRIBUTE_WEIGHT * _similarity(value, actual))
    return best


def _similarity(left: str, right: str) -> float:
    if not left or not right:
        return 0.0
    return SequenceMatcher(a=left.lower(), b=right.lower()).ratio()


def _class_overlap(expected: str, actual: str) -> float:
    left = {item for item in expected.split() if item}
    right = {item for item in actual.split() if item}
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)
