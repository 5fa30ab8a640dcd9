from __future__ import annotations

import logging
import re

from selfheal.core.exceptions import HealingFailed
from selfheal.core.locator import Locator, Strategy

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```(?:[\w+-]*\n)?")
_CLOSING_FENCE = re.compile(r"\n?```$")
_LIST_NUMBER = re.compile(r"^\d+[.)]\s+")
_PREDICATE_XPATH = re.compile(r"(//[^\s]+\[(?:@[^\]]+|contains\([^\]]+\))\])")
_WRAPPED = re.compile(r"^by\s*\.?\s*([A-Za-z_ ]+?)\s*\((.*)\)$", re.IGNORECASE | re.DOTALL)
_RENDERED = re.compile(r"^by\.([A-Za-z_ ]+?)\s*:\s*(.+)$", re.IGNORECASE | re.DOTALL)

STRATEGY_NAMES = {
    "id": Strategy.ID,
    "name": Strategy.NAME,
    "css": Strategy.CSS,
    "cssselector": Strategy.CSS,
    "class": Strategy.CLASS,
    "classname": Strategy.CLASS,
    "tag": Strategy.TAG,
    "tagname": Strategy.TAG,
    "link": Strategy.LINK_TEXT,
    "linktext": Strategy.LINK_TEXT,
    "partiallink": Strategy.PARTIAL_LINK_TEXT,
    "partiallinktext": Strategy.PARTIAL_LINK_TEXT,
    "xpath": Strategy.XPATH,
}


def strip_code_fence(response: str) -> str:
    cleaned = _OPENING_FENCE.sub("", response.strip())
    return _CLOSING_FENCE.sub("", cleaned).strip()


def _answer_lines(response: str) -> list[str]:
    lines = []
    for line in strip_code_fence(response).splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("```"):
            continue
        lines.append(_LIST_NUMBER.sub("", stripped))
    return lines


def parse_single_response(response: str) -> str:
    """Returns the first non-blank line of an oracle answer."""

    lines = _answer_lines(response)
    if not lines:
        raise HealingFailed("Oracle returned no locator")
    return lines[0]


def parse_batch_response(response: str, count: int) -> list[str | None]:
    """Aligns one answer per line with ``count`` requested locators."""

    lines = _answer_lines(response)
    if not lines:
        raise HealingFailed("Oracle returned no locators")
    if len(lines) != count:
        logger.warning("Oracle returned %d answer line(s) for %d locator(s)", len(lines), count)
    answers: list[str | None] = list(lines[:count])
    answers.extend([None] * (count - len(answers)))
    return answers


def extract_xpaths(response: str) -> list[str]:
    """Scans free text for every ``//tag[...]`` expression, in order of appearance."""

    xpaths = _PREDICATE_XPATH.findall(strip_code_fence(response))
    if not xpaths:
        logger.info("Oracle response doesn't contain a valid XPath: %s", response)
    return xpaths


def decode_locator(candidate: str) -> Locator:
    """Turns an oracle answer into a typed locator, defaulting to XPath."""

    text = candidate.strip()
    match = _WRAPPED.match(text) or _RENDERED.match(text)
    if match is None:
        return Locator.xpath(text)
    strategy = STRATEGY_NAMES.get(re.sub(r"[\s_]", "", match.group(1)).lower())
    value = _unquote(match.group(2).strip())
    if strategy is None or not value:
        logger.debug("Unrecognized locator wrapper %r, treating it as XPath", text)
        return Locator.xpath(text)
    return Locator(strategy, value)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value
