from __future__ import annotations

import logging
import re
from typing import Iterable

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup
from soupsieve import SelectorSyntaxError

from selfheal.core.locator import Locator, Strategy
from selfheal.core.metadata import CandidateElement
from selfheal.utils.xpath import StructuralPathGenerator

logger = logging.getLogger(__name__)

EXCERPT_WRAPPER = "root"
NON_CANDIDATE_TAGS = frozenset(
    {"html", "head", "body", "title", "meta", "link", "script", "style", "noscript", "template", EXCERPT_WRAPPER}
)

_XPATH_ATTRIBUTE_SHAPE = re.compile(r"^//([A-Za-z][\w-]*|\*)\[@([\w:-]+)=(?:'([^']*)'|\"([^\"]*)\")\]$")
_XPATH_TAG_SHAPE = re.compile(r"^//([A-Za-z][\w-]*)$")
_TAG_NAME = re.compile(r"^[A-Za-z][\w-]*$")


def _css_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def locator_to_css(locator: Locator) -> str | None:
    """Best-effort CSS query for a locator; ``None`` when the shape is not translatable."""

    value = locator.value.strip()
    if locator.strategy is Strategy.XPATH:
        attribute_match = _XPATH_ATTRIBUTE_SHAPE.match(value)
        if attribute_match:
            tag, attribute, single, double = attribute_match.groups()
            literal = single if single is not None else double
            prefix = "" if tag == "*" else tag
            return f"{prefix}[{attribute}={_css_string(literal)}]"
        tag_match = _XPATH_TAG_SHAPE.match(value)
        if tag_match:
            return tag_match.group(1)
        return None
    if locator.strategy is Strategy.ID:
        return f"[id={_css_string(value)}]"
    if locator.strategy is Strategy.NAME:
        return f"[name={_css_string(value)}]"
    if locator.strategy is Strategy.CLASS:
        return f"[class~={_css_string(value)}]"
    if locator.strategy is Strategy.TAG:
        return value if _TAG_NAME.match(value) else None
    if locator.strategy is Strategy.CSS:
        return value or None
    return None


def extract_relevant_markup(markup: str, locators: Iterable[Locator], limit: int = 20000) -> str:
    """Collects the outer markup of elements the damaged locators still describe.

    Falls back to the first ``limit`` characters of ``markup`` when no locator
    translates to a query, nothing matches, or the markup cannot be parsed.
    """

    queries = [query for query in (locator_to_css(locator) for locator in locators) if query]
    if not queries:
        logger.info("No damaged locator translates to a query; sending a markup prefix")
        return markup[:limit]
    try:
        document = BeautifulSoup(markup, "html.parser")
    except ParserRejectedMarkup as exc:
        logger.warning("Could not parse markup for trimming: %s", exc)
        return markup[:limit]

    fragments: list[str] = []
    seen: set[int] = set()
    for query in queries:
        try:
            matches = document.select(query)
        except SelectorSyntaxError as exc:
            logger.debug("Skipping untranslatable query %r: %s", query, exc)
            continue
        for element in matches:
            if id(element) in seen:
                continue
            seen.add(id(element))
            fragments.append(str(element))

    if not fragments:
        logger.info("Damaged locators matched nothing in the snapshot; sending a markup prefix")
        return markup[:limit]
    body = "\n".join(fragments)[:limit]
    return f"<{EXCERPT_WRAPPER}>\n{body}\n</{EXCERPT_WRAPPER}>"


def collect_candidate_elements(
    document: BeautifulSoup,
    path_generator: StructuralPathGenerator | None = None,
) -> list[CandidateElement]:
    generator = path_generator or StructuralPathGenerator()
    candidates: list[CandidateElement] = []
    for node in document.find_all(True):
        if node.name in NON_CANDIDATE_TAGS:
            continue
        inside_excerpt = node.find_parent(EXCERPT_WRAPPER) is not None
        candidates.append(
            CandidateElement(
                tag=node.name,
                text=node.get_text(" ", strip=True)[:200],
                attributes=_attribute_map(node),
                parent_tag=node.parent.name if isinstance(node.parent, Tag) else "",
                structural_path="" if inside_excerpt else generator.generate(node),
                node=node,
            )
        )
    return candidates


def _attribute_map(node: Tag) -> dict[str, str]:
    attributes: dict[str, str] = {}
    for name, value in node.attrs.items():
        attributes[name] = " ".join(value) if isinstance(value, list) else str(value)
    return attributes
