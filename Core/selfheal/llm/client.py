from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

import requests
from bs4 import BeautifulSoup, Tag

from selfheal.config.schema import HealingConfig, OracleConfig, ScoringConfig
from selfheal.core.exceptions import HealingFailed, OracleUnavailable
from selfheal.core.locator import Locator
from selfheal.core.metadata import CandidateElement
from selfheal.llm.parser import (
    decode_locator,
    extract_xpaths,
    parse_batch_response,
    parse_single_response,
)
from selfheal.llm.prompts import build_batch_prompt, build_single_prompt
from selfheal.utils.dom_extract import collect_candidate_elements
from selfheal.utils.scoring import locator_hints, score_candidates
from selfheal.utils.xpath import StructuralPathGenerator, xpath_literal

logger = logging.getLogger(__name__)


class LocatorRepairClient(ABC):
    """Provider-neutral interface for locator repair."""

    provider_name = "unknown"

    @abstractmethod
    def repair_one(self, locator: Locator, excerpt: str) -> Locator | None:
        raise NotImplementedError

    @abstractmethod
    def repair_many(self, locators: Sequence[Locator], excerpt: str) -> list[Locator | None]:
        raise NotImplementedError


class ChatCompletionRepairClient(LocatorRepairClient):
    """Asks an OpenAI-compatible chat-completion endpoint for replacement locators."""

    provider_name = "chat"

    def __init__(self, config: OracleConfig) -> None:
        if not config.endpoint:
            raise RuntimeError("An oracle endpoint (HEALING_ORACLE_URL) is required for the chat provider")
        self.config = config

    def repair_one(self, locator: Locator, excerpt: str) -> Locator | None:
        answer = parse_single_response(self.complete(build_single_prompt(locator, excerpt)))
        healed = decode_locator(answer)
        logger.info("Oracle proposed %s for %s", healed.key, locator.key)
        return healed

    def repair_many(self, locators: Sequence[Locator], excerpt: str) -> list[Locator | None]:
        response = self.complete(build_batch_prompt(locators, excerpt))
        if self.config.batch_protocol == "xpath_scan":
            xpaths = extract_xpaths(response)
            if not xpaths:
                raise HealingFailed("Oracle response contained no XPath expressions")
            answers: list[str | None] = list(xpaths[: len(locators)])
            answers.extend([None] * (len(locators) - len(answers)))
        else:
            answers = parse_batch_response(response, len(locators))
        return [decode_locator(answer) if answer else None for answer in answers]

    def complete(self, prompt: str) -> str:
        body = {
            "model": self.config.model,
            "messages": [
                {"role": "user", "content": prompt},
            ],
        }
        logger.debug("Sending repair prompt to %s:\n%s", self.config.endpoint, prompt)
        response = _post_json(
            self.config.endpoint,
            body,
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
            timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
        )
        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise HealingFailed("Oracle response has no choices[0].message.content") from exc
        if not isinstance(content, str) or not content.strip():
            raise HealingFailed("Oracle returned an empty answer")
        logger.debug("Oracle answer: %s", content)
        return content.strip()


class StructuralRepairClient(LocatorRepairClient):
    """Deterministic, offline repair: picks the closest element by attribute similarity."""

    provider_name = "structural"

    def __init__(self, config: ScoringConfig | None = None, path_generator: StructuralPathGenerator | None = None) -> None:
        self.config = config or ScoringConfig()
        self.path_generator = path_generator or StructuralPathGenerator()

    def repair_one(self, locator: Locator, excerpt: str) -> Locator | None:
        document = BeautifulSoup(excerpt, "html.parser")
        return self._repair(locator, document, collect_candidate_elements(document, self.path_generator))

    def repair_many(self, locators: Sequence[Locator], excerpt: str) -> list[Locator | None]:
        document = BeautifulSoup(excerpt, "html.parser")
        candidates = collect_candidate_elements(document, self.path_generator)
        return [self._repair(locator, document, candidates) for locator in locators]

    def _repair(self, locator: Locator, document: BeautifulSoup, candidates: list[CandidateElement]) -> Locator | None:
        hints = locator_hints(locator)
        if not hints.tag and not hints.values:
            return None
        ranked = score_candidates(hints, candidates)
        if not ranked or ranked[0].heuristic_score < self.config.min_score:
            logger.info("No structural match for %s", locator.key)
            return None
        best = ranked[0]
        healed = self._stable_locator(document, best)
        if healed is not None:
            logger.info("Structural fallback chose %s (score %.2f) for %s", healed.key, best.heuristic_score, locator.key)
        return healed

    @staticmethod
    def _stable_locator(document: BeautifulSoup, candidate: CandidateElement) -> Locator | None:
        tag = candidate.tag
        identifier = candidate.attributes.get("id")
        if identifier:
            return Locator.xpath(f"//{tag}[@id={xpath_literal(identifier)}]")
        name = candidate.attributes.get("name")
        if name and len(document.find_all(tag, attrs={"name": name})) == 1:
            return Locator.xpath(f"//{tag}[@name={xpath_literal(name)}]")
        for token in candidate.attributes.get("class", "").split():
            if len(document.find_all(tag, class_=token)) == 1:
                padded = xpath_literal(f" {token} ")
                return Locator.xpath(f"//{tag}[contains(concat(' ', normalize-space(@class), ' '), {padded})]")
        text = candidate.text
        if text and len(text) <= 80 and _count_with_text(document, tag, text) == 1:
            return Locator.xpath(f"//{tag}[normalize-space()={xpath_literal(text)}]")
        if candidate.structural_path:
            return Locator.xpath(candidate.structural_path)
        return None


def _count_with_text(document: BeautifulSoup, tag: str, text: str) -> int:
    return sum(1 for node in document.find_all(tag) if isinstance(node, Tag) and node.get_text(" ", strip=True) == text)


def create_repair_client(config: HealingConfig) -> LocatorRepairClient:
    provider = config.oracle.provider
    if provider == "chat":
        return ChatCompletionRepairClient(config.oracle)
    if provider == "structural":
        return StructuralRepairClient(config.scoring)
    raise RuntimeError(f"Unsupported oracle provider: {provider}")


def _post_json(
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str],
    timeout: tuple[float, float],
) -> dict[str, Any]:
    try:
        response = requests.post(url, json=payload, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        raise OracleUnavailable(f"Oracle request could not be completed: {exc}") from exc
    if not response.ok:
        raise OracleUnavailable(f"Oracle request failed with status {response.status_code}: {response.text}")
    try:
        return response.json()
    except ValueError as exc:
        raise HealingFailed(f"Oracle returned a non-JSON body: {response.text[:200]!r}") from exc
