from __future__ import annotations

from typing import Sequence

from selfheal.core.locator import Locator

ROLE = "ROLE: You are an expert Selenium XPath locator repair engine."

CONSTRUCTION_RULES = """XPATH CONSTRUCTION RULES:
- Prefer short, stable, attribute-based XPath.
- Attribute priority order: @id -> @name -> stable part of @class -> visible text -> other attributes.
- Only use contains() when exact attribute match is not possible.
- If the original locator used contains() or another substring match, keep the substring match.
- When matching visible text, keep the text exactly as written, including whitespace.
- Avoid absolute paths like /html/body unless no stable alternative exists.
- XPath must uniquely identify the element."""

OUTPUT_RULES = """OUTPUT FORMAT (IMPORTANT):
- Output only the corrected/new XPath values.
- One XPath per line, in the same order as the input list.
- No explanations, no reasoning, no markdown, no labels."""


def _enumerate(locators: Sequence[Locator]) -> str:
    return "\n".join(f"{index}. {locator.key}" for index, locator in enumerate(locators, start=1))


def build_batch_prompt(locators: Sequence[Locator], excerpt: str) -> str:
    """Formats a deterministic repair request for one or more damaged locators."""

    return (
        f"{ROLE}\n\n"
        "INPUT:\n"
        f"1) Damaged Locator List:\n{_enumerate(locators)}\n\n"
        f"2) HTML Snapshot:\n'''\n{excerpt}\n'''\n\n"
        "TASK:\n"
        "- For each locator in the list, locate the intended target element in the provided HTML.\n"
        "- If the element still exists but the locator no longer matches, generate a corrected and stable XPath.\n"
        "- If the element cannot be confidently matched, generate a new stable XPath that best identifies "
        "the element based on the original locator's intent.\n\n"
        f"{CONSTRUCTION_RULES}\n\n"
        f"{OUTPUT_RULES}\n"
    )


def build_single_prompt(locator: Locator, excerpt: str) -> str:
    return build_batch_prompt([locator], excerpt)
