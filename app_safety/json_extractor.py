"""
JSON extractor: pulls a JSON object or array out of a free-text LLM answer.

Web-search-grounded calls can't use response_format=json_object, so the model
answers in prose. The JSON we asked for may be:
    - fenced in ```json ... ``` (most common)
    - fenced in a plain ``` ... ``` block
    - the whole answer
    - buried between sentences ("Here you go: {...} Hope this helps!")

We try each of these in order and keep the first one that parses.
Nothing here raises: "no JSON" (or JSON nested too deep to parse) is answered with None.
"""

import json
import re
from typing import Any, Optional

from app_safety.logging_config import get_logger

logger = get_logger(__name__)

JSON_FENCE_PATTERN = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL)
ANY_FENCE_PATTERN = re.compile(r"```\s*(.*?)\s*```", re.DOTALL)


def _between(text: str, opener: str, closer: str) -> Optional[str]:
    """Substring from the first opener to the last closer, inclusive."""
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def _candidates(text: str):
    """Yield (label, snippet) pairs in the order they should be tried."""
    trimmed = text.strip()

    match = JSON_FENCE_PATTERN.search(trimmed)
    if match:
        yield "json fence", match.group(1)

    match = ANY_FENCE_PATTERN.search(trimmed)
    if match:
        yield "plain fence", match.group(1)

    yield "whole text", trimmed
    yield "braces", _between(text, "{", "}")
    yield "brackets", _between(text, "[", "]")


def extract_json(raw_text: str) -> Optional[Any]:
    """
    Find and parse the JSON payload in raw_text.

    Returns:
        The parsed object/array, or None if nothing parseable was found.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return None

    for label, snippet in _candidates(raw_text):
        if not snippet:
            continue
        try:
            return json.loads(snippet)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.debug(f"JSON extraction via {label} failed: {e}")

    logger.warning(f"No JSON found in LLM response: {raw_text[:200]!r}")
    return None


# Quick test
if __name__ == "__main__":
    sample = 'Here you go:\n```json\n{"rating": "4.5", "downloads": "100M+"}\n```'
    print(extract_json(sample))
    print(extract_json("Sorry, I could not find that app."))
