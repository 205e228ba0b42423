"""JSON recovery from free-form provider text."""

import json
import re
from typing import Any

from ..utils.logging import get_logger

logger = get_logger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def extract_fenced_block(text: str) -> str | None:
    """Return the body of the first fenced code block, if any."""
    match = _FENCED_BLOCK.search(text)
    return match.group(1).strip() if match else None


def find_balanced_object(text: str) -> str | None:
    """Return the substring from the first ``{`` to its matching ``}``.

    Depth counting skips braces inside JSON strings, so trailing prose or a
    second object after the first one is not swallowed.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape_next = False
    for i in range(start, len(text)):
        char = text[i]
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _loads_object(candidate: str | None) -> dict[str, Any] | None:
    if not candidate:
        return None
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def recover_json_object(text: str) -> tuple[dict[str, Any] | None, str]:
    """Recover the first JSON object from provider text.

    Tries, in order: a fenced code block, the whole text, and a
    brace-matched substring (of the fenced body first, then of the text).

    Returns:
        (object or None, name of the strategy that worked or ``"none"``)
    """
    fenced = extract_fenced_block(text)
    attempts = (
        ("fenced_block", fenced),
        ("whole_text", text.strip()),
        ("brace_match_fenced", find_balanced_object(fenced) if fenced else None),
        ("brace_match", find_balanced_object(text)),
    )
    for strategy, candidate in attempts:
        value = _loads_object(candidate)
        if value is not None:
            if strategy.startswith("brace_match"):
                logger.debug("json_recovered", strategy=strategy, text_length=len(text))
            return value, strategy
    return None, "none"
