"""Structured payload extraction from free-text LLM responses.

Providers are asked for JSON but frequently wrap it in prose or markdown
fences. ``extract_json_payload`` locates the first well-formed JSON object
or array in the text and returns it parsed.
"""

from __future__ import annotations

import json
import re
from typing import Any

from inkpress.common.errors import ProviderParseError

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)

_OPENERS = {"{": "}", "[": "]"}


def _balanced_end(text: str, start: int) -> int:
    """Return the index just past the bracket matching ``text[start]``, or -1.

    String literals and escapes are skipped so braces inside values do not
    count.
    """
    stack = [_OPENERS[text[start]]]
    in_string = False
    escaped = False
    for i in range(start + 1, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in ("}", "]"):
            if not stack or ch != stack[-1]:
                return -1
            stack.pop()
            if not stack:
                return i + 1
    return -1


def _scan(text: str) -> Any:
    for start, ch in enumerate(text):
        if ch not in _OPENERS:
            continue
        end = _balanced_end(text, start)
        if end == -1:
            continue
        try:
            return json.loads(text[start:end])
        except json.JSONDecodeError:
            continue
    raise ValueError("no balanced JSON payload")


def extract_json_payload(text: str, stage: str = "") -> Any:
    """Extract the first balanced JSON object or array from ``text``.

    Args:
        text: Raw provider response.
        stage: Pipeline stage name used in the raised error.

    Returns:
        The parsed JSON value (dict or list).

    Raises:
        ProviderParseError: If no parseable payload exists.
    """
    if not text or not text.strip():
        raise ProviderParseError("Empty response from provider", raw_text=text or "", stage=stage)

    candidates = [m.group(1) for m in _FENCE_RE.finditer(text)]
    candidates.append(text)

    for candidate in candidates:
        stripped = candidate.strip()
        try:
            value = json.loads(stripped)
            if isinstance(value, (dict, list)):
                return value
        except json.JSONDecodeError:
            pass
        try:
            return _scan(stripped)
        except ValueError:
            continue

    raise ProviderParseError(
        "No JSON payload found in provider response", raw_text=text, stage=stage
    )
