"""Protected-span accounting for rewriting stages.

Refinement and SEO optimization ask the model to leave tables, mermaid
diagrams and callouts untouched. This module counts those constructs so a
rewrite can be compared against its input. A mismatch is reported as a
warning only; the rewrite is never reverted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_MERMAID_RE = re.compile(r"^```mermaid\b", re.MULTILINE)
_CALLOUT_RE = re.compile(r"^>\s*\[!(NOTE|TIP|IMPORTANT|WARNING|CAUTION)\]", re.MULTILINE | re.IGNORECASE)
_TABLE_SEPARATOR_RE = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$")


@dataclass(frozen=True)
class SpanCounts:
    """Number of protected constructs in a markdown document."""

    tables: int = 0
    mermaid: int = 0
    callouts: int = 0


def count_tables(markdown: str) -> int:
    """Count markdown tables by their header separator rows (``|---|---|``)."""
    count = 0
    in_fence = False
    for line in markdown.splitlines():
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
            continue
        if not in_fence and "-" in line and "|" in line and _TABLE_SEPARATOR_RE.match(line):
            count += 1
    return count


def count_protected_spans(markdown: str) -> SpanCounts:
    return SpanCounts(
        tables=count_tables(markdown),
        mermaid=len(_MERMAID_RE.findall(markdown)),
        callouts=len(_CALLOUT_RE.findall(markdown)),
    )


def compare_protected_spans(before: str, after: str, stage: str = "") -> list[str]:
    """Return one warning per construct whose count changed in the rewrite."""
    old = count_protected_spans(before)
    new = count_protected_spans(after)
    warnings = []
    for name in ("tables", "mermaid", "callouts"):
        was, now = getattr(old, name), getattr(new, name)
        if was != now:
            warnings.append(f"{name}: {was} before, {now} after")
    for warning in warnings:
        logger.warning("Protected span changed%s: %s", f" ({stage})" if stage else "", warning)
    return warnings
