"""Local SEO heuristics.

Deterministic, synchronous scoring of a markdown document with no external
calls. Four sub-scores (readability, keyword density, heading structure,
image alt text) are averaged into the total.
"""

from __future__ import annotations

import math
import re
from typing import Optional

from pydantic import BaseModel, Field

_MARKDOWN_CHARS_RE = re.compile(r"[#*`\[\]()\-]")
_SENTENCE_SPLIT_RE = re.compile(r"[.?!]+")
_H1_RE = re.compile(r"^#\s", re.MULTILINE)
_H2_RE = re.compile(r"^##\s", re.MULTILINE)
_IMAGE_RE = re.compile(r"!\[(.*?)\]\((.*?)\)")

TARGET_SENTENCE_WORDS = 10
DENSITY_MIN = 0.5
DENSITY_MAX = 3.0


class LocalSeoDetails(BaseModel):
    word_count: int = 0
    sentence_count: int = 0
    missing_alt_tags: int = 0


class LocalSeoScore(BaseModel):
    readability_score: int
    keyword_density: float = 0.0
    keyword_score: int = 100
    heading_structure_score: int
    image_alt_score: int
    total_score: int
    details: LocalSeoDetails = Field(default_factory=LocalSeoDetails)
    issues: list[str] = Field(default_factory=list)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _words(text: str) -> list[str]:
    return [w for w in text.split() if w.strip()]


def _sentences(text: str) -> list[str]:
    return [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def readability_score(text: str) -> int:
    """100 at ten words per sentence, minus 2 points per extra word, clamped to 0-100."""
    sentences = _sentences(text)
    words = _words(text)
    if not sentences or not words:
        return 0
    avg = len(words) / len(sentences)
    score = 100 - (avg - TARGET_SENTENCE_WORDS) * 2
    return min(100, max(0, round_half_up(score)))


def heading_structure(content: str) -> tuple[int, list[str]]:
    issues = []
    score = 100
    h1_count = len(_H1_RE.findall(content))
    h2_count = len(_H2_RE.findall(content))

    if h1_count == 0:
        issues.append("No H1 heading (title) detected.")
        score -= 20
    elif h1_count > 1:
        issues.append("Use exactly one H1 heading.")
        score -= 10

    if h2_count == 0:
        issues.append("Use H2 headings to structure the body.")
        score -= 20

    return max(0, score), issues


def keyword_density(text: str, keyword: str) -> float:
    """Occurrences of ``keyword`` (case-insensitive, literal) per 100 words."""
    words = _words(text)
    if not words or not keyword.strip():
        return 0.0
    count = len(re.findall(re.escape(keyword.strip()), text, flags=re.IGNORECASE))
    return count / len(words) * 100


def count_missing_alt(content: str) -> int:
    return sum(1 for m in _IMAGE_RE.finditer(content) if not m.group(1).strip())


def analyze_local_seo(content: str, keyword: Optional[str] = None) -> LocalSeoScore:
    """Score ``content`` locally. Pure: same input, same output."""
    issues: list[str] = []
    text = _MARKDOWN_CHARS_RE.sub(" ", content)
    words = _words(text)

    readability = readability_score(text)
    if readability < 50:
        issues.append("Sentences are too long. Write shorter, more concise sentences.")

    density = 0.0
    keyword_score = 100
    if keyword and keyword.strip():
        density = keyword_density(text, keyword)
        if density < DENSITY_MIN:
            issues.append(f"Keyword '{keyword}' density is too low ({density:.1f}%).")
            keyword_score = 50
        elif density > DENSITY_MAX:
            issues.append(
                f"Keyword '{keyword}' density is too high ({density:.1f}%). Aim for 1-2%."
            )
            keyword_score = 60

    structure_score, structure_issues = heading_structure(content)
    issues.extend(structure_issues)

    missing_alt = count_missing_alt(content)
    alt_score = 100
    if missing_alt:
        issues.append(f"{missing_alt} image(s) have no alt text.")
        alt_score = max(0, 100 - missing_alt * 10)

    total = round_half_up((readability + keyword_score + structure_score + alt_score) / 4)

    return LocalSeoScore(
        readability_score=readability,
        keyword_density=density,
        keyword_score=keyword_score,
        heading_structure_score=structure_score,
        image_alt_score=alt_score,
        total_score=total,
        details=LocalSeoDetails(
            word_count=len(words),
            sentence_count=len(_sentences(text)),
            missing_alt_tags=missing_alt,
        ),
        issues=issues,
    )
