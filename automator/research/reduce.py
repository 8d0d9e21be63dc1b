"""Content reduction: keep price/keyword lines to fit an LLM prompt budget."""

from __future__ import annotations

import re
from typing import Iterable

FALLBACK_LINES = 200

_PRICE_LINE_RE = re.compile(
    r"\$|€|¥|£|\bUSD\b|\bJPY\b|\bEUR\b|\bGBP\b|/mo|/year|monthly|annual|per month|per year",
    re.IGNORECASE,
)
_LINE_SPLIT_RE = re.compile(r"\n+")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace into single spaces."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0:
        return ""
    return text[:max_chars]


def matches_price_line(line: str) -> bool:
    """True when *line* mentions a currency symbol/code or a billing period."""
    if not line:
        return False
    return _PRICE_LINE_RE.search(line) is not None


def line_has_keyword(line: str, keywords: Iterable[str] | None) -> bool:
    """Case-insensitive substring match against any keyword."""
    if not line or not keywords:
        return False
    lower = line.lower()
    return any(str(k).lower() in lower for k in keywords if str(k))


def filter_lines_with_context(
    lines: list[str],
    keywords: Iterable[str] | None,
    context: int = 1,
) -> list[str]:
    """Return matched lines plus *context* neighbours, in original order.

    Falls back to the first FALLBACK_LINES lines when nothing matched.
    """
    keywords = list(keywords or [])
    keep: set[int] = set()
    for i, line in enumerate(lines):
        if matches_price_line(line) or line_has_keyword(line, keywords):
            lo = max(0, i - context)
            hi = min(len(lines) - 1, i + context)
            keep.update(range(lo, hi + 1))

    if not keep:
        return lines[:FALLBACK_LINES]
    return [lines[i] for i in sorted(keep)]


def reduce_text_for_llm(
    text: str,
    keywords: Iterable[str] | None,
    max_chars: int,
    context: int = 1,
) -> str:
    """Reduce page text to keyword/price-adjacent lines within *max_chars*."""
    if not text:
        return ""
    lines = _LINE_SPLIT_RE.split(text)
    kept = filter_lines_with_context(lines, keywords, context)
    return truncate("\n".join(kept), max_chars)
