"""Coarse source categorisation by keyword matching."""

from __future__ import annotations

from typing import Literal

Category = Literal["official", "news", "review", "community", "other"]

# checked in order; first category with a hit wins
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "official": ("github", "developer", "開発", "official"),
    "news": ("news", "ニュース", "発表", "リリース"),
    "review": ("review", "レビュー", "比較", "おすすめ"),
    "community": ("reddit", "forum", "コミュニティ", "質問"),
}

CATEGORY_LABELS: dict[str, str] = {
    "official": "Official / Developer",
    "news": "News / Media",
    "review": "Reviews / Comparisons",
    "community": "Community / Forums",
    "other": "Other",
}


def categorize_content(content: str | None) -> Category:
    lower = (content or "").lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(k in lower for k in keywords):
            return category  # type: ignore[return-value]
    return "other"
