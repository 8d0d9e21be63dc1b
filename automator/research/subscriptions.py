"""Subscription normalisation, filtering and de-duplication."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from pydantic import ValidationError

from automator.models import RawSubscription, SubscriptionEntry, YearlyPriceRule
from automator.research.parsing import detect_currency, normalize_period, parse_date_like, parse_price
from automator.research.reduce import line_has_keyword

logger = logging.getLogger(__name__)

# service key -> substrings of the service name that map to it
SERVICE_KEYS: dict[str, tuple[str, ...]] = {
    "cursor": ("cursor",),
    "copilot": ("copilot", "github"),
    "openai": ("openai", "chatgpt"),
    "claude": ("claude", "anthropic"),
    "zai": ("z.ai", "zai"),
}


def parse_raw_subscriptions(items: Iterable[Any], source: str) -> list[RawSubscription]:
    """Validate LLM-produced dicts, dropping the ones that do not fit."""
    parsed: list[RawSubscription] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            raw = RawSubscription.model_validate(item)
        except ValidationError:
            logger.debug("invalid subscription item dropped", extra={"source": source})
            continue
        if not raw.source:
            raw.source = source
        parsed.append(raw)
    return parsed


def normalize_notes(value: str | None) -> str:
    text = (value or "").strip()
    if not text:
        return ""
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", text)
    text = re.sub(r"×(?!\s)", "× ", text)
    return text.strip()


def normalize_subscription(
    raw: RawSubscription, yearly_rules: Iterable[YearlyPriceRule] = ()
) -> SubscriptionEntry:
    info = parse_price(raw.price)
    currency = info.currency or raw.currency.strip().upper() or detect_currency(raw.price)
    period = normalize_period(raw.billing_period or info.period)
    if period == "unknown" and any(r.applies(raw.service, info.amount) for r in yearly_rules):
        period = "yearly"
    return SubscriptionEntry(
        service=raw.service,
        plan=raw.plan,
        price=info.amount,
        currency=currency,
        billing_period=period,
        next_billing_date=raw.next_billing_date,
        source=raw.source,
        notes=normalize_notes(raw.notes),
        raw_price=raw.price,
    )


def normalize_subscriptions(
    raws: Iterable[RawSubscription], yearly_rules: Iterable[YearlyPriceRule] = ()
) -> list[SubscriptionEntry]:
    rules = list(yearly_rules)
    return [normalize_subscription(r, rules) for r in raws]


def filter_ai_subscriptions(
    entries: list[SubscriptionEntry],
    keywords: list[str],
    exclude_keywords: list[str],
) -> list[SubscriptionEntry]:
    """Keep AI-tool subscriptions.

    An entry whose service names a merchant (an exclude keyword) is kept only
    when its plan names an AI tool; the plan is promoted to the service name and
    the merchant moves to the notes.
    """
    if not keywords:
        return list(entries)

    result: list[SubscriptionEntry] = []
    for s in entries:
        if not line_has_keyword(f"{s.service} {s.plan}", keywords):
            continue
        if exclude_keywords and line_has_keyword(s.service, exclude_keywords):
            if line_has_keyword(s.plan, keywords):
                merchant_note = f"Merchant: {s.service}" if s.service else ""
                plan = "" if s.plan and s.plan.lower() == s.service.lower() else s.plan
                result.append(
                    s.model_copy(
                        update={
                            "service": s.plan or s.service,
                            "plan": plan,
                            "notes": " ".join(p for p in (merchant_note, s.notes) if p),
                        }
                    )
                )
            continue
        result.append(s)
    return result


def is_inactive(entry: SubscriptionEntry, inactive_keywords: list[str]) -> bool:
    haystack = " ".join((entry.service, entry.plan, entry.notes, entry.billing_period))
    return line_has_keyword(haystack, inactive_keywords)


def mark_subscription_status(
    entries: list[SubscriptionEntry], inactive_keywords: list[str]
) -> list[SubscriptionEntry]:
    return [
        s.model_copy(update={"status": "inactive" if is_inactive(s, inactive_keywords) else "active"})
        for s in entries
    ]


def filter_noise_subscriptions(
    entries: list[SubscriptionEntry], noise_keywords: list[str]
) -> list[SubscriptionEntry]:
    """Drop transaction/history rows that the LLM mistook for subscriptions."""
    return [
        s for s in entries if not line_has_keyword(f"{s.service} {s.plan} {s.notes}", noise_keywords)
    ]


def filter_zero_price_noise(
    entries: list[SubscriptionEntry], keep_keywords: list[str]
) -> list[SubscriptionEntry]:
    """Drop zero-priced entries unless the raw price says free/trial/promo."""
    return [s for s in entries if s.price > 0 or line_has_keyword(s.raw_price, keep_keywords)]


def filter_by_status(entries: list[SubscriptionEntry], status: str) -> list[SubscriptionEntry]:
    return [s for s in entries if s.status == status]


def _dedupe_key(s: SubscriptionEntry) -> tuple:
    return (s.service.lower(), s.plan.lower(), s.price, s.currency.lower(), s.billing_period)


def dedupe_subscriptions(entries: list[SubscriptionEntry]) -> list[SubscriptionEntry]:
    """Collapse duplicates, keeping the one billed soonest, at the first one's position."""
    index: dict[tuple, int] = {}
    result: list[SubscriptionEntry] = []
    for s in entries:
        key = _dedupe_key(s)
        if key not in index:
            index[key] = len(result)
            result.append(s)
            continue
        existing = result[index[key]]
        existing_date = parse_date_like(existing.next_billing_date)
        current_date = parse_date_like(s.next_billing_date)
        if current_date and (existing_date is None or current_date < existing_date):
            result[index[key]] = s
    return result


def filter_recommendable(entries: list[SubscriptionEntry]) -> list[SubscriptionEntry]:
    return [s for s in entries if s.price > 0 or s.raw_price]


def normalize_service_key(service: str | None) -> str:
    """Map a service name onto a pricing-URL key, or ``""``."""
    s = (service or "").lower()
    for key, needles in SERVICE_KEYS.items():
        if any(n in s for n in needles):
            return key
    return ""
