"""Parsers for the loosely formatted numbers scraped off web pages."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import urlparse

_PRICE_RE = re.compile(r"([$€¥£￥])?\s*([0-9][0-9,]*(?:\.[0-9]+)?)")
_YEARLY_RE = re.compile(r"年|year|annual|yr", re.IGNORECASE)
_MONTHLY_RE = re.compile(r"月|month|mo", re.IGNORECASE)
_VIEW_NOISE_RE = re.compile(r"views|回視聴|回再生|,| |　")

_SYMBOL_CURRENCY = {"$": "USD", "€": "EUR", "¥": "JPY", "￥": "JPY", "£": "GBP"}

# checked in order; first match wins
_VIEW_MULTIPLIERS = (("万", 10_000), ("億", 100_000_000), ("k", 1_000), ("m", 1_000_000))


@dataclass(frozen=True)
class PriceInfo:
    amount: float = 0.0
    currency: str = ""
    period: str = ""


def parse_price(text: str | None) -> PriceInfo:
    """Parse a price such as ``$19.99/month`` or ``￥9,180``."""
    cleaned = (text or "").strip()
    match = _PRICE_RE.search(cleaned)
    if not match:
        return PriceInfo()

    symbol = match.group(1) or ""
    try:
        amount = float(match.group(2).replace(",", ""))
    except ValueError:
        amount = 0.0

    if symbol == "$" or "USD" in cleaned:
        currency = "USD"
    elif symbol == "€" or "EUR" in cleaned:
        currency = "EUR"
    elif symbol in ("¥", "￥") or "JPY" in cleaned:
        currency = "JPY"
    elif symbol == "£" or "GBP" in cleaned:
        currency = "GBP"
    else:
        currency = ""

    period = ""
    if _YEARLY_RE.search(cleaned):
        period = "yearly"
    elif _MONTHLY_RE.search(cleaned):
        period = "monthly"

    return PriceInfo(amount=amount, currency=currency, period=period)


def detect_currency(text: str | None) -> str:
    """Guess an ISO currency code from symbols or codes anywhere in *text*."""
    t = text or ""
    if re.search(r"￥|¥|JPY|円", t, re.IGNORECASE):
        return "JPY"
    if "$" in t:
        return "USD"
    if re.search(r"€|EUR", t, re.IGNORECASE):
        return "EUR"
    if re.search(r"£|GBP", t, re.IGNORECASE):
        return "GBP"
    return ""


def normalize_period(period: str | None) -> str:
    """Map free-form period text to ``monthly``, ``yearly`` or ``unknown``."""
    p = (period or "").strip().lower()
    if "年" in p or "year" in p or "annual" in p:
        return "yearly"
    if "月" in p or "month" in p or "mo" in p:
        return "monthly"
    # a bare "日" (day) is almost always a mis-read date
    return "unknown"


def _scaled_number(text: str, multipliers) -> int:
    mult = 1
    for suffix, factor in multipliers:
        if suffix in text:
            mult = factor
            text = text.replace(suffix, "", 1)
            break
    try:
        value = float(text)
    except ValueError:
        return 0
    return int(round(value * mult))


def parse_views(text: str | None) -> int:
    """Parse view counts like ``1.2万回視聴`` or ``3.4K views``; 0 if unparseable."""
    if not text:
        return 0
    cleaned = _VIEW_NOISE_RE.sub("", str(text).strip().lower())
    return _scaled_number(cleaned, _VIEW_MULTIPLIERS)


def parse_count(text: str | None) -> int:
    """Parse repository counters like ``1.2k``, ``3m`` or ``12,345+``."""
    s = (text or "").strip().lower()
    if not s:
        return 0
    mult = 1
    if s.endswith("k"):
        mult, s = 1_000, s[:-1]
    elif s.endswith("m"):
        mult, s = 1_000_000, s[:-1]
    s = s.replace(",", "").replace("+", "")
    try:
        return int(round(float(s) * mult))
    except ValueError:
        return 0


def parse_date_like(value: str | None) -> datetime | None:
    """Parse ``2025-03-01``, ``2025/3/1`` or ``2025年3月1日``; None when unparseable.

    Offset-qualified timestamps are converted to UTC and returned naive so
    every result compares with every other.
    """
    text = (value or "").strip()
    if not text:
        return None
    normalized = (
        text.replace("年", "-").replace("月", "-").replace("日", "").replace("/", "-").strip()
    )
    try:
        return _as_naive_utc(datetime.fromisoformat(normalized))
    except ValueError:
        pass
    for fmt in ("%Y-%m-%d", "%B %d, %Y", "%b %d, %Y", "%d %B %Y", "%d %b %Y"):
        try:
            return datetime.strptime(normalized, fmt)
        except ValueError:
            continue
    return None


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def extract_domain(url: str) -> str:
    return urlparse(url).netloc or url
