"""Parsing and classification unit tests."""

from datetime import datetime

import pytest

from automator.research.classify import categorize_content
from automator.research.parsing import (
    PriceInfo,
    detect_currency,
    extract_domain,
    normalize_period,
    parse_count,
    parse_date_like,
    parse_price,
    parse_views,
)


def test_parse_price_usd_monthly():
    assert parse_price("$19.99/month") == PriceInfo(19.99, "USD", "monthly")


def test_parse_price_yen_without_period():
    assert parse_price("¥1,200") == PriceInfo(1200.0, "JPY", "")


def test_parse_price_variants():
    assert parse_price("￥9,180/年") == PriceInfo(9180.0, "JPY", "yearly")
    assert parse_price("Pro, $20 per month").amount == 20.0
    assert parse_price("EUR 15 annual") == PriceInfo(15.0, "EUR", "yearly")
    assert parse_price("") == PriceInfo()
    assert parse_price("free") == PriceInfo()


def test_detect_currency():
    assert detect_currency("1,200円") == "JPY"
    assert detect_currency("$5") == "USD"
    assert detect_currency("10 eur") == "EUR"
    assert detect_currency("nothing") == ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("monthly", "monthly"),
        ("月額", "monthly"),
        ("Annual", "yearly"),
        ("年", "yearly"),
        ("日", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_normalize_period(raw, expected):
    assert normalize_period(raw) == expected


def test_parse_views():
    assert parse_views("1.2万回視聴") == 12000
    assert parse_views("3.4k views") == 3400
    assert parse_views("2億回再生") == 200_000_000
    assert parse_views("1,234 views") == 1234
    assert parse_views("no views yet") == 0
    assert parse_views("") == 0
    assert parse_views(None) == 0


def test_parse_count():
    assert parse_count("1.2k") == 1200
    assert parse_count("3m") == 3_000_000
    assert parse_count("12,345+") == 12345
    assert parse_count(" 87 ") == 87
    assert parse_count("n/a") == 0
    assert parse_count("") == 0


def test_parse_date_like():
    assert parse_date_like("2025-03-01") == datetime(2025, 3, 1)
    assert parse_date_like("2025/3/1") == datetime(2025, 3, 1)
    assert parse_date_like("2025年3月1日") == datetime(2025, 3, 1)
    assert parse_date_like("March 1, 2025") == datetime(2025, 3, 1)
    assert parse_date_like("soon") is None
    assert parse_date_like("") is None


def test_parse_date_like_offsets_come_back_naive_utc():
    assert parse_date_like("2025-03-01T00:00:00+09:00") == datetime(2025, 2, 28, 15, 0)
    assert parse_date_like("2025-03-01T12:00:00Z") == datetime(2025, 3, 1, 12, 0)
    # naive and offset values must be comparable
    assert parse_date_like("2025-03-01T00:00:00+09:00") < parse_date_like("2025年3月5日")


def test_extract_domain():
    assert extract_domain("https://docs.floorp.app/guide") == "docs.floorp.app"
    assert extract_domain("not a url") == "not a url"


def test_categorize_content_first_match_wins():
    assert categorize_content("Official release notes on GitHub") == "official"
    assert categorize_content("Tech news roundup") == "news"
    assert categorize_content("An honest review") == "review"
    assert categorize_content("Thread on reddit") == "community"
    assert categorize_content("news and review") == "news"
    assert categorize_content("") == "other"
