"""Markdown report rendering tests."""

from automator.models import PricingCatalog, PricingPlan, Recommendation, SubscriptionEntry
from automator.research.report import (
    MANUAL_REVIEW_CHECKLIST,
    ReportSection,
    ResearchReport,
    build_subscription_report,
    format_price,
    md_table,
    render_research_report,
    safe_md,
    write_report,
)


def test_safe_md_escapes_pipes_and_newlines():
    assert safe_md("a|b") == "a\\|b"
    assert safe_md("line1\r\nline2\nline3") == "line1 line2 line3"
    assert safe_md(None) == ""
    assert safe_md(20) == "20"


def test_md_table():
    lines = md_table(("A", "B"), [["1", "x|y"]], ("---", "---:"))
    assert lines == ["| A | B |", "|---|---:|", "| 1 | x\\|y |"]


def test_md_table_default_alignment():
    assert md_table(("A",), [])[1] == "|---|"


def test_format_price():
    assert format_price(20.0) == "20"
    assert format_price(19.99) == "19.99"
    assert format_price(0.0, "Free") == "Free"
    assert format_price(0.0) == ""


def test_subscription_report_rows_in_input_order():
    subs = [
        SubscriptionEntry(service="Cursor", plan="Pro", price=20.0, currency="USD", billing_period="monthly"),
        SubscriptionEntry(service="Claude", plan="Max", price=100.0, currency="USD", status="active"),
        SubscriptionEntry(service="Z.ai", plan="Lite", price=0.0, raw_price="Free", notes="a | b"),
    ]
    report = build_subscription_report(subs, [], [])
    lines = report.splitlines()

    assert lines[0] == "# Subscription Deep Research Report"
    header = lines.index("| Service | Plan | Price | Currency | Period | Next Billing | Status | Source | Notes |")
    assert lines[header + 1] == "|---|---|---:|---|---|---|---|---|---|"
    assert lines[header + 2] == "| Cursor | Pro | 20 | USD | monthly |  |  |  |  |"
    assert lines[header + 3].startswith("| Claude | Max | 100 | USD | unknown |  | active |")
    assert lines[header + 4] == "| Z.ai | Lite | Free |  | unknown |  |  |  | a \\| b |"
    assert "No recommendations generated." in lines
    assert lines[-len(MANUAL_REVIEW_CHECKLIST):] == [f"- {item}" for item in MANUAL_REVIEW_CHECKLIST]


def test_subscription_report_catalog_and_recommendations():
    catalog = [
        PricingCatalog(
            service="cursor",
            pricing_url="https://cursor.com/pricing",
            plans=[PricingPlan(name="Pro", price="$20", currency="USD", billing_period="monthly")],
        ),
        PricingCatalog(service="zai", notes="pricing url not found"),
    ]
    recs = [Recommendation(service="Cursor", action="keep", reason="daily use", alternatives="Copilot")]
    report = build_subscription_report([], catalog, recs)

    assert "### cursor\n- Pricing URL: https://cursor.com/pricing\n" in report
    assert "| Pro | $20 | USD | monthly |  |  |" in report
    assert "### zai\n- Pricing URL: (not found)\n- Notes: pricing url not found" in report
    assert "| (no plans extracted) | | | | | |" in report
    assert "- Service: Cursor\n  - Action: keep\n  - Reason: daily use\n  - Alternatives: Copilot" in report
    assert "No recommendations generated." not in report


def test_research_report_numbers_present_sections():
    report = ResearchReport(
        title="Floorp: Research Report",
        generated="2026-01-01",
        summary="Line one\n\nLine two",
        abstract="An abstract.",
        overview="What it is.",
        findings=[ReportSection("Privacy", "Body one."), ReportSection("Speed", "Body two.")],
        conclusions="Done.",
        references=["[1] A", "[2] B"],
    )
    text = render_research_report(report)

    assert text.startswith("# Floorp: Research Report\n\nGenerated: 2026-01-01\n")
    assert "> Line one\n>\n> Line two" in text
    assert "## Abstract\n\nAn abstract." in text
    assert "1. [Overview](#1-overview)" in text
    assert "2. [Key Findings](#2-key-findings)" in text
    assert "## 2. Key Findings" in text
    assert "### 2.1 Privacy\n\nBody one." in text
    assert "### 2.2 Speed" in text
    assert "## 3. Conclusions" in text
    assert "## 4. References\n\n[1] A\n\n[2] B" in text
    assert "Methodology" not in text
    assert "Discussion" not in text
    assert text.endswith("\n") and not text.endswith("\n\n")


def test_research_report_without_sections_has_no_contents():
    text = render_research_report(ResearchReport(title="T", generated="2026-01-01"))
    assert "Table of Contents" not in text
    assert "## Abstract" not in text


def test_write_report_creates_parent_dirs(tmp_path):
    target = tmp_path / "nested" / "dir" / "report.md"
    written = write_report(target, "# 日本語\n")
    assert written == target
    assert target.read_text(encoding="utf-8") == "# 日本語\n"
