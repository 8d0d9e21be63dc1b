"""Markdown report assembly."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from automator.models import BusySlot, PricingCatalog, Recommendation, SubscriptionEntry

logger = logging.getLogger(__name__)

SUBSCRIPTION_HEADERS = (
    "Service",
    "Plan",
    "Price",
    "Currency",
    "Period",
    "Next Billing",
    "Status",
    "Source",
    "Notes",
)
SUBSCRIPTION_ALIGN = ("---", "---", "---:", "---", "---", "---", "---", "---", "---")
PLAN_HEADERS = ("Plan", "Price", "Currency", "Period", "Tokens", "Model Notes")
PLAN_ALIGN = ("---", "---:", "---", "---", "---", "---")

MANUAL_REVIEW_CHECKLIST = (
    "Verify any missing pricing URLs",
    "Confirm token limits and model access from official pages",
    "Review recommendations before canceling subscriptions",
)


def safe_md(value: Any) -> str:
    """Make *value* safe for a Markdown table cell."""
    if value is None:
        return ""
    return str(value).replace("|", "\\|").replace("\r\n", " ").replace("\n", " ")


def md_table(
    headers: Iterable[str],
    rows: Iterable[Iterable[Any]],
    align: Iterable[str] | None = None,
) -> list[str]:
    """Return the lines of a Markdown table; every cell passes through safe_md."""
    headers = list(headers)
    align = list(align) if align is not None else ["---"] * len(headers)
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join(align) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(safe_md(cell) for cell in row) + " |")
    return lines


def format_price(price: float, raw: str = "") -> str:
    """Render a parsed price, falling back to the raw text when it parsed to zero."""
    if price == 0:
        return raw or ""
    if float(price).is_integer():
        return str(int(price))
    return str(price)


def _subscription_row(s: SubscriptionEntry) -> list[str]:
    return [
        s.service,
        s.plan,
        format_price(s.price, s.raw_price),
        s.currency,
        s.billing_period,
        s.next_billing_date,
        s.status,
        s.source,
        s.notes,
    ]


def build_subscription_report(
    subscriptions: list[SubscriptionEntry],
    catalog: list[PricingCatalog],
    recommendations: list[Recommendation],
) -> str:
    lines = ["# Subscription Deep Research Report", "", "## Subscriptions", ""]
    lines += md_table(
        SUBSCRIPTION_HEADERS,
        (_subscription_row(s) for s in subscriptions),
        SUBSCRIPTION_ALIGN,
    )

    lines += ["", "## Pricing Catalog", ""]
    for c in catalog:
        lines.append(f"### {safe_md(c.service)}")
        lines.append(f"- Pricing URL: {c.pricing_url or '(not found)'}")
        if c.notes:
            lines.append(f"- Notes: {safe_md(c.notes)}")
        lines.append("")
        lines += md_table(
            PLAN_HEADERS,
            (
                [p.name, p.price, p.currency, p.billing_period, p.tokens, p.model_notes]
                for p in c.plans
            ),
            PLAN_ALIGN,
        )
        if not c.plans:
            lines.append("| (no plans extracted) | | | | | |")
        lines.append("")

    lines += ["## Recommendations", ""]
    if not recommendations:
        lines.append("No recommendations generated.")
    for rec in recommendations:
        lines.append(f"- Service: {safe_md(rec.service)}")
        lines.append(f"  - Action: {safe_md(rec.action)}")
        lines.append(f"  - Reason: {safe_md(rec.reason)}")
        lines.append(f"  - Alternatives: {safe_md(rec.alternatives)}")

    lines += ["", "## Manual Review Checklist"]
    lines += [f"- {item}" for item in MANUAL_REVIEW_CHECKLIST]
    return "\n".join(lines)


# --- research reports ---


@dataclass
class ReportSection:
    title: str
    body: str


@dataclass
class ResearchReport:
    """Already-generated content of a research report.

    Sections render in a fixed order; a section whose content is empty is left
    out and the remaining ones are renumbered.
    """

    title: str
    generated: str
    summary: str = ""
    abstract: str = ""
    overview_title: str = "Overview"
    overview: str = ""
    methodology: list[ReportSection] = field(default_factory=list)
    findings_intro: str = ""
    findings: list[ReportSection] = field(default_factory=list)
    details_title: str = "Source Analysis"
    details: list[ReportSection] = field(default_factory=list)
    discussion: str = ""
    conclusions: str = ""
    references: list[str] = field(default_factory=list)


def _anchor(heading: str) -> str:
    slug = re.sub(r"[^\w\s-]", "", heading.lower())
    return re.sub(r"\s+", "-", slug.strip())


def _subsections(prefix: str, sections: list[ReportSection], level: int = 3) -> list[str]:
    lines: list[str] = []
    for i, section in enumerate(sections, 1):
        lines += [f"{'#' * level} {prefix}.{i} {section.title}", "", section.body.strip(), ""]
    return lines


def render_research_report(report: ResearchReport) -> str:
    """Render *report* as Markdown.

    Order: Abstract, Overview (or Introduction) and Methodology, Key Findings,
    the detail section, Discussion, Conclusions, References.
    """
    # (heading, lead text, subsections)
    parts: list[tuple[str, str, list[ReportSection]]] = []
    if report.overview:
        parts.append((report.overview_title, report.overview, []))
    if report.methodology:
        parts.append(("Methodology", "", report.methodology))
    if report.findings or report.findings_intro:
        parts.append(("Key Findings", report.findings_intro, report.findings))
    if report.details:
        parts.append((report.details_title, "", report.details))
    if report.discussion:
        parts.append(("Discussion", report.discussion, []))
    if report.conclusions:
        parts.append(("Conclusions", report.conclusions, []))
    if report.references:
        parts.append(("References", "\n\n".join(report.references), []))

    lines = [f"# {report.title}", "", f"Generated: {report.generated}", "", "---", ""]
    if report.summary:
        lines += [f"> {line}" if line else ">" for line in report.summary.strip().splitlines()]
        lines.append("")
    if report.abstract:
        lines += ["## Abstract", "", report.abstract.strip(), "", "---", ""]

    if parts:
        lines += ["## Table of Contents", ""]
        for n, (heading, _, _) in enumerate(parts, 1):
            lines.append(f"{n}. [{heading}](#{_anchor(f'{n}. {heading}')})")
        lines += ["", "---", ""]

    for n, (heading, lead, subsections) in enumerate(parts, 1):
        lines += [f"## {n}. {heading}", ""]
        if lead:
            lines += [lead.strip(), ""]
        lines += _subsections(str(n), subsections)

    return "\n".join(lines).rstrip() + "\n"


# --- calendar availability ---

BUSY_HEADERS = ("Date", "Start", "End", "Title")


def build_calendar_report(
    slots: list[BusySlot],
    dates: list[str],
    generated: str,
    form_fields: dict[str, bool] | None = None,
    form_url: str = "",
) -> str:
    lines = ["# Calendar Availability", "", f"Generated: {generated}", "", "## Busy Slots", ""]
    if slots:
        lines += md_table(BUSY_HEADERS, ([s.date, s.start, s.end, s.title] for s in slots))
    else:
        lines.append("No events found.")

    lines += ["", "## Available Dates", ""]
    lines += [f"- {d}" for d in dates] or ["No free days in range."]

    if form_url:
        lines += ["", "## Form", "", f"- URL: {form_url}"]
        for name, filled in (form_fields or {}).items():
            lines.append(f"- {name}: {'filled' if filled else 'not filled'}")
    return "\n".join(lines) + "\n"


def write_report(path: str | Path, text: str) -> Path:
    """Write *text* to *path* as UTF-8, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    logger.info("report written", extra={"path": str(target), "chars": len(text)})
    return target
