"""Web research: DuckDuckGo results, page visits and an LLM-written report."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from urllib.parse import quote

from pydantic import BaseModel, Field

from automator.host import Capabilities, HostError
from automator.llm import ChatClient
from automator.models import AnalyzedResult, SearchResult, WorkflowResult
from automator.research.classify import CATEGORY_LABELS, categorize_content
from automator.research.collect import get_page_text, open_tab, read_attribute, read_selector_text
from automator.research.events import EventCallback, emit_status
from automator.research.parsing import extract_domain
from automator.research.prompts import (
    ANALYZE_PAGE_SYSTEM,
    FINDING_SYSTEM,
    RESEARCHER_SYSTEM,
    format_finding_prompt,
    format_page_prompt,
    format_section_prompt,
)
from automator.research.reduce import clean_text, truncate
from automator.research.report import ReportSection, ResearchReport, md_table, render_research_report, write_report
from automator.research.result import StepResult, collect_failures
from automator.research.synthesis import generate_text
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "web_research"

RESULT_SELECTOR = "article[data-testid='result']"
CONTENT_SELECTORS = ("main", "article", ".content", "#content", ".post-content", ".entry-content", "body")


class FindingSection(BaseModel):
    title: str
    instruction: str


def _default_findings() -> list[FindingSection]:
    specs = [
        ("Definition and Vision", "the definition of {topic}, its origins, guiding philosophy and long-term vision"),
        ("Technical Architecture", "the technical foundations of {topic}: engine choices, technology stack and robustness"),
        ("Core and Distinctive Features", "the distinctive features of {topic} and how they benefit users"),
        ("Customisation and Design Philosophy", "the design principles of {topic} and how far it can be customised"),
        ("Privacy and Data Ownership", "how {topic} handles tracking, local data and privacy compared with alternatives"),
        ("Security Design", "vulnerability handling, sandboxing and build transparency of {topic}"),
        ("Performance", "speed, memory use and resource management of {topic}, with objective measures where sources give them"),
        ("Team and Governance", "who develops {topic}, how decisions are made and how the roadmap is set"),
        ("Open Source Community", "community contributions, support channels and how feedback reaches the product"),
        ("Ecosystem and Extensions", "compatibility of {topic} with existing extension ecosystems and its own extensibility"),
        ("User Experience", "satisfaction of casual users, power users and developers, and the learning curve"),
        ("Localisation and Global Reach", "language support, international communities and regional adoption of {topic}"),
        ("Competitive Landscape", "how {topic} compares with its main competitors and where it positions itself"),
        ("Challenges and Risks", "resource limits, competition, platform restrictions and maintenance costs facing {topic}"),
        ("Outlook and Roadmap", "planned features and the future role of {topic}"),
    ]
    return [
        FindingSection(title=title, instruction=f"Analyse {focus}, based on the collected sources (400-600 words).")
        for title, focus in specs
    ]


class WebResearchConfig(WorkflowConfig):
    query: str = "Floorp"
    output_file: str = "floorp_deep_research_report.md"
    language: str = "English"
    max_results: int = 30
    more_results_clicks: int = 3
    skip_domains: list[str] = ["youtube.com", "twitter.com", "facebook.com", "instagram.com"]
    snippet_chars: int = 300
    page_chars: int = 2000
    prompt_chars: int = 1500
    min_content_chars: int = 100
    findings: list[FindingSection] = Field(default_factory=_default_findings)
    search_settle_seconds: float = 3.0
    page_settle_seconds: float = 5.0
    between_pages_seconds: float = 0.5
    wait_timeout_ms: int = 15000
    page_idle_timeout_ms: int = 10000


async def load_more_results(caps: Capabilities, tab_id: str, config: WebResearchConfig) -> None:
    """Click "More Results" a few times, scrolling to the last result when the button is gone."""
    for attempt in range(config.more_results_clicks):
        try:
            await caps.browser.click(tab_id, "#more-results")
            await asyncio.sleep(config.search_settle_seconds)
            logger.debug("more results clicked", extra={"attempt": attempt + 1})
        except HostError:
            try:
                await caps.browser.scroll_to(tab_id, f"{RESULT_SELECTOR}:last-of-type")
                await asyncio.sleep(config.search_settle_seconds * 2 / 3)
            except HostError:
                logger.debug("scroll failed", extra={"attempt": attempt + 1})


async def collect_search_results(caps: Capabilities, config: WebResearchConfig) -> StepResult[list[SearchResult]]:
    url = f"https://duckduckgo.com/?q={quote(config.query)}"
    results: list[SearchResult] = []
    try:
        async with open_tab(
            caps.browser,
            url,
            wait_selector=RESULT_SELECTOR,
            wait_timeout_ms=config.wait_timeout_ms,
            network_idle=False,
            settle_seconds=config.search_settle_seconds,
        ) as tab_id:
            await load_more_results(caps, tab_id, config)
            # each article sits in its own list item
            for i in range(1, config.max_results + 21):
                if len(results) >= config.max_results:
                    break
                base = f"ol.react-results--main > li:nth-child({i}) {RESULT_SELECTOR}"
                title_sel = f"{base} a[data-testid='result-title-a']"
                title = await read_selector_text(caps.browser, tab_id, title_sel)
                if not title:
                    continue
                href = await read_attribute(caps.browser, tab_id, title_sel, "href")
                if not href or any(d in href for d in config.skip_domains):
                    continue
                snippet = await read_selector_text(caps.browser, tab_id, base)
                results.append(
                    SearchResult(
                        rank=len(results) + 1,
                        title=clean_text(title),
                        url=href,
                        snippet=truncate(clean_text(snippet), config.snippet_chars),
                        domain=extract_domain(href),
                    )
                )
    except HostError as exc:
        logger.warning("search failed", extra={"query": config.query}, exc_info=True)
        return StepResult.failure(str(exc), results, step="search")
    logger.info("search results collected", extra={"count": len(results)})
    return StepResult.success(results, step="search")


async def extract_page(caps: Capabilities, result: SearchResult, config: WebResearchConfig) -> StepResult[bool]:
    """Attach page title and content to *result*; the value says whether enough text was found."""
    step = f"page:{result.rank}"
    try:
        async with open_tab(
            caps.browser,
            result.url,
            wait_timeout_ms=config.page_idle_timeout_ms,
            settle_seconds=config.page_settle_seconds,
        ) as tab_id:
            title = await read_selector_text(caps.browser, tab_id, "title")
            result.page_title = clean_text(title) or result.title
            content = await get_page_text(
                caps.browser, tab_id, config.page_chars * 4, CONTENT_SELECTORS, good_enough=500
            )
    except HostError as exc:
        logger.warning("page extraction failed", extra={"url": result.url}, exc_info=True)
        result.page_title = result.page_title or result.title
        result.page_content = result.snippet
        return StepResult.failure(str(exc), False, step=step)

    result.page_content = truncate(clean_text(content), config.page_chars)
    result.extracted_at = datetime.now(timezone.utc)
    enough = len(result.page_content) > config.min_content_chars
    logger.info("page extracted", extra={"url": result.url, "chars": len(result.page_content), "enough": enough})
    return StepResult.success(enough, step=step)


def _source_analysis(analyzed: list[AnalyzedResult]) -> list[ReportSection]:
    sections: list[ReportSection] = []
    for category, label in CATEGORY_LABELS.items():
        items = [a for a in analyzed if a.category == category]
        if not items:
            continue
        body = "\n\n".join(
            "\n".join(
                [
                    f"#### [{a.result.rank}] {a.result.title}",
                    "",
                    f"- **URL**: [{a.result.domain}]({a.result.url})",
                    f"- **Analysis**: {a.summary}",
                ]
            )
            for a in items
        )
        sections.append(ReportSection(f"{label} ({len(items)})", body))
    return sections


def build_report(
    config: WebResearchConfig,
    results: list[SearchResult],
    analyzed: list[AnalyzedResult],
    success_count: int,
    sections: dict[str, str],
    findings: list[ReportSection],
) -> ResearchReport:
    collection = "\n".join(
        [
            f"1. **Search**: DuckDuckGo was queried for \"{config.query}\"",
            f"2. **URL collection**: the top {len(results)} result URLs were kept",
            "3. **Page visits**: every URL was opened in the browser",
            "4. **Content extraction**: the main text of each page was extracted",
        ]
    )
    pipeline = "```\nSearch -> URL collection -> page visits -> content extraction -> LLM analysis -> report\n```"
    stats = "\n".join(
        md_table(
            ("Item", "Count"),
            [
                ("Search results", len(results)),
                ("Content extracted", success_count),
                ("Limited / failed", len(results) - success_count),
                ("Analysed", len(analyzed)),
            ],
        )
    )
    return ResearchReport(
        title=f"{config.query}: Comprehensive Web Analysis Report",
        generated=date.today().isoformat(),
        summary=(
            f"**Executive Summary**\n\n{len(analyzed)} web sources about \"{config.query}\" were "
            "collected, read and analysed."
        ),
        abstract=sections["abstract"],
        overview=sections["overview"],
        methodology=[
            ReportSection("Data Collection", collection),
            ReportSection("Analysis Pipeline", pipeline),
            ReportSection("Statistics", stats),
        ],
        findings_intro=(
            f"The {len(analyzed)} collected sources were analysed from the "
            f"{len(findings)} perspectives below."
        ) if findings else "",
        findings=findings,
        details=_source_analysis(analyzed),
        discussion=sections["discussion"],
        conclusions=sections["conclusions"],
        references=[f"[{i}] \"{r.title}.\" *{r.domain}*. {r.url}" for i, r in enumerate(results, 1)],
    )


async def run(
    caps: Capabilities,
    chat: ChatClient,
    config: WebResearchConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or WebResearchConfig()

    async def body() -> WorkflowResult:
        await caps.require("floorp")

        await emit_status(on_event, "search", query=config.query)
        search = await collect_search_results(caps, config)
        results = search.value

        pages: list[StepResult[bool]] = []
        for i, result in enumerate(results, 1):
            await emit_status(on_event, "visit", index=i, total=len(results))
            pages.append(await extract_page(caps, result, config))
            await asyncio.sleep(config.between_pages_seconds)
        success_count = sum(1 for p in pages if p.value)

        analyzer = ANALYZE_PAGE_SYSTEM.format(topic=config.query, language=config.language)
        analyses: list[StepResult[str]] = []
        analyzed: list[AnalyzedResult] = []
        for result in results:
            analysis = await generate_text(
                chat,
                analyzer,
                format_page_prompt(result.page_title, truncate(result.page_content, config.prompt_chars)),
                placeholder="(analysis failed)",
                step=f"analyze:{result.rank}",
            )
            analyses.append(analysis)
            category = categorize_content(result.page_content) if analysis.ok else "other"
            analyzed.append(AnalyzedResult(result=result, summary=analysis.value, category=category))

        summaries = "\n\n".join(
            f"[{i}] {a.result.title}: {a.summary}" for i, a in enumerate(analyzed, 1)
        )
        researcher = RESEARCHER_SYSTEM.format(language=config.language)
        generated: list[StepResult[str]] = []
        sections: dict[str, str] = {}
        for section in ("abstract", "overview", "discussion", "conclusions"):
            await emit_status(on_event, "write", section=section)
            text = await generate_text(
                chat,
                researcher,
                format_section_prompt(section, config.query, summaries, len(analyzed)),
                placeholder=f"({section} generation failed)",
                step=f"section:{section}",
            )
            generated.append(text)
            sections[section] = text.value

        finding_system = FINDING_SYSTEM.format(language=config.language)
        findings: list[ReportSection] = []
        for finding in config.findings:
            await emit_status(on_event, "write", section=finding.title)
            instruction = finding.instruction.replace("{topic}", config.query)
            text = await generate_text(
                chat,
                finding_system,
                format_finding_prompt(instruction, summaries),
                placeholder=f"({finding.title} generation failed)",
                step=f"finding:{finding.title}",
            )
            generated.append(text)
            findings.append(ReportSection(finding.title, text.value))

        report = build_report(config, results, analyzed, success_count, sections, findings)
        write_report(config.output_path, render_research_report(report))
        return WorkflowResult(
            workflow=NAME,
            ok=True,
            message="Report written",
            output_path=str(config.output_path),
            counts={
                "results": len(results),
                "extracted": success_count,
                "analyzed": len(analyzed),
            },
            failures=collect_failures([search, *pages, *analyses, *generated]),
        )

    return await run_guarded(NAME, body, on_event)
