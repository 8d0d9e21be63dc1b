"""Paper survey over arXiv, Google Scholar and Semantic Scholar."""

from __future__ import annotations

import logging
from datetime import date
from typing import Awaitable, Callable
from urllib.parse import quote

from automator.host import Capabilities, HostError
from automator.llm import ChatClient
from automator.models import AnalyzedPaper, Paper, WorkflowResult
from automator.research.collect import open_tab, read_attribute, read_selector_text
from automator.research.events import EventCallback, emit_status
from automator.research.prompts import (
    RESEARCHER_SYSTEM,
    SUMMARIZE_PAPER_SYSTEM,
    format_paper_prompt,
    format_section_prompt,
)
from automator.research.reduce import clean_text, truncate
from automator.research.report import ReportSection, ResearchReport, md_table, render_research_report, write_report
from automator.research.result import StepResult, collect_failures
from automator.research.synthesis import generate_text
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "paper_survey"

SECTIONS = ("abstract", "introduction", "findings", "discussion", "conclusions")


class PaperSurveyConfig(WorkflowConfig):
    topic: str = "web browser security"
    output_file: str = "research_report_browser.md"
    language: str = "English"
    per_source: int = 5
    max_summaries: int = 10
    abstract_chars: int = 300
    settle_seconds: float = 2.0
    wait_timeout_ms: int = 10000


async def _text(caps: Capabilities, tab_id: str, selector: str) -> str:
    return clean_text(await read_selector_text(caps.browser, tab_id, selector))


async def scrape_arxiv(caps: Capabilities, config: PaperSurveyConfig) -> list[Paper]:
    url = f"https://arxiv.org/search/?query={quote(config.topic)}&searchtype=all"
    papers: list[Paper] = []
    async with open_tab(
        caps.browser,
        url,
        wait_selector="li.arxiv-result",
        wait_timeout_ms=config.wait_timeout_ms,
        network_idle=False,
        settle_seconds=config.settle_seconds,
    ) as tab_id:
        for i in range(1, config.per_source + 1):
            base = f"li.arxiv-result:nth-of-type({i})"
            title = await _text(caps, tab_id, f"{base} .title")
            if not title:
                continue
            papers.append(
                Paper(
                    source="arXiv",
                    title=title,
                    authors=await _text(caps, tab_id, f"{base} .authors"),
                    abstract=truncate(await _text(caps, tab_id, f"{base} .abstract-full"), config.abstract_chars),
                    link=await read_attribute(caps.browser, tab_id, f"{base} p.list-title a", "href"),
                )
            )
    return papers


async def scrape_scholar(caps: Capabilities, config: PaperSurveyConfig) -> list[Paper]:
    url = f"https://scholar.google.com/scholar?q={quote(config.topic)}"
    papers: list[Paper] = []
    async with open_tab(
        caps.browser,
        url,
        wait_selector=".gs_ri",
        wait_timeout_ms=config.wait_timeout_ms,
        network_idle=False,
        settle_seconds=config.settle_seconds,
    ) as tab_id:
        for i in range(1, config.per_source + 1):
            base = f".gs_r.gs_or.gs_scl:nth-of-type({i})"
            title = await _text(caps, tab_id, f"{base} h3.gs_rt a")
            if not title:
                continue
            cited = await _text(caps, tab_id, f"{base} .gs_fl a:nth-of-type(3)")
            citations = "".join(c for c in cited if c.isdigit()) if ("Cited by" in cited or "被引用数" in cited) else "0"
            papers.append(
                Paper(
                    source="Google Scholar",
                    title=title,
                    authors=await _text(caps, tab_id, f"{base} .gs_a"),
                    abstract=truncate(await _text(caps, tab_id, f"{base} .gs_rs"), config.abstract_chars),
                    link=await read_attribute(caps.browser, tab_id, f"{base} h3.gs_rt a", "href"),
                    citations=citations or "0",
                )
            )
    return papers


async def scrape_semantic_scholar(caps: Capabilities, config: PaperSurveyConfig) -> list[Paper]:
    url = f"https://www.semanticscholar.org/search?q={quote(config.topic)}"
    papers: list[Paper] = []
    async with open_tab(
        caps.browser,
        url,
        wait_selector=".cl-paper-title",
        wait_timeout_ms=max(config.wait_timeout_ms, 15000),
        network_idle=False,
        settle_seconds=config.settle_seconds * 1.5,
    ) as tab_id:
        for i in range(1, config.per_source + 1):
            title = await _text(
                caps, tab_id, f"[data-test-id='search-result']:nth-of-type({i}) h2.cl-paper-title"
            )
            if title:
                # result pages carry no stable per-paper links
                papers.append(
                    Paper(
                        source="Semantic Scholar",
                        title=title,
                        authors="See link",
                        abstract="(TLDR available on site)",
                        link=url,
                    )
                )
    return papers


PaperScraper = Callable[[Capabilities, PaperSurveyConfig], Awaitable[list[Paper]]]

SCRAPERS: dict[str, PaperScraper] = {
    "arXiv": scrape_arxiv,
    "Google Scholar": scrape_scholar,
    "Semantic Scholar": scrape_semantic_scholar,
}


async def collect_papers(
    caps: Capabilities, source: str, config: PaperSurveyConfig
) -> StepResult[list[Paper]]:
    try:
        papers = await SCRAPERS[source](caps, config)
    except HostError as exc:
        logger.warning("paper source failed", extra={"source": source}, exc_info=True)
        return StepResult.failure(str(exc), [], step=f"collect:{source}")
    logger.info("papers collected", extra={"source": source, "count": len(papers)})
    return StepResult.success(papers, step=f"collect:{source}")


def build_report(
    config: PaperSurveyConfig,
    papers: list[Paper],
    analyzed: list[AnalyzedPaper],
    sections: dict[str, str],
) -> ResearchReport:
    by_source: dict[str, int] = {}
    for p in papers:
        by_source[p.source] = by_source.get(p.source, 0) + 1
    rows = [[source, config.topic, count] for source, count in by_source.items()]
    rows.append(["**Total**", "", f"**{len(papers)}**"])
    strategy = "\n".join(
        [
            f"Academic databases were searched for \"{config.topic}\".",
            "",
            *md_table(("Database", "Query", "Results"), rows),
        ]
    )
    criteria = (
        f"The top {config.per_source} results of each database were collected and up to "
        f"{config.max_summaries} papers were summarised by the LLM."
    )

    details = [
        ReportSection(
            title=f"[{a.num}] {a.paper.title}",
            body="\n".join(
                [
                    f"- **Authors**: {a.paper.authors}",
                    f"- **Source**: {a.paper.source}",
                    f"- **Summary**: {a.summary}",
                    f"- **Link**: {a.paper.link}",
                ]
            ),
        )
        for a in analyzed
    ]
    references = [
        f"[{i}] {p.authors}. \"{p.title}.\" *{p.source}*. Available: {p.link}"
        for i, p in enumerate(papers, 1)
    ]
    return ResearchReport(
        title=f"{config.topic}: A Survey of Recent Research",
        generated=date.today().isoformat(),
        abstract=sections["abstract"],
        overview_title="Introduction",
        overview=sections["introduction"],
        methodology=[
            ReportSection("Search Strategy", strategy),
            ReportSection("Selection Criteria", criteria),
        ],
        findings_intro=sections["findings"],
        details_title="Analyzed Papers",
        details=details,
        discussion=sections["discussion"],
        conclusions=sections["conclusions"],
        references=references,
    )


async def run(
    caps: Capabilities,
    chat: ChatClient,
    config: PaperSurveyConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or PaperSurveyConfig()

    async def body() -> WorkflowResult:
        await caps.require("floorp")

        collected = []
        for source in SCRAPERS:
            await emit_status(on_event, "collect", source=source)
            collected.append(await collect_papers(caps, source, config))
        papers = [p for r in collected for p in r.value]
        logger.info("papers collected in total", extra={"count": len(papers)})

        await emit_status(on_event, "summarize", count=len(papers))
        system = SUMMARIZE_PAPER_SYSTEM.format(language=config.language)
        summaries: list[StepResult[str]] = []
        analyzed: list[AnalyzedPaper] = []
        for num, paper in enumerate(papers[: config.max_summaries], 1):
            summary = await generate_text(
                chat,
                system,
                format_paper_prompt(paper.title, paper.abstract),
                placeholder="(summary generation failed)",
                step=f"summarize:{num}",
            )
            summaries.append(summary)
            analyzed.append(AnalyzedPaper(num=num, paper=paper, summary=summary.value))

        summary_lines = "\n".join(f"{a.num}. {a.paper.title}: {a.summary}" for a in analyzed)
        researcher = RESEARCHER_SYSTEM.format(language=config.language)
        sections: dict[str, str] = {}
        generated: list[StepResult[str]] = []
        for section in SECTIONS:
            await emit_status(on_event, "write", section=section)
            result = await generate_text(
                chat,
                researcher,
                format_section_prompt(section, config.topic, summary_lines, len(papers)),
                placeholder=f"({section.capitalize()} generation failed)",
                step=f"section:{section}",
            )
            generated.append(result)
            sections[section] = result.value

        report = render_research_report(build_report(config, papers, analyzed, sections))
        write_report(config.output_path, report)
        return WorkflowResult(
            workflow=NAME,
            ok=True,
            message="Report written",
            output_path=str(config.output_path),
            counts={"papers": len(papers), "summarized": len(analyzed)},
            failures=collect_failures([*collected, *summaries, *generated]),
        )

    return await run_guarded(NAME, body, on_event)
