"""Repository popularity comparison written to a workbook with a chart."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from automator.host import Capabilities, HostError
from automator.llm import ChatClient
from automator.models import RepoStats, WorkflowResult
from automator.research.collect import open_tab, read_selector_text
from automator.research.events import EventCallback, emit_status
from automator.research.parsing import parse_count
from automator.research.result import StepResult, collect_failures
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "repo_compare"

GITHUB_SELECTORS = ("#repo-stars-counter-star", "#repo-network-counter")
GITLAB_SELECTORS = (
    "a.star-count span, [data-testid='star-count'] span",
    "a.forks, [data-testid='fork-count'], a[href$='/forks']",
)


class Repo(BaseModel):
    name: str
    url: str


class ChartPlacement(BaseModel):
    left: int = 300
    top: int = 50
    width: int = 800
    height: int = 450


class RepoCompareConfig(WorkflowConfig):
    output_file: str = "browser_comparison.xlsx"
    sheet: str = "Sheet1"
    chart_type: str = "column"
    chart_title: str = "Browser Popularity"
    chart: ChartPlacement = ChartPlacement()
    wait_timeout_ms: int = 10000
    repos: list[Repo] = [
        Repo(name="Floorp", url="https://github.com/Floorp-Projects/Floorp"),
        Repo(name="Zen Browser", url="https://github.com/zen-browser/desktop"),
        Repo(name="Waterfox", url="https://github.com/BrowserWorks/waterfox"),
        Repo(name="Pulse Browser", url="https://github.com/pulse-browser/browser"),
        Repo(name="Firefox (Mirror)", url="https://github.com/mozilla-firefox/firefox"),
        Repo(name="Midori", url="https://github.com/goastian/midori-desktop"),
        Repo(name="FireDragon", url="https://gitlab.com/garuda-linux/firedragon/firedragon12"),
    ]


def counter_selectors(url: str) -> tuple[str, str]:
    """Star and fork counter selectors for a GitHub or GitLab project page."""
    return GITLAB_SELECTORS if "gitlab.com" in url else GITHUB_SELECTORS


async def read_repo_stats(caps: Capabilities, repo: Repo, config: RepoCompareConfig) -> StepResult[RepoStats]:
    star_sel, fork_sel = counter_selectors(repo.url)
    try:
        async with open_tab(
            caps.browser,
            repo.url,
            wait_selector=star_sel,
            wait_timeout_ms=config.wait_timeout_ms,
            network_idle=False,
        ) as tab_id:
            stars = await read_selector_text(caps.browser, tab_id, star_sel, "stars")
            forks = await read_selector_text(caps.browser, tab_id, fork_sel, "forks")
    except HostError as exc:
        logger.warning("repo scrape failed", extra={"repo": repo.name}, exc_info=True)
        return StepResult.failure(str(exc), RepoStats(name=repo.name, url=repo.url), step=f"repo:{repo.name}")
    logger.info("repo counters read", extra={"repo": repo.name, "stars": stars, "forks": forks})
    return StepResult.success(
        RepoStats(name=repo.name, url=repo.url, stars=parse_count(stars), forks=parse_count(forks)),
        step=f"repo:{repo.name}",
    )


def stats_matrix(stats: list[RepoStats]) -> list[list[str]]:
    return [["Browser", "Stars", "Forks"]] + [[s.name, str(s.stars), str(s.forks)] for s in stats]


async def run(
    caps: Capabilities,
    chat: ChatClient | None = None,
    config: RepoCompareConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or RepoCompareConfig()

    async def body() -> WorkflowResult:
        await caps.require("floorp", "excel")

        results: list[StepResult[RepoStats]] = []
        for repo in config.repos:
            await emit_status(on_event, "scrape", repo=repo.name)
            results.append(await read_repo_stats(caps, repo, config))
        stats = [r.value for r in results]

        await emit_status(on_event, "export")
        path = str(config.output_path.resolve())
        matrix = stats_matrix(stats)
        await caps.spreadsheet.write_range(path, config.sheet, "A1", matrix)
        data_range = f"A1:C{len(matrix)}"
        placement = config.chart
        await caps.spreadsheet.create_chart(
            path,
            config.sheet,
            data_range,
            config.chart_type,
            config.chart_title,
            placement.left,
            placement.top,
            placement.width,
            placement.height,
        )
        logger.info("workbook written", extra={"path": path, "rows": len(stats)})
        return WorkflowResult(
            workflow=NAME,
            ok=True,
            message="Workbook written",
            output_path=path,
            counts={"repos": len(stats)},
            failures=collect_failures(results),
            details={"stats": [[s.name, s.stars, s.forks] for s in stats]},
        )

    return await run_guarded(NAME, body, on_event)
