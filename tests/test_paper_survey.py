"""Paper survey workflow tests."""

import pytest

from automator.host import HostCallError
from automator.workflows.paper_survey import PaperSurveyConfig, collect_papers, run
from conftest import FakeChat

ARXIV_URL = "https://arxiv.org/search/?query=rust%20safety&searchtype=all"
SCHOLAR_URL = "https://scholar.google.com/scholar?q=rust%20safety"

ARXIV = "li.arxiv-result:nth-of-type(1)"
SCHOLAR = ".gs_r.gs_or.gs_scl:nth-of-type(1)"


@pytest.fixture
def config(tmp_path):
    return PaperSurveyConfig(topic="rust safety", output_dir=tmp_path, per_source=2, settle_seconds=0)


@pytest.fixture
def pages():
    return {
        ARXIV_URL: {
            f"{ARXIV} .title": "Memory Safety in  Rust",
            f"{ARXIV} .authors": "A. Author, B. Author",
            f"{ARXIV} .abstract-full": "We study unsafe blocks.",
            f"{ARXIV} p.list-title a@href": "https://arxiv.org/abs/2501.00001",
        },
        SCHOLAR_URL: {
            f"{SCHOLAR} h3.gs_rt a": "Rust Adoption in Practice",
            f"{SCHOLAR} h3.gs_rt a@href": "https://example.org/paper.pdf",
            f"{SCHOLAR} .gs_a": "C. Author - ICSE, 2024",
            f"{SCHOLAR} .gs_rs": "An empirical study.",
            f"{SCHOLAR} .gs_fl a:nth-of-type(3)": "Cited by 42",
        },
    }


@pytest.mark.asyncio
async def test_collect_scholar_parses_citations(fake_host, caps, config, pages):
    fake_host.pages = pages
    result = await collect_papers(caps, "Google Scholar", config)
    assert result.ok
    [paper] = result.value
    assert paper.title == "Rust Adoption in Practice"
    assert paper.citations == "42"
    assert paper.link == "https://example.org/paper.pdf"
    assert not fake_host.open_tabs


@pytest.mark.asyncio
async def test_collect_papers_reports_host_failure(fake_host, caps, config):
    fake_host.on("floorp.createTab", HostCallError("floorp.createTab", "browser closed"))
    result = await collect_papers(caps, "arXiv", config)
    assert not result.ok
    assert result.value == []
    assert result.step == "collect:arXiv"


@pytest.mark.asyncio
async def test_run_writes_survey(fake_host, caps, config, pages, tmp_path):
    fake_host.pages = pages
    chat = FakeChat([RuntimeError("quota exceeded")])

    result = await run(caps, chat, config)

    assert result.ok, result.message
    assert result.counts == {"papers": 2, "summarized": 2}
    assert result.failures == ["summarize:1: quota exceeded"]
    assert len(fake_host.tabs) == 3
    assert not fake_host.open_tabs
    assert len(chat.calls) == 2 + 5
    assert "Write in English" in chat.calls[-1][0]

    report = (tmp_path / "research_report_browser.md").read_text(encoding="utf-8")
    assert report.startswith("# rust safety: A Survey of Recent Research")
    assert "## 1. Introduction" in report
    assert "| arXiv | rust safety | 1 |" in report
    assert "| **Total** |  | **2** |" in report
    assert "### 4.1 [1] Memory Safety in Rust" in report
    assert "- **Summary**: (summary generation failed)" in report
    assert '[2] C. Author - ICSE, 2024. "Rust Adoption in Practice." *Google Scholar*.' in report


@pytest.mark.asyncio
async def test_run_requires_browser(fake_host, caps, config, fake_chat):
    fake_host.namespaces = set()
    result = await run(caps, fake_chat, config)
    assert not result.ok
    assert "floorp" in result.message
    assert fake_chat.calls == []
