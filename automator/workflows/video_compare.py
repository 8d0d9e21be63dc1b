"""YouTube vs Niconico search comparison written to a workbook with thumbnails."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from pathlib import Path
from urllib.parse import quote

from automator.host import BrowserTabs, Capabilities, HostError
from automator.llm import ChatClient
from automator.models import VideoEntry, WorkflowResult
from automator.research.collect import open_tab, read_selector_text
from automator.research.events import EventCallback, emit_status
from automator.research.parsing import parse_views
from automator.research.reduce import clean_text
from automator.research.result import StepResult, collect_failures
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "video_compare"

HEADER = ["Platform", "Rank", "Image", "Title", "Views", "Raw Views", "Link"]


class VideoCompareConfig(WorkflowConfig):
    topic: str = "Floorp"
    output_file: str = "video_comparison_floorp.xlsx"
    thumbs_dir: str = "thumbs"
    sheet: str = "Sheet1"
    youtube_limit: int = 100
    youtube_scrolls: int = 12
    youtube_sections: int = 20
    youtube_per_section: int = 50
    niconico_limit: int = 40
    scroll_settle_seconds: float = 3.0
    wait_timeout_ms: int = 10000
    thumb_left: int = 100
    thumb_top: int = 20
    thumb_row_step: int = 15
    thumb_width: int = 40
    thumb_height: int = 25


async def save_element_screenshot(browser: BrowserTabs, tab_id: str, selector: str, path: Path) -> str:
    """Write the element's PNG to *path*; return the path, or "" when there was no image."""
    try:
        image = await browser.element_screenshot(tab_id, selector)
    except HostError:
        logger.debug("element screenshot failed", extra={"selector": selector})
        return ""
    if not image:
        return ""
    try:
        data = base64.b64decode(image)
    except (binascii.Error, ValueError):
        logger.warning("thumbnail is not valid base64", extra={"selector": selector})
        return ""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return str(path)


async def _scroll_for_more(caps: Capabilities, tab_id: str, config: VideoCompareConfig) -> None:
    for s in range(config.youtube_scrolls):
        try:
            await caps.browser.scroll_to(tab_id, "ytd-continuation-item-renderer")
        except HostError:
            try:
                await caps.browser.scroll_to(tab_id, f"ytd-video-renderer:nth-of-type({(s + 1) * 10})")
            except HostError:
                logger.debug("scroll failed", extra={"attempt": s + 1})
        await asyncio.sleep(config.scroll_settle_seconds)


async def scrape_youtube(caps: Capabilities, config: VideoCompareConfig) -> list[VideoEntry]:
    url = f"https://www.youtube.com/results?search_query={quote(config.topic)}"
    thumbs = config.output_dir / config.thumbs_dir
    entries: list[VideoEntry] = []
    async with open_tab(
        caps.browser,
        url,
        wait_selector="ytd-video-renderer #video-title",
        wait_timeout_ms=config.wait_timeout_ms,
    ) as tab_id:
        await _scroll_for_more(caps, tab_id, config)

        async def title_at(section: str, n: int) -> str:
            return clean_text(
                await read_selector_text(caps.browser, tab_id, f"{section} ytd-video-renderer:nth-of-type({n}) #video-title")
            )

        for sec in range(1, config.youtube_sections + 1):
            section = f"ytd-item-section-renderer:nth-of-type({sec})"
            for vid in range(1, config.youtube_per_section + 1):
                if len(entries) >= config.youtube_limit:
                    return entries
                title = await title_at(section, vid)
                if not title:
                    # ads and shorts leave gaps; two empty slots ahead end the section
                    if not await title_at(section, vid + 1) and not await title_at(section, vid + 2):
                        break
                    continue
                base = f"{section} ytd-video-renderer:nth-of-type({vid})"
                rank = len(entries) + 1
                views_raw = clean_text(
                    await read_selector_text(caps.browser, tab_id, f"{base} #metadata-line span:nth-of-type(1)")
                )
                entries.append(
                    VideoEntry(
                        platform="YouTube",
                        rank=rank,
                        title=title,
                        views_raw=views_raw,
                        views=parse_views(views_raw),
                        url="https://www.youtube.com",
                        thumb_path=await save_element_screenshot(
                            caps.browser, tab_id, f"{base} ytd-thumbnail", thumbs / f"yt_thumb_{rank}.png"
                        ),
                    )
                )
    return entries


async def scrape_niconico(caps: Capabilities, config: VideoCompareConfig) -> list[VideoEntry]:
    url = f"https://www.nicovideo.jp/search/{quote(config.topic)}?sort=f&order=d"
    thumbs = config.output_dir / config.thumbs_dir
    entries: list[VideoEntry] = []
    async with open_tab(
        caps.browser,
        url,
        wait_selector=".Pressable",
        wait_timeout_ms=config.wait_timeout_ms,
    ) as tab_id:
        for i in range(1, config.niconico_limit + 1):
            base = f".Pressable:nth-of-type({i})"
            title = clean_text(await read_selector_text(caps.browser, tab_id, f"{base} a.fw_bold.lc_2"))
            if not title:
                continue
            views_raw = clean_text(await read_selector_text(caps.browser, tab_id, f"{base} p:nth-of-type(1)"))
            entries.append(
                VideoEntry(
                    platform="Niconico",
                    rank=i,
                    title=title,
                    views_raw=views_raw,
                    views=parse_views(views_raw),
                    url="https://www.nicovideo.jp",
                    thumb_path=await save_element_screenshot(
                        caps.browser, tab_id, f"{base} img", thumbs / f"nico_thumb_{i}.png"
                    ),
                )
            )
    return entries


async def collect_videos(caps: Capabilities, platform: str, config: VideoCompareConfig) -> StepResult[list[VideoEntry]]:
    scraper = scrape_youtube if platform == "YouTube" else scrape_niconico
    try:
        entries = await scraper(caps, config)
    except HostError as exc:
        logger.warning("video scrape failed", extra={"platform": platform}, exc_info=True)
        return StepResult.failure(str(exc), [], step=f"collect:{platform}")
    logger.info("videos collected", extra={"platform": platform, "count": len(entries)})
    return StepResult.success(entries, step=f"collect:{platform}")


def video_matrix(entries: list[VideoEntry]) -> list[list[str]]:
    rows = [list(HEADER)]
    for e in entries:
        rows.append([e.platform, str(e.rank), "", e.title, str(e.views), e.views_raw, e.url])
    return rows


async def run(
    caps: Capabilities,
    chat: ChatClient | None = None,
    config: VideoCompareConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or VideoCompareConfig()

    async def body() -> WorkflowResult:
        await caps.require("floorp", "excel")

        collected: list[StepResult[list[VideoEntry]]] = []
        for platform in ("YouTube", "Niconico"):
            await emit_status(on_event, "collect", platform=platform)
            collected.append(await collect_videos(caps, platform, config))
        entries = [e for r in collected for e in r.value]

        await emit_status(on_event, "export", count=len(entries))
        path = str(config.output_path.resolve())
        await caps.spreadsheet.write_range(path, config.sheet, "A1", video_matrix(entries))

        pictures: list[StepResult[bool]] = []
        for k, entry in enumerate(entries):
            if not entry.thumb_path:
                continue
            try:
                await caps.spreadsheet.insert_picture(
                    path,
                    config.sheet,
                    str(Path(entry.thumb_path).resolve()),
                    config.thumb_left,
                    config.thumb_top + k * config.thumb_row_step,
                    config.thumb_width,
                    config.thumb_height,
                )
            except HostError as exc:
                logger.warning("thumbnail insert failed", extra={"thumb": entry.thumb_path}, exc_info=True)
                pictures.append(StepResult.failure(str(exc), False, step=f"picture:{entry.platform}:{entry.rank}"))
                continue
            pictures.append(StepResult.success(True))

        return WorkflowResult(
            workflow=NAME,
            ok=True,
            message="Workbook written",
            output_path=path,
            counts={
                "videos": len(entries),
                "thumbnails": sum(1 for p in pictures if p.ok),
            },
            failures=collect_failures([*collected, *pictures]),
        )

    return await run_guarded(NAME, body, on_event)
