"""Page text collection over the browser binding."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from automator.host import BrowserTabs, HostError
from automator.research.reduce import reduce_text_for_llm, truncate

logger = logging.getLogger(__name__)

PAGE_TEXT_SELECTORS = ("main", "[role='main']", "article", "body")


@asynccontextmanager
async def open_tab(
    browser: BrowserTabs,
    url: str,
    *,
    wait_selector: str | None = None,
    wait_timeout_ms: int = 15000,
    network_idle: bool = True,
    settle_seconds: float = 0.0,
) -> AsyncIterator[str]:
    """Open *url* in a new tab, wait for it to load, and always destroy it.

    A wait that times out is logged and ignored; the page is read as-is.
    """
    tab_id = await browser.create_tab(url, False)
    logger.debug("tab opened", extra={"url": url, "tab_id": tab_id})
    try:
        if wait_selector:
            try:
                await browser.wait_for_element(tab_id, wait_selector, wait_timeout_ms)
            except HostError:
                logger.warning(
                    "element wait failed", extra={"url": url, "selector": wait_selector}, exc_info=True
                )
        if network_idle:
            try:
                await browser.wait_for_network_idle(tab_id, wait_timeout_ms)
            except HostError:
                logger.debug("network idle wait failed", extra={"url": url})
        if settle_seconds > 0:
            await asyncio.sleep(settle_seconds)
        yield tab_id
    finally:
        try:
            await browser.destroy_tab(tab_id)
            logger.debug("tab destroyed", extra={"tab_id": tab_id})
        except HostError:
            logger.warning("tab destroy failed", extra={"tab_id": tab_id}, exc_info=True)


async def read_selector_text(browser: BrowserTabs, tab_id: str, selector: str | None, label: str = "") -> str:
    """Return the element text for *selector*, or an empty string on any failure."""
    if not selector:
        logger.debug("missing selector", extra={"label": label})
        return ""
    try:
        text = await browser.element_text(tab_id, selector)
    except HostError:
        logger.debug("selector read failed", extra={"label": label, "selector": selector})
        return ""
    logger.debug("selector read", extra={"label": label, "selector": selector, "length": len(text)})
    return text


async def read_attribute(browser: BrowserTabs, tab_id: str, selector: str, name: str) -> str:
    try:
        return await browser.attribute(tab_id, selector, name)
    except HostError:
        return ""


async def get_page_text(
    browser: BrowserTabs,
    tab_id: str,
    max_chars: int,
    selectors: Iterable[str] = PAGE_TEXT_SELECTORS,
    good_enough: int = 0,
) -> str:
    """Return the longest text among *selectors*, truncated to *max_chars*.

    Stops early once a selector yields more than *good_enough* characters.
    """
    text = ""
    for selector in selectors:
        if good_enough and len(text) > good_enough:
            break
        part = await read_selector_text(browser, tab_id, selector)
        if len(part) > len(text):
            text = part
    return truncate(text, max_chars)


async def collect_focused_text(
    browser: BrowserTabs,
    tab_id: str,
    keywords: Iterable[str] | None,
    max_chars: int,
) -> str:
    """Read the page and reduce it to price/keyword-adjacent lines."""
    text = await get_page_text(browser, tab_id, max_chars * 2)
    return reduce_text_for_llm(text, keywords, max_chars)


async def fill_field(browser: BrowserTabs, tab_id: str, selector: str, value: str) -> bool:
    """Fill one form field; False when the host refuses or the element is missing."""
    try:
        return await browser.fill_form(tab_id, selector, value)
    except HostError:
        logger.warning("form fill failed", extra={"selector": selector}, exc_info=True)
        return False
