"""Browser tab control (Floorp)."""

from __future__ import annotations

import json

from .base import CapabilityBinding
from .models import (
    ActionResult,
    AttributeValue,
    BrowserTab,
    ElementList,
    ElementText,
    Screenshot,
    TabInstance,
)


def _text_payload(raw: str) -> str:
    """Element text answers are ``{"text": ...}`` but older hosts send bare text."""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(parsed, dict):
        return ElementText.model_validate(parsed).text
    if isinstance(parsed, str):
        return parsed
    return raw


class BrowserTabs(CapabilityBinding):
    namespace = "floorp"

    async def health(self) -> str:
        return await self._call("health")

    async def create_tab(self, url: str, in_background: bool = False) -> str:
        """Open *url* in a new tab and return its instance id."""
        tab = await self._call_json("createTab", TabInstance, url, in_background)
        return tab.instance_id

    async def navigate_tab(self, tab_id: str, url: str) -> str:
        return await self._call("navigateTab", tab_id, url)

    async def tab_uri(self, tab_id: str) -> str:
        return await self._call("tabUri", tab_id)

    async def wait_for_element(self, tab_id: str, selector: str, timeout_ms: int | None = None) -> str:
        return await self._call("tabWaitForElement", tab_id, selector, timeout_ms)

    async def wait_for_network_idle(self, tab_id: str, timeout_ms: int | None = None) -> str:
        return await self._call("tabWaitForNetworkIdle", tab_id, timeout_ms)

    async def element_text(self, tab_id: str, selector: str) -> str:
        raw = await self._call("tabElementText", tab_id, selector)
        return _text_payload(raw)

    async def element_value(self, tab_id: str, selector: str) -> str:
        return await self._call("tabElementValue", tab_id, selector)

    async def attribute(self, tab_id: str, selector: str, name: str) -> str:
        attr = await self._call_json("tabAttribute", AttributeValue, tab_id, selector, name)
        return attr.value

    async def get_elements(self, tab_id: str, selector: str) -> list[str]:
        """Return the outer HTML of every element matching *selector*."""
        found = await self._call_json("tabGetElements", ElementList, tab_id, selector)
        return found.elements

    async def click(self, tab_id: str, selector: str) -> str:
        return await self._call("tabClick", tab_id, selector)

    async def fill_form(self, tab_id: str, selector: str, value: str) -> bool:
        result = await self._call_json("tabFillForm", ActionResult, tab_id, selector, value)
        return result.ok

    async def submit_form(self, tab_id: str, selector: str) -> str:
        return await self._call("tabSubmitForm", tab_id, selector)

    async def scroll_to(self, tab_id: str, selector: str) -> str:
        return await self._call("tabScrollTo", tab_id, selector)

    async def screenshot(self, tab_id: str) -> str:
        shot = await self._call_json("tabScreenshot", Screenshot, tab_id)
        return shot.image

    async def element_screenshot(self, tab_id: str, selector: str) -> str:
        """Return a base64 PNG of the element, or an empty string."""
        shot = await self._call_json("tabElementScreenshot", Screenshot, tab_id, selector)
        return shot.image

    async def list_browser_tabs(self) -> list[BrowserTab]:
        return await self._call_json("listBrowserTabs", list[BrowserTab])

    async def attach_to_tab(self, browser_id: str) -> str:
        tab = await self._call_json("attachToTab", TabInstance, browser_id)
        return tab.instance_id

    async def destroy_tab(self, tab_id: str) -> str:
        return await self._call("destroyTabInstance", tab_id)
