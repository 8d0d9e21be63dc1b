"""Fixtures: in-memory host runtime and scripted chat service."""

from __future__ import annotations

import json
from typing import Any

import pytest

from automator.host import HostCallError, build_capabilities


class FakeHost:
    """In-memory host runtime.

    Browser pages are ``{url: {selector: text}}``; attributes use the key
    ``"<selector>@<name>"``. Any operation can be overridden with ``on``; a
    handler is a value, an exception, or a callable taking the call's args.
    """

    def __init__(self, namespaces=("floorp",), pages: dict[str, dict[str, str]] | None = None) -> None:
        self.namespaces = set(namespaces)
        self.pages = pages or {}
        self.handlers: dict[str, Any] = {}
        self.calls: list[tuple[str, tuple]] = []
        self.tabs: dict[str, str] = {}
        self.destroyed: list[str] = []
        self._next_tab = 0

    def on(self, op: str, handler: Any) -> FakeHost:
        self.handlers[op] = handler
        return self

    def calls_to(self, op: str) -> list[tuple]:
        return [args for name, args in self.calls if name == op]

    @property
    def open_tabs(self) -> set[str]:
        return set(self.tabs) - set(self.destroyed)

    async def available_operations(self) -> set[str]:
        return {f"{ns}.health" for ns in self.namespaces} | {
            op for op in self.handlers if op.split(".", 1)[0] in self.namespaces
        }

    async def call(self, op: str, *args: str | None) -> str:
        self.calls.append((op, args))
        handler = self.handlers.get(op)
        if handler is None:
            handler = getattr(self, "_" + op.replace(".", "_"), None)
        if handler is None:
            raise HostCallError(op, "unsupported operation")
        if isinstance(handler, BaseException):
            raise handler
        result = handler(*args) if callable(handler) else handler
        if isinstance(result, BaseException):
            raise result
        return result if isinstance(result, str) else json.dumps(result)

    # --- built-in browser behaviour ---

    def _page(self, tab_id: str) -> dict[str, str]:
        return self.pages.get(self.tabs.get(tab_id, ""), {})

    def _floorp_createTab(self, url, in_background=None):
        self._next_tab += 1
        tab_id = f"tab-{self._next_tab}"
        self.tabs[tab_id] = url
        return {"instanceId": tab_id}

    def _floorp_destroyTabInstance(self, tab_id):
        self.destroyed.append(tab_id)
        return "ok"

    def _floorp_tabWaitForElement(self, tab_id, selector, timeout=None):
        return "ok"

    def _floorp_tabWaitForNetworkIdle(self, tab_id, timeout=None):
        return "ok"

    def _floorp_tabClick(self, tab_id, selector):
        return "ok"

    def _floorp_tabScrollTo(self, tab_id, selector):
        return "ok"

    def _floorp_tabElementText(self, tab_id, selector):
        page = self._page(tab_id)
        if selector not in page:
            return HostCallError("floorp.tabElementText", f"element not found: {selector}")
        return {"text": page[selector]}

    def _floorp_tabAttribute(self, tab_id, selector, name):
        key = f"{selector}@{name}"
        page = self._page(tab_id)
        if key not in page:
            return HostCallError("floorp.tabAttribute", f"element not found: {selector}")
        return {"value": page[key]}


class FakeChat:
    """Chat service answering from a script of replies.

    Replies are consumed in order; once exhausted ``default`` answers. A reply
    may be a string, an exception to raise, or a callable ``(system, user)``.
    """

    def __init__(self, replies=None, default: Any = "generated text") -> None:
        self.replies = list(replies or [])
        self.default = default
        self.calls: list[tuple[str, str]] = []

    async def chat(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(system_prompt, user_prompt)
            if isinstance(reply, BaseException):
                raise reply
        return reply


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def caps(fake_host):
    return build_capabilities(fake_host)


@pytest.fixture
def fake_chat():
    return FakeChat()
