"""Paste the editor's active file into a form in the browser.

Reads the active editor file, attaches to the first open browser tab and
fills the first form field that accepts the text.
"""

from __future__ import annotations

import logging

from automator.host import Capabilities
from automator.llm import ChatClient
from automator.models import WorkflowResult
from automator.research.collect import fill_field
from automator.research.events import EventCallback, emit_status
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "vscode_to_form"


class VscodeToFormConfig(WorkflowConfig):
    form_selector: str = "textarea, input[type='text'], .form-input"
    fallback_selectors: list[str] = ["#content", "#text", "#input", ".input-field", "textarea"]


async def run(
    caps: Capabilities,
    chat: ChatClient,
    config: VscodeToFormConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or VscodeToFormConfig()

    async def body() -> WorkflowResult:
        await caps.require("vscode", "floorp")

        content = await caps.editor.active_file_content()
        logger.info("editor content read", extra={"chars": len(content)})

        tabs = await caps.browser.list_browser_tabs()
        if not tabs:
            return WorkflowResult(workflow=NAME, ok=False, message="No browser tabs found")
        await emit_status(on_event, "attach", title=tabs[0].title)
        tab_id = await caps.browser.attach_to_tab(tabs[0].browser_id or str(tabs[0].id))

        selectors = [config.form_selector, *config.fallback_selectors]
        for selector in selectors:
            await emit_status(on_event, "fill", selector=selector)
            if await fill_field(caps.browser, tab_id, selector, content):
                return WorkflowResult(
                    workflow=NAME,
                    ok=True,
                    message=f"Filled form with selector: {selector}",
                    counts={"content_chars": len(content)},
                    details={"selector": selector, "tab_url": tabs[0].url},
                )
        return WorkflowResult(
            workflow=NAME,
            ok=False,
            message="Could not find suitable form element",
            details={"tried_selectors": selectors},
        )

    return await run_guarded(NAME, body, on_event)
