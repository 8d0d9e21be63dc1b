"""Quick commit and pull request.

Commits the editor workspace with an LLM-written message, pushes, then opens
the repository's compare page and fills in the pull request form.
"""

from __future__ import annotations

import logging
from typing import Awaitable

from pydantic import BaseModel

from automator.host import Capabilities, HostError
from automator.llm import ChatClient, parse_json_object, sanitize_llm_output
from automator.models import WorkflowResult
from automator.research.collect import fill_field
from automator.research.events import EventCallback, emit_status
from automator.research.prompts import COMMIT_MESSAGE_SYSTEM, PR_DESCRIPTION_SYSTEM
from automator.research.reduce import truncate
from automator.research.result import StepResult, collect_failures
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "commit_pr"

TITLE_SELECTOR = "#pull_request_title"
BODY_SELECTOR = "#pull_request_body"


class CommitPrConfig(WorkflowConfig):
    repo_url: str = "https://github.com/Floorp-Projects/Floorp"
    base_branch: str = "main"
    default_branch: str = "main"
    default_commit_message: str = "chore: automated commit"
    max_diff_chars: int = 12000
    fallback_body_chars: int = 1000
    form_wait_ms: int = 20000
    form_retry_wait_ms: int = 10000
    create_selectors: list[str] = [".hx_create-pr-button", "button.btn-primary"]


class PullRequestText(BaseModel):
    title: str
    body: str


def compare_url(config: CommitPrConfig, branch: str) -> str:
    return f"{config.repo_url}/compare/{config.base_branch}...{branch}?expand=1"


async def _git_step(step: str, call: Awaitable[str]) -> StepResult[str]:
    try:
        out = await call
    except HostError as exc:
        logger.warning("git step failed", extra={"step": step}, exc_info=True)
        return StepResult.failure(str(exc), "", step=step)
    logger.info("git step done", extra={"step": step})
    return StepResult.success(out, step=step)


async def generate_commit_message(chat: ChatClient, diff: str, config: CommitPrConfig) -> StepResult[str]:
    default = config.default_commit_message
    if not diff:
        return StepResult.success(default, step="commit_message")
    try:
        reply = await chat.chat(COMMIT_MESSAGE_SYSTEM, truncate(diff, config.max_diff_chars))
    except Exception as exc:
        logger.warning("commit message generation failed", exc_info=True)
        return StepResult.failure(str(exc), default, step="commit_message")
    message = sanitize_llm_output(reply).strip().splitlines()
    return StepResult.success(message[0] if message else default, step="commit_message")


async def generate_pr_text(
    chat: ChatClient, diff: str, commit_message: str, config: CommitPrConfig
) -> StepResult[PullRequestText]:
    fallback = PullRequestText(
        title=commit_message,
        body="Automated PR\n\n" + diff[: config.fallback_body_chars],
    )
    try:
        reply = await chat.chat(PR_DESCRIPTION_SYSTEM, truncate(diff, config.max_diff_chars))
    except Exception as exc:
        logger.warning("pr description generation failed", exc_info=True)
        return StepResult.failure(str(exc), fallback, step="pr_text")
    parsed = parse_json_object(reply)
    if not parsed or not parsed.get("title"):
        return StepResult.failure("LLM returned no title/body JSON", fallback, step="pr_text")
    return StepResult.success(
        PullRequestText(title=str(parsed["title"]), body=str(parsed.get("body") or "")),
        step="pr_text",
    )


async def open_compare_tab(caps: Capabilities, config: CommitPrConfig, branch: str) -> str:
    """Reuse an open compare tab for *branch* if there is one, else open a new tab."""
    url = compare_url(config, branch)
    marker = f"compare/{config.base_branch}...{branch}"
    for tab in await caps.browser.list_browser_tabs():
        if tab.url and marker in tab.url:
            logger.info("reusing compare tab", extra={"title": tab.title})
            tab_id = await caps.browser.attach_to_tab(tab.browser_id)
            try:
                await caps.browser.navigate_tab(tab_id, url)
            except HostError:
                logger.warning("navigation failed", extra={"url": url}, exc_info=True)
            return tab_id
    return await caps.browser.create_tab(url, False)


async def wait_for_form(caps: Capabilities, tab_id: str, config: CommitPrConfig) -> bool:
    for timeout in (config.form_wait_ms, config.form_retry_wait_ms):
        try:
            await caps.browser.wait_for_element(tab_id, TITLE_SELECTOR, timeout)
            return True
        except HostError:
            logger.warning("pr form not ready", extra={"timeout_ms": timeout})
    return False


async def click_create(caps: Capabilities, tab_id: str, config: CommitPrConfig) -> StepResult[str]:
    for selector in config.create_selectors:
        try:
            await caps.browser.click(tab_id, selector)
        except HostError:
            logger.warning("create button click failed", extra={"selector": selector})
            continue
        return StepResult.success(selector, step="create")
    return StepResult.failure("no create button could be clicked", "", step="create")


async def run(
    caps: Capabilities,
    chat: ChatClient,
    config: CommitPrConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or CommitPrConfig()

    async def body() -> WorkflowResult:
        await caps.require("vscode", "git", "floorp")

        repo = await caps.editor.workspace_path()
        if not repo:
            raise RuntimeError("Could not determine repository path from the editor")

        branch = config.default_branch
        try:
            branch = await caps.git.branch(repo) or branch
        except HostError:
            logger.warning("branch lookup failed", extra={"repo": repo}, exc_info=True)

        diff = ""
        try:
            diff = (await caps.git.diff(repo)).combined
        except HostError:
            logger.warning("diff failed", extra={"repo": repo}, exc_info=True)
        logger.info("workspace read", extra={"repo": repo, "branch": branch, "diff_chars": len(diff)})

        await emit_status(on_event, "commit", branch=branch)
        message = await generate_commit_message(chat, diff, config)
        git_steps = [
            await _git_step("add", caps.git.add(repo)),
            await _git_step("commit", caps.git.commit(repo, message.value)),
            await _git_step("push", caps.git.push(repo)),
        ]

        await emit_status(on_event, "pull_request")
        tab_id = await open_compare_tab(caps, config, branch)
        await wait_for_form(caps, tab_id, config)
        pr_text = await generate_pr_text(chat, diff, message.value, config)

        title_ok = await fill_field(caps.browser, tab_id, TITLE_SELECTOR, pr_text.value.title)
        body_ok = await fill_field(caps.browser, tab_id, BODY_SELECTOR, pr_text.value.body)
        failures = collect_failures([message, *git_steps, pr_text])
        if not (title_ok and body_ok):
            logger.error("pr form fill failed", extra={"title_ok": title_ok, "body_ok": body_ok})
            return WorkflowResult(
                workflow=NAME,
                ok=False,
                message=f"Form fill failed. Title filled: {title_ok}, Body filled: {body_ok}",
                failures=failures,
                details={"commit_message": message.value, "branch": branch},
            )

        created = await click_create(caps, tab_id, config)
        return WorkflowResult(
            workflow=NAME,
            ok=True,
            message="Commit pushed and pull request submitted",
            failures=failures + collect_failures([created]),
            details={
                "commit_message": message.value,
                "pr_title": pr_text.value.title,
                "branch": branch,
            },
        )

    return await run_guarded(NAME, body, on_event)
