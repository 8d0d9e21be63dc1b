"""Open the projects behind the browser's tabs in the editor.

Maps each open tab's URL to a local checkout (GitHub and GitLab repositories,
localhost dev servers, file:// paths), opens every distinct one as an editor
folder, then closes background windows matching the configured patterns.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.parse import unquote

from automator.host import Capabilities, HostError
from automator.llm import ChatClient
from automator.models import WorkflowResult
from automator.research.events import EventCallback, emit_status
from automator.research.result import StepResult, collect_failures
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "workspace_to_vscode"

_FORGE_RE = re.compile(r"(github|gitlab)\.com/([^/]+)/([^/?#]+)", re.IGNORECASE)
_LOCALHOST_RE = re.compile(r"(?:localhost|127\.0\.0\.1):(\d+)")
_FILE_URL_RE = re.compile(r"^file:///?([^?#]+)")


class WorkspaceToVscodeConfig(WorkflowConfig):
    repo_base_dir: Path = Path.home() / "src"
    # lower-cased GitHub owner -> directory under repo_base_dir
    owner_dirs: dict[str, str] = {"floorp-projects": "Floorp-Projects"}
    # localhost port -> project path
    port_mapping: dict[str, str] = {}
    # leading path components of a file:// URL taken as the project root
    file_root_depth: int = 3
    close_window_patterns: list[str] = []


def _file_root(path: str, depth: int) -> str | None:
    parts = [p for p in re.split(r"[/\\]", path) if p]
    if len(parts) < depth:
        return None
    root = parts[:depth]
    if root[0].endswith(":"):
        return "\\".join(root)
    return "/" + "/".join(root)


def project_path(url: str, config: WorkspaceToVscodeConfig) -> str | None:
    """Local project directory for a tab *url*, or None when it maps to nothing."""
    if not url:
        return None
    match = _FORGE_RE.search(url)
    if match:
        forge, owner, repo = match.groups()
        repo = repo.removesuffix(".git")
        subdir = config.owner_dirs.get(owner.lower()) if forge.lower() == "github" else None
        base = config.repo_base_dir / subdir if subdir else config.repo_base_dir
        return str(base / repo)
    match = _LOCALHOST_RE.search(url)
    if match:
        return config.port_mapping.get(match.group(1))
    match = _FILE_URL_RE.match(url)
    if match:
        return _file_root(unquote(match.group(1)), config.file_root_depth)
    return None


async def open_projects(caps: Capabilities, paths: list[str]) -> list[StepResult[str]]:
    results = []
    for path in paths:
        try:
            await caps.editor.open_folder(path)
        except HostError as exc:
            logger.warning("open folder failed", extra={"path": path}, exc_info=True)
            results.append(StepResult.failure(str(exc), path, step=f"open {path}"))
            continue
        logger.info("folder opened", extra={"path": path})
        results.append(StepResult.success(path, step=f"open {path}"))
    return results


async def close_windows(caps: Capabilities, patterns: list[str]) -> list[str]:
    """Close background windows matching *patterns*; returns the patterns acted on.

    When the background titles can be listed, only patterns matching one of
    them are closed, so the foreground window is left alone.
    """
    if not patterns:
        return []
    titles: list[str] | None
    try:
        titles = [t.lower() for t in await caps.windows.inactive_titles()]
    except HostError:
        logger.warning("window titles unavailable", exc_info=True)
        titles = None

    closed = []
    for pattern in patterns:
        if titles is not None and not any(pattern.lower() in t for t in titles):
            continue
        try:
            await caps.windows.close(pattern)
        except HostError:
            logger.debug("no window closed", extra={"pattern": pattern})
            continue
        closed.append(pattern)
    return closed


async def run(
    caps: Capabilities,
    chat: ChatClient,
    config: WorkspaceToVscodeConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or WorkspaceToVscodeConfig()

    async def body() -> WorkflowResult:
        namespaces = ["floorp", "vscode"]
        if config.close_window_patterns:
            namespaces.append("window")
        await caps.require(*namespaces)

        tabs = await caps.browser.list_browser_tabs()
        await emit_status(on_event, "analyze", tabs=len(tabs))
        paths: list[str] = []
        for tab in tabs:
            path = project_path(tab.url, config)
            if path and path not in paths:
                logger.info("project found", extra={"url": tab.url, "path": path})
                paths.append(path)

        if not paths:
            return WorkflowResult(
                workflow=NAME,
                ok=False,
                message="No project paths could be extracted from tabs",
                counts={"tabs": len(tabs)},
            )

        await emit_status(on_event, "open", count=len(paths))
        opened = await open_projects(caps, paths)
        await emit_status(on_event, "close_windows")
        closed = await close_windows(caps, config.close_window_patterns)

        opened_paths = [r.value for r in opened if r.ok]
        return WorkflowResult(
            workflow=NAME,
            ok=bool(opened_paths),
            message=f"Opened {len(opened_paths)} of {len(paths)} project(s)",
            counts={"tabs": len(tabs), "opened": len(opened_paths), "closed_windows": len(closed)},
            failures=collect_failures(opened),
            details={"opened_projects": opened_paths, "closed_window_patterns": closed},
        )

    return await run_guarded(NAME, body, on_event)
