"""Workspace-to-editor and editor-to-form workflow tests."""

from pathlib import Path

import pytest

from automator.host import HostCallError
from automator.workflows import vscode_to_form, workspace_to_vscode
from automator.workflows.vscode_to_form import VscodeToFormConfig
from automator.workflows.workspace_to_vscode import WorkspaceToVscodeConfig, close_windows, project_path

TABS = [
    {"id": 1, "browserId": "b1", "url": "https://github.com/Floorp-Projects/Floorp/pull/1", "title": "PR"},
    {"id": 2, "browserId": "b2", "url": "https://github.com/someone/tool.git"},
    {"id": 3, "browserId": "b3", "url": "https://gitlab.com/group/lib/-/issues"},
    {"id": 4, "browserId": "b4", "url": "http://localhost:3000/"},
    {"id": 5, "browserId": "b5", "url": "http://localhost:9999/"},
    {"id": 6, "browserId": "b6", "url": "https://github.com/Floorp-Projects/Floorp"},
    {"id": 7, "browserId": "b7", "url": "https://example.com/"},
]


@pytest.fixture
def workspace_config(tmp_path):
    return WorkspaceToVscodeConfig(
        output_dir=tmp_path,
        repo_base_dir=Path("/work"),
        port_mapping={"3000": "/work/site"},
        close_window_patterns=["Slack", "Zoom"],
    )


@pytest.fixture
def desktop_host(fake_host):
    fake_host.namespaces = {"floorp", "vscode", "window"}
    fake_host.on("floorp.listBrowserTabs", TABS)
    fake_host.on("vscode.open_folder", "ok")
    fake_host.on("window.get_inactive_titles", ["Slack - general", "Terminal"])
    fake_host.on("window.close", "ok")
    return fake_host


def test_project_path_mapping(workspace_config):
    assert project_path(TABS[0]["url"], workspace_config) == "/work/Floorp-Projects/Floorp"
    assert project_path(TABS[1]["url"], workspace_config) == "/work/tool"
    assert project_path(TABS[2]["url"], workspace_config) == "/work/lib"
    assert project_path(TABS[3]["url"], workspace_config) == "/work/site"
    assert project_path(TABS[4]["url"], workspace_config) is None
    assert project_path("https://example.com/", workspace_config) is None
    assert project_path("", workspace_config) is None


def test_project_path_file_urls(workspace_config):
    assert project_path("file:///home/me/proj/src/main.py", workspace_config) == "/home/me/proj"
    assert project_path("file:///home/me/my%20proj/a.md", workspace_config) == "/home/me/my proj"
    assert project_path("file:///C:/Users/me/proj/a.txt", workspace_config) == "C:\\Users\\me"
    assert project_path("file:///tmp/a", workspace_config) is None


@pytest.mark.asyncio
async def test_workspace_opens_distinct_projects_and_closes_background_windows(
    desktop_host, caps, fake_chat, workspace_config
):
    desktop_host.on(
        "vscode.open_folder",
        lambda path: HostCallError("vscode.open_folder", "locked") if path == "/work/lib" else "ok",
    )

    result = await workspace_to_vscode.run(caps, fake_chat, workspace_config)

    assert result.ok, result.message
    assert desktop_host.calls_to("vscode.open_folder") == [
        ("/work/Floorp-Projects/Floorp",),
        ("/work/tool",),
        ("/work/lib",),
        ("/work/site",),
    ]
    assert result.details["opened_projects"] == ["/work/Floorp-Projects/Floorp", "/work/tool", "/work/site"]
    assert result.failures == ["open /work/lib: vscode.open_folder: locked"]
    # Zoom has no background window
    assert desktop_host.calls_to("window.close") == [("Slack",)]
    assert result.counts == {"tabs": 7, "opened": 3, "closed_windows": 1}
    assert fake_chat.calls == []


@pytest.mark.asyncio
async def test_workspace_without_projects_fails(desktop_host, caps, fake_chat, workspace_config):
    desktop_host.on("floorp.listBrowserTabs", [{"id": 1, "url": "https://example.com/"}])

    result = await workspace_to_vscode.run(caps, fake_chat, workspace_config)

    assert not result.ok
    assert result.message == "No project paths could be extracted from tabs"
    assert desktop_host.calls_to("vscode.open_folder") == []


@pytest.mark.asyncio
async def test_workspace_needs_window_only_with_patterns(fake_host, caps, fake_chat, tmp_path):
    fake_host.namespaces = {"floorp", "vscode"}
    fake_host.on("floorp.listBrowserTabs", TABS[:1])
    fake_host.on("vscode.open_folder", "ok")

    config = WorkspaceToVscodeConfig(output_dir=tmp_path, repo_base_dir=Path("/work"))
    result = await workspace_to_vscode.run(caps, fake_chat, config)
    assert result.ok
    assert result.counts["closed_windows"] == 0

    config = WorkspaceToVscodeConfig(output_dir=tmp_path, close_window_patterns=["Slack"])
    result = await workspace_to_vscode.run(caps, fake_chat, config)
    assert not result.ok
    assert result.message == "required capability missing: window"


@pytest.mark.asyncio
async def test_close_windows_without_titles_tries_every_pattern(desktop_host, caps):
    desktop_host.on("window.get_inactive_titles", HostCallError("window.get_inactive_titles", "denied"))
    desktop_host.on(
        "window.close",
        lambda pattern: HostCallError("window.close", "no match") if pattern == "Zoom" else "closed",
    )

    assert await close_windows(caps, ["Slack", "Zoom"]) == ["Slack"]
    assert desktop_host.calls_to("window.close") == [("Slack",), ("Zoom",)]


# --- editor to form ---


@pytest.fixture
def form_host(fake_host):
    fake_host.namespaces = {"vscode", "floorp"}
    fake_host.on("vscode.get_active_file_content", "print('hello')\n")
    fake_host.on("floorp.listBrowserTabs", [{"id": 5, "browserId": "b5", "url": "https://forms.test/x"}])
    fake_host.on("floorp.attachToTab", {"instanceId": "attached-5"})
    fake_host.on("floorp.tabFillForm", {"ok": True})
    return fake_host


@pytest.mark.asyncio
async def test_form_filled_with_generic_selector(form_host, caps, fake_chat, tmp_path):
    result = await vscode_to_form.run(caps, fake_chat, VscodeToFormConfig(output_dir=tmp_path))

    assert result.ok
    assert result.counts == {"content_chars": 15}
    assert form_host.calls_to("floorp.attachToTab") == [("b5",)]
    assert form_host.calls_to("floorp.tabFillForm") == [
        ("attached-5", "textarea, input[type='text'], .form-input", "print('hello')\n")
    ]


@pytest.mark.asyncio
async def test_form_falls_back_through_selectors(form_host, caps, fake_chat, tmp_path):
    form_host.on(
        "floorp.tabFillForm",
        lambda tab, selector, value: (
            {"ok": True} if selector == "#text" else HostCallError("floorp.tabFillForm", "no element")
        ),
    )

    result = await vscode_to_form.run(caps, fake_chat, VscodeToFormConfig(output_dir=tmp_path))

    assert result.ok
    assert result.details["selector"] == "#text"
    assert [c[1] for c in form_host.calls_to("floorp.tabFillForm")] == [
        "textarea, input[type='text'], .form-input",
        "#content",
        "#text",
    ]


@pytest.mark.asyncio
async def test_form_reports_when_nothing_accepts_text(form_host, caps, fake_chat, tmp_path):
    form_host.on("floorp.tabFillForm", {"ok": False})

    result = await vscode_to_form.run(caps, fake_chat, VscodeToFormConfig(output_dir=tmp_path))

    assert not result.ok
    assert result.message == "Could not find suitable form element"
    assert len(result.details["tried_selectors"]) == 6


@pytest.mark.asyncio
async def test_form_without_tabs(form_host, caps, fake_chat, tmp_path):
    form_host.on("floorp.listBrowserTabs", [])

    result = await vscode_to_form.run(caps, fake_chat, VscodeToFormConfig(output_dir=tmp_path))

    assert not result.ok
    assert result.message == "No browser tabs found"
    assert form_host.calls_to("floorp.attachToTab") == []
