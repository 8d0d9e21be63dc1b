"""Editor (VS Code) control."""

from __future__ import annotations

from .base import CapabilityBinding


class Editor(CapabilityBinding):
    namespace = "vscode"

    async def open_folder(self, path: str) -> str:
        return await self._call("open_folder", path)

    async def open_file(self, path: str) -> str:
        return await self._call("open_file", path)

    async def write_file(self, path: str, content: str) -> str:
        return await self._call("write_file", path, content)

    async def close_workspace(self) -> str:
        return await self._call("close_workspace")

    async def active_file_content(self) -> str:
        return await self._call("get_active_file_content")

    async def workspace_path(self) -> str:
        path = await self._call("get_workspace_path")
        return path.strip()
