"""Desktop window enumeration."""

from __future__ import annotations

from .base import CapabilityBinding


class WindowManager(CapabilityBinding):
    namespace = "window"

    async def active_title(self) -> str:
        return await self._call("get_active_title")

    async def inactive_titles(self) -> list[str]:
        return await self._call_json("get_inactive_titles", list[str])

    async def close(self, title_pattern: str) -> str:
        return await self._call("close", title_pattern)
