"""Thunderbird identity, calendar and mail access."""

from __future__ import annotations

from .base import CapabilityBinding
from .models import CalendarEvent, MailIdentity, MailMessage


class Thunderbird(CapabilityBinding):
    namespace = "thunderbird"

    async def identity(self) -> MailIdentity:
        return await self._call_json("getIdentity", MailIdentity)

    async def calendar_events(self, days: int = 14) -> list[CalendarEvent]:
        return await self._call_json("getCalendarEvents", list[CalendarEvent], days or 14)

    async def profile(self) -> str:
        return await self._call("getProfile")

    async def emails(self, folder: str = "inbox", limit: int = 20) -> list[MailMessage]:
        return await self._call_json("getEmails", list[MailMessage], folder or "inbox", limit or 20)
