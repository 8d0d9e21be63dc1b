"""Busy slots and free days derived from calendar events."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from automator.host.models import CalendarEvent
from automator.models import BusySlot
from automator.research.parsing import parse_date_like


def split_stamp(stamp: str) -> tuple[str, str]:
    """Split ``2026-01-05 09:00`` into date and time; a bare time has an empty date."""
    text = (stamp or "").strip()
    head, _, tail = text.replace("T", " ", 1).partition(" ")
    if head and parse_date_like(head):
        return head, tail.strip()
    return "", text


def event_date(event: CalendarEvent) -> str:
    """ISO date of *event*, from its ``date`` or else its start stamp; ``""`` when unknown."""
    raw = event.date.strip() or split_stamp(event.start_time)[0]
    parsed = parse_date_like(raw)
    return parsed.date().isoformat() if parsed else raw


def busy_slots(events: Iterable[CalendarEvent]) -> list[BusySlot]:
    slots = []
    for e in events:
        slots.append(
            BusySlot(
                date=event_date(e),
                start=split_stamp(e.start_time)[1],
                end=split_stamp(e.end_time)[1],
                title=e.title,
            )
        )
    return slots


def available_dates(
    events: Iterable[CalendarEvent],
    start: date,
    days: int = 14,
    skip_weekends: bool = True,
) -> list[str]:
    """Days after *start* (up to *days* ahead) with no event, as ISO dates."""
    busy = {d for d in (event_date(e) for e in events) if d}
    free = []
    for offset in range(1, days + 1):
        day = start + timedelta(days=offset)
        if skip_weekends and day.weekday() >= 5:
            continue
        if day.isoformat() in busy:
            continue
        free.append(day.isoformat())
    return free
