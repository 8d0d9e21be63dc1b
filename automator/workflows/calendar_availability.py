"""Calendar availability from Thunderbird.

Reads upcoming Thunderbird calendar events, works out the free weekdays in
the look-ahead window and writes them to a Markdown report. With a form URL
configured it also opens the scheduling form and fills in the user's name,
email, first free date, preferred time slot and a remark, leaving the form
open for review.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime

from automator.host import Capabilities, HostError
from automator.host.models import CalendarEvent, MailIdentity
from automator.llm import ChatClient
from automator.models import WorkflowResult
from automator.research.calendar import available_dates, busy_slots
from automator.research.collect import fill_field
from automator.research.events import EventCallback, emit_status
from automator.research.report import build_calendar_report, write_report
from automator.research.result import StepResult, collect_failures
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "calendar_availability"


class CalendarAvailabilityConfig(WorkflowConfig):
    output_file: str = "calendar_availability.md"
    days: int = 14
    skip_weekends: bool = True
    # candidates start the day after; today when unset
    start_date: date | None = None
    form_url: str = ""
    # identity from Thunderbird when blank
    user_name: str = ""
    user_email: str = ""
    name_selector: str = "input[aria-labelledby='i1']"
    email_selector: str = "input[aria-labelledby='i5']"
    date_selector: str = "input[type='date']"
    remarks_selector: str = "textarea"
    time_slot_selector: str = "div[aria-label='{slot}']"
    preferred_time_slots: list[str] = ["10:00-12:00", "13:00-15:00", "15:00-17:00", "17:00-19:00"]
    remarks: str = "Filled in automatically from the Thunderbird calendar"
    form_settle_seconds: float = 2.0
    wait_timeout_ms: int = 15000


async def read_events(caps: Capabilities, days: int) -> StepResult[list[CalendarEvent]]:
    try:
        events = await caps.mail.calendar_events(days)
    except HostError as exc:
        logger.warning("calendar read failed", exc_info=True)
        return StepResult.failure(str(exc), [], step="calendar")
    logger.info("calendar read", extra={"events": len(events)})
    return StepResult.success(events, step="calendar")


async def read_identity(caps: Capabilities) -> StepResult[MailIdentity]:
    try:
        return StepResult.success(await caps.mail.identity(), step="identity")
    except HostError as exc:
        logger.warning("identity read failed", exc_info=True)
        return StepResult.failure(str(exc), MailIdentity(), step="identity")


async def fill_schedule_form(
    caps: Capabilities,
    config: CalendarAvailabilityConfig,
    identity: MailIdentity,
    first_date: str,
) -> dict[str, bool]:
    """Fill the scheduling form in a new tab; returns which fields took a value."""
    browser = caps.browser
    tab_id = await browser.create_tab(config.form_url, False)
    try:
        await browser.wait_for_network_idle(tab_id, config.wait_timeout_ms)
    except HostError:
        logger.debug("network idle wait failed", extra={"url": config.form_url})
    if config.form_settle_seconds > 0:
        await asyncio.sleep(config.form_settle_seconds)

    filled = {
        "name": await fill_field(browser, tab_id, config.name_selector, config.user_name or identity.name),
        "email": await fill_field(browser, tab_id, config.email_selector, config.user_email or identity.email),
        "date": await fill_field(browser, tab_id, config.date_selector, first_date),
    }
    filled["time_slot"] = False
    if config.preferred_time_slots:
        selector = config.time_slot_selector.format(slot=config.preferred_time_slots[0])
        try:
            await browser.click(tab_id, selector)
            filled["time_slot"] = True
        except HostError:
            logger.warning("time slot click failed", extra={"selector": selector}, exc_info=True)
    filled["remarks"] = await fill_field(browser, tab_id, config.remarks_selector, config.remarks)
    return filled


async def run(
    caps: Capabilities,
    chat: ChatClient,
    config: CalendarAvailabilityConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or CalendarAvailabilityConfig()

    async def body() -> WorkflowResult:
        await caps.require("thunderbird", *(["floorp"] if config.form_url else []))
        start = config.start_date or date.today()

        await emit_status(on_event, "calendar", days=config.days)
        events = await read_events(caps, config.days)
        slots = busy_slots(events.value)
        dates = available_dates(events.value, start, config.days, config.skip_weekends)
        steps: list[StepResult] = [events]

        filled: dict[str, bool] = {}
        if config.form_url:
            await emit_status(on_event, "form", url=config.form_url)
            identity = StepResult.success(MailIdentity(), step="identity")
            if not (config.user_name and config.user_email):
                identity = await read_identity(caps)
                steps.append(identity)
            first_date = dates[0] if dates else start.isoformat()
            filled = await fill_schedule_form(caps, config, identity.value, first_date)

        report = build_calendar_report(
            slots,
            dates,
            datetime.now().strftime("%Y-%m-%d %H:%M"),
            form_fields=filled,
            form_url=config.form_url,
        )
        path = write_report(config.output_path, report)

        failures = collect_failures(steps)
        failures += [f"form: {name} not filled" for name, ok in filled.items() if not ok]
        form_ok = not config.form_url or all(filled.values())
        if config.form_url:
            message = "Form filled; review and submit it manually" if form_ok else "Form partially filled"
        else:
            message = f"{len(dates)} free day(s) in the next {config.days} days"
        return WorkflowResult(
            workflow=NAME,
            ok=form_ok,
            message=message,
            output_path=str(path),
            counts={"events": len(events.value), "available_dates": len(dates)},
            failures=failures,
            details={"available_dates": dates[:5], "form_fields": filled},
        )

    return await run_guarded(NAME, body, on_event)
