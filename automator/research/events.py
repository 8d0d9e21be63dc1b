"""Progress events reported while a workflow runs.

Every run emits ``started`` first and then exactly one of ``done`` or
``error``. Between them it emits ``status`` events, each naming the step in
progress plus whatever that step wants to report.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine, Literal

logger = logging.getLogger(__name__)

WorkflowEvent = Literal["started", "status", "done", "error"]

EventCallback = Callable[[WorkflowEvent, dict[str, Any]], Coroutine[Any, Any, None]]


async def emit_event(
    on_event: EventCallback | None,
    event: WorkflowEvent,
    data: dict[str, Any] | None = None,
) -> None:
    if on_event is None:
        return
    logger.debug("workflow event", extra={"event": event, "step": (data or {}).get("step", "")})
    await on_event(event, data or {})


async def emit_status(on_event: EventCallback | None, step: str, **data: Any) -> None:
    """Report progress of *step*; ``data`` is passed through beside it."""
    await emit_event(on_event, "status", {"step": step, **data})
