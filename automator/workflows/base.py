"""Shared pieces of every workflow entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable

from pydantic import BaseModel

from automator.models import WorkflowResult
from automator.research.events import EventCallback, emit_event

logger = logging.getLogger(__name__)


class WorkflowConfig(BaseModel):
    """Base configuration: where the workflow writes its output."""

    output_dir: Path = Path("reports")
    output_file: str = "report.md"

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.output_file


async def run_guarded(
    name: str,
    body: Callable[[], Awaitable[WorkflowResult]],
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    """Run *body*, turning any uncaught exception into a failed result."""
    await emit_event(on_event, "started", {"workflow": name})
    try:
        result = await body()
    except Exception as exc:
        logger.exception("workflow failed", extra={"workflow": name})
        message = str(exc) or type(exc).__name__
        await emit_event(on_event, "error", {"workflow": name, "message": message})
        return WorkflowResult(workflow=name, ok=False, message=message)
    logger.info(
        "workflow finished",
        extra={"workflow": name, "ok": result.ok, "output_path": result.output_path},
    )
    await emit_event(on_event, "done", {"workflow": name, "ok": result.ok})
    return result
