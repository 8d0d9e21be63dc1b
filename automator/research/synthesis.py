"""LLM calls that degrade to placeholder text instead of failing the run."""

from __future__ import annotations

import logging

from automator.llm import ChatClient
from automator.research.result import StepResult

logger = logging.getLogger(__name__)


async def generate_text(
    chat: ChatClient,
    system_prompt: str,
    user_prompt: str,
    *,
    placeholder: str,
    step: str,
) -> StepResult[str]:
    """Run one chat completion; on failure return *placeholder* with the reason."""
    try:
        reply = await chat.chat(system_prompt, user_prompt)
    except Exception as exc:
        logger.warning("llm call failed", extra={"step": step}, exc_info=True)
        return StepResult.failure(str(exc) or type(exc).__name__, placeholder, step=step)
    return StepResult.success((reply or "").strip(), step=step)
