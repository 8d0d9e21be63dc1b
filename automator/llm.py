"""LLM chat service and helpers for pulling JSON out of chat replies."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

from pydantic_ai import Agent

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*\n?([\s\S]*?)```")
_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class ChatClient(Protocol):
    """Text-in/text-out chat completion."""

    async def chat(self, system_prompt: str, user_prompt: str) -> str: ...


class ChatService:
    """Chat completion through a PydanticAI agent per system prompt."""

    def __init__(self, model: str) -> None:
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def chat(self, system_prompt: str, user_prompt: str) -> str:
        agent = Agent(self._model, system_prompt=system_prompt)
        result = await agent.run(user_prompt)
        output = result.output
        usage = result.usage()
        logger.debug(
            "chat completed",
            extra={
                "model": self._model,
                "prompt_chars": len(user_prompt),
                "reply_chars": len(output),
                "input_tokens": usage.input_tokens or 0,
                "output_tokens": usage.output_tokens or 0,
            },
        )
        return output


def sanitize_llm_output(text: str | None) -> str:
    """Strip Markdown code fences, keeping their contents."""
    if not text:
        return ""
    return _FENCE_RE.sub(lambda m: m.group(1), str(text)).strip()


def extract_json_array(text: str | None) -> str:
    """Return the outermost ``[...]`` span, or an empty string."""
    if not text:
        return ""
    match = _JSON_ARRAY_RE.search(text)
    return match.group(0) if match else ""


def extract_json_object(text: str | None) -> str:
    """Return the outermost ``{...}`` span, or an empty string."""
    if not text:
        return ""
    match = _JSON_OBJECT_RE.search(text)
    return match.group(0) if match else ""


def parse_json_array(reply: str | None) -> list[Any] | None:
    """Parse the JSON array embedded in a chat reply; None when there is none."""
    raw = extract_json_array(sanitize_llm_output(reply))
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return None
    return parsed if isinstance(parsed, list) else None


def parse_json_object(reply: str | None) -> dict[str, Any] | None:
    """Parse the JSON object embedded in a chat reply; None when there is none."""
    raw = extract_json_object(sanitize_llm_output(reply))
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None
