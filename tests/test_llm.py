"""Chat service, LLM output helpers and step results."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from automator.llm import (
    ChatService,
    extract_json_array,
    extract_json_object,
    parse_json_array,
    parse_json_object,
    sanitize_llm_output,
)
from automator.research.result import StepResult, collect_failures
from automator.research.synthesis import generate_text


def _mock_agent_result(output, input_tokens=10, output_tokens=20):
    usage = MagicMock()
    usage.input_tokens = input_tokens
    usage.output_tokens = output_tokens
    result = MagicMock()
    result.output = output
    result.usage = MagicMock(return_value=usage)
    return result


@pytest.mark.asyncio
@patch("automator.llm.Agent")
async def test_chat_service_runs_agent_with_system_prompt(mock_agent_cls):
    agent = AsyncMock()
    agent.run = AsyncMock(return_value=_mock_agent_result("hello"))
    mock_agent_cls.return_value = agent

    service = ChatService("openai:gpt-4o-mini")
    reply = await service.chat("be brief", "say hi")

    assert reply == "hello"
    mock_agent_cls.assert_called_once_with("openai:gpt-4o-mini", system_prompt="be brief")
    agent.run.assert_awaited_once_with("say hi")


@pytest.mark.asyncio
@patch("automator.llm.Agent")
async def test_chat_service_propagates_errors(mock_agent_cls):
    agent = AsyncMock()
    agent.run = AsyncMock(side_effect=RuntimeError("rate limited"))
    mock_agent_cls.return_value = agent

    with pytest.raises(RuntimeError, match="rate limited"):
        await ChatService("openai:gpt-4o-mini").chat("s", "u")


def test_sanitize_strips_code_fences():
    assert sanitize_llm_output('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'
    assert sanitize_llm_output(None) == ""


def test_extract_json_spans():
    assert extract_json_array('Here you go: [1, 2] done') == "[1, 2]"
    assert extract_json_object('Sure! {"title": "x"} ok') == '{"title": "x"}'
    assert extract_json_array("no json") == ""


def test_parse_json_helpers():
    assert parse_json_array('```json\n[{"service": "Cursor"}]\n```') == [{"service": "Cursor"}]
    assert parse_json_array("[not json") is None
    assert parse_json_array("nothing") is None
    assert parse_json_object('{"title": "t", "body": "b"}') == {"title": "t", "body": "b"}
    assert parse_json_object("{broken") is None


def test_step_result_success_and_failure():
    ok = StepResult.success(3, step="count")
    failed = StepResult.failure("timeout", 0, step="read")
    assert ok.ok and ok.value == 3
    assert not failed.ok and failed.value == 0 and failed.error == "timeout"
    assert StepResult.failure("", None).error == "unknown error"


def test_collect_failures_in_order():
    results = [
        StepResult.success("a", step="one"),
        StepResult.failure("boom", "", step="two"),
        StepResult.failure("bad", ""),
    ]
    assert collect_failures(results) == ["two: boom", "bad"]


@pytest.mark.asyncio
async def test_generate_text_success():
    chat = AsyncMock()
    chat.chat = AsyncMock(return_value="  A section.  ")
    result = await generate_text(chat, "sys", "user", placeholder="(failed)", step="abstract")
    assert result.ok
    assert result.value == "A section."


@pytest.mark.asyncio
async def test_generate_text_failure_yields_placeholder():
    chat = AsyncMock()
    chat.chat = AsyncMock(side_effect=RuntimeError("llm down"))
    result = await generate_text(chat, "sys", "user", placeholder="(failed)", step="abstract")
    assert not result.ok
    assert result.value == "(failed)"
    assert collect_failures([result]) == ["abstract: llm down"]
