"""Command-line entry point: run one named workflow once."""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import httpx

from automator.config import Settings, get_settings
from automator.host import HttpHost, build_capabilities
from automator.llm import ChatService
from automator.logging_config import setup_logging
from automator.models import WorkflowResult
from automator.workflows import WORKFLOWS

logger = logging.getLogger(__name__)


def _export_api_keys(settings: Settings) -> None:
    # model providers read their keys from the environment
    for env, value in (
        ("OPENAI_API_KEY", settings.openai_api_key),
        ("ANTHROPIC_API_KEY", settings.anthropic_api_key),
    ):
        if value:
            os.environ.setdefault(env, value)


async def run_workflow(name: str, settings: Settings) -> WorkflowResult:
    entry = WORKFLOWS[name]
    config = entry.config_type(output_dir=Path(settings.output_dir))
    async with httpx.AsyncClient(
        base_url=settings.host_url, timeout=settings.host_timeout_seconds
    ) as client:
        caps = build_capabilities(HttpHost(client))
        chat = ChatService(settings.chat_model)
        logger.info(
            "running workflow",
            extra={"workflow": name, "host_url": settings.host_url, "model": settings.chat_model},
        )
        return await entry.run(caps, chat, config)


def cli(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="automator", description="Run a browser/desktop automation workflow.")
    parser.add_argument("workflow", choices=sorted(WORKFLOWS))
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)
    _export_api_keys(settings)

    result = asyncio.run(run_workflow(args.workflow, settings))
    logger.info(
        "workflow result",
        extra={
            "workflow": result.workflow,
            "ok": result.ok,
            "result_message": result.message,
            "output_path": result.output_path,
            "counts": result.counts,
            "failures": result.failures,
        },
    )
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(cli())
