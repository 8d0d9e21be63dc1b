"""Expense classification for the tax return.

Reads every receipt and invoice PDF in a directory with the OCR capability,
asks the LLM for the expense account and business-use ratio of each, and
writes the classified list with per-account totals as JSON.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import Field

from automator.host import Capabilities, HostError
from automator.host.models import DocumentFields
from automator.host.ocr import DEFAULT_OCR_BASE_URL, DEFAULT_OCR_MODEL
from automator.llm import ChatClient, parse_json_object
from automator.models import Expense, ExpenseCategory, ExpenseClassification, WorkflowResult
from automator.research.events import EventCallback, emit_status
from automator.research.expenses import (
    EXPENSE_CATEGORIES,
    classification_from_reply,
    expense_document,
    expense_prompt,
    fallback_classification,
    format_amount,
    format_category_list,
    in_target_year,
)
from automator.research.prompts import EXPENSE_CLASSIFY_SYSTEM
from automator.research.report import write_report
from automator.research.result import StepResult, collect_failures
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "expense_classifier"


class ExpenseClassifierConfig(WorkflowConfig):
    output_file: str = "expenses.json"
    invoice_dir: Path = Path("invoices")
    # 0 keeps every year
    target_year: int = 0
    ocr_model: str = DEFAULT_OCR_MODEL
    ocr_base_url: str = DEFAULT_OCR_BASE_URL
    ocr_snippet_chars: int = 1500
    categories: dict[str, ExpenseCategory] = Field(default_factory=lambda: dict(EXPENSE_CATEGORIES))


def list_pdfs(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".pdf")


async def read_expense(
    caps: Capabilities, path: Path, config: ExpenseClassifierConfig
) -> StepResult[Expense | None]:
    try:
        doc = await caps.ocr.extract_document(str(path), config.ocr_model, config.ocr_base_url)
    except HostError as exc:
        logger.warning("document extraction failed", extra={"file": path.name}, exc_info=True)
        return StepResult.failure(str(exc), None, step=path.name)
    fields = doc.structured or DocumentFields()
    expense = Expense(
        filename=path.name,
        **fields.model_dump(),
        ocr_text=doc.text,
        ocr_quality=doc.text_quality,
    )
    return StepResult.success(expense, step=path.name)


async def classify_expense(
    chat: ChatClient, expense: Expense, config: ExpenseClassifierConfig
) -> StepResult[ExpenseClassification]:
    step = f"classify {expense.filename}"
    system = EXPENSE_CLASSIFY_SYSTEM.format(categories=format_category_list(config.categories))
    try:
        reply = await chat.chat(system, expense_prompt(expense, config.ocr_snippet_chars))
    except Exception as exc:
        logger.warning("expense classification failed", extra={"file": expense.filename}, exc_info=True)
        fallback = fallback_classification("classification failed", config.categories)
        return StepResult.failure(str(exc), fallback, step=step)
    classification = classification_from_reply(parse_json_object(reply), config.categories)
    return StepResult.success(classification, step=step)


async def run(
    caps: Capabilities,
    chat: ChatClient,
    config: ExpenseClassifierConfig | None = None,
    on_event: EventCallback | None = None,
) -> WorkflowResult:
    config = config or ExpenseClassifierConfig()

    async def body() -> WorkflowResult:
        await caps.require("ocr")

        pdfs = list_pdfs(config.invoice_dir)
        logger.info("invoices listed", extra={"dir": str(config.invoice_dir), "count": len(pdfs)})
        if not pdfs:
            return WorkflowResult(workflow=NAME, ok=False, message="No PDF files found", counts={"files": 0})

        expenses: list[Expense] = []
        errors: list[dict[str, str]] = []
        for i, path in enumerate(pdfs, 1):
            await emit_status(on_event, "extract", file=path.name, index=i, total=len(pdfs))
            read = await read_expense(caps, path, config)
            if read.value is None:
                errors.append({"filename": path.name, "error": read.error})
                continue
            issue_date = read.value.issue_date
            if not in_target_year(issue_date, config.target_year):
                logger.info("outside target year", extra={"file": path.name, "issue_date": issue_date})
                continue
            expenses.append(read.value)

        classified: list[Expense] = []
        steps: list[StepResult[ExpenseClassification]] = []
        for expense in expenses:
            await emit_status(on_event, "classify", file=expense.filename)
            result = await classify_expense(chat, expense, config)
            steps.append(result)
            classified.append(expense.model_copy(update={"classification": result.value}))

        document = expense_document(
            classified,
            errors,
            generated_at=datetime.now(timezone.utc).isoformat(),
            target_year=config.target_year,
            source_directory=str(config.invoice_dir),
        )
        path = write_report(config.output_path, json.dumps(document, ensure_ascii=False, indent=2))
        summary = document["summary"]
        return WorkflowResult(
            workflow=NAME,
            ok=True,
            message=(
                f"Classified {len(classified)} expense(s), "
                f"total ¥{format_amount(summary['grand_total'])}, "
                f"deductible ¥{format_amount(summary['business_total'])}"
            ),
            output_path=str(path),
            counts={"files": len(pdfs), "processed": len(classified), "errors": len(errors)},
            failures=[f"{e['filename']}: {e['error']}" for e in errors] + collect_failures(steps),
            details={
                "grand_total": summary["grand_total"],
                "business_total": summary["business_total"],
                "tax_total": summary["tax_total"],
            },
        )

    return await run_guarded(NAME, body, on_event)
